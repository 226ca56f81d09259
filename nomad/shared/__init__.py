"""Shared cross-layer types and exceptions."""

from nomad.shared.exceptions import ExternalServiceError, KeyMissingError, ToolError

__all__ = ["ToolError", "ExternalServiceError", "KeyMissingError"]
