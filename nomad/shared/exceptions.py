"""Exceptions raised by adapters and infrastructure, outside the trip domain."""

from __future__ import annotations

from typing import Optional


class ToolError(Exception):
    """An external tool (model, places, weather, currency) could not answer."""

    def __init__(self, tool: str, message: str, *, status_code: Optional[int] = None):
        self.tool = tool
        self.status_code = status_code
        super().__init__(f"[{tool}] {message}")


class ExternalServiceError(Exception):
    """A backing service (key-value store) is unusable."""

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(f"{service}: {message}")


class KeyMissingError(Exception):
    """Strict mode requires a provider key that is not configured."""

    def __init__(self, name: str):
        self.key_name = name
        super().__init__(f"{name} is required when STRICT_EXTERNAL_DATA=true (set it in .env)")
