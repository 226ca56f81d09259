"""Outbound HTTP and secret redaction helpers."""

from nomad.security.http_client import SecureHttpClient
from nomad.security.redact import redact_sensitive

__all__ = ["SecureHttpClient", "redact_sensitive"]
