"""Outbound HTTP client shared by every real adapter.

Responsibilities:
  1. bounded timeout and retry (caps come from the environment)
  2. redaction of credentials in raised errors
  3. a single place that depends on httpx
"""

from __future__ import annotations

import os
import time
from typing import Any, Optional

import httpx

from nomad.security.redact import redact_sensitive
from nomad.shared.exceptions import ToolError

_USER_AGENT = "nomad-planner/0.4 (+https://github.com/nomad-planner)"


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


class SecureHttpClient:
    """httpx wrapper that redacts secrets from every error it raises."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        max_retries: int = 1,
        tool_name: str = "http",
        transport: Optional[httpx.BaseTransport] = None,
    ):
        cap = _env_float("TOOL_HTTP_TIMEOUT_CAP_SECONDS", 15.0)
        floor = _env_float("TOOL_HTTP_TIMEOUT_FLOOR_SECONDS", 1.0)
        self._timeout = max(floor, min(float(timeout), cap))
        self._max_retries = max(0, min(int(max_retries), _env_int("TOOL_HTTP_RETRY_CAP", 2)))
        self._tool_name = tool_name
        self._transport = transport

    def get(
        self,
        url: str,
        *,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """GET ``url`` and return the decoded JSON body."""
        last_error: Optional[ToolError] = None
        merged_headers = {"User-Agent": _USER_AGENT, **(headers or {})}

        for attempt in range(1, self._max_retries + 2):
            try:
                with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                    resp = client.get(url, params=params, headers=merged_headers)
                resp.raise_for_status()
                return resp.json()
            except httpx.HTTPStatusError as e:
                safe_msg = redact_sensitive(str(e))
                last_error = ToolError(
                    self._tool_name, f"HTTP {e.response.status_code}: {safe_msg}", status_code=e.response.status_code
                )
                if e.response.status_code < 500 and e.response.status_code != 429:
                    break
            except httpx.TimeoutException:
                last_error = ToolError(
                    self._tool_name, f"request timed out after {self._timeout}s (attempt {attempt})"
                )
            except httpx.HTTPError as e:
                last_error = ToolError(self._tool_name, f"network error: {redact_sensitive(str(e))}")
            except ValueError as e:
                last_error = ToolError(self._tool_name, f"invalid JSON body: {redact_sensitive(str(e))}")
                break

            if attempt <= self._max_retries:
                time.sleep(0.5 * attempt)

        raise last_error  # type: ignore[misc]


__all__ = ["SecureHttpClient"]
