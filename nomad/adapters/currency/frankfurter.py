"""Real exchange rates from the Frankfurter (ECB reference rate) API."""

from __future__ import annotations

import datetime as dt
import logging
import os
from typing import Optional

from nomad.adapters.currency.codes import currency_for
from nomad.security.http_client import SecureHttpClient
from nomad.tools.interfaces import CurrencyQuote, ToolError

_BASE_URL = os.getenv("FRANKFURTER_URL", "https://api.frankfurter.app/latest")
_logger = logging.getLogger("nomad.currency")

_http = SecureHttpClient(tool_name="currency", max_retries=1)


def quote(base: str, destination: str) -> Optional[CurrencyQuote]:
    code = currency_for(destination)
    base = base.upper()
    if code is None or code == base:
        return None
    data = _http.get(_BASE_URL, params={"from": base, "to": code})
    rates = data.get("rates") if isinstance(data, dict) else None
    if not rates or code not in rates:
        # Frankfurter only covers ECB currencies.
        _logger.debug("No ECB rate for %s -> %s", base, code)
        return None
    try:
        as_of = dt.date.fromisoformat(str(data.get("date")))
    except ValueError:
        as_of = None
    try:
        rate = float(rates[code])
    except (TypeError, ValueError):
        raise ToolError("currency", f"invalid rate for {code}") from None
    return CurrencyQuote(base=base, currency=code, rate=rate, as_of=as_of)
