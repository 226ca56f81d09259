"""Static exchange rates for offline runs."""

from __future__ import annotations

from typing import Optional

from nomad.adapters.currency.codes import currency_for
from nomad.tools.interfaces import CurrencyQuote

# Units per 1 USD.
USD_RATES: dict[str, float] = {
    "USD": 1.0, "EUR": 0.92, "GBP": 0.79, "JPY": 150.0, "AUD": 1.52, "NZD": 1.65, "CAD": 1.36,
    "CHF": 0.88, "DKK": 6.87, "NOK": 10.6, "SEK": 10.4, "ISK": 138.0, "CZK": 23.0, "HUF": 360.0,
    "TRY": 32.0, "MXN": 17.0, "BRL": 5.0, "ARS": 870.0, "PEN": 3.7, "CLP": 940.0, "CRC": 510.0,
    "NIO": 36.6, "ZAR": 18.5, "MAD": 10.0, "EGP": 47.0, "KES": 130.0, "ETB": 57.0, "MGA": 4500.0,
    "THB": 36.0, "VND": 25000.0, "SGD": 1.34, "MYR": 4.7, "IDR": 15700.0, "HKD": 7.8, "CNY": 7.2,
    "KRW": 1340.0, "AED": 3.67, "ILS": 3.7,
}


def quote(base: str, destination: str) -> Optional[CurrencyQuote]:
    code = currency_for(destination)
    base = base.upper()
    if code is None or code == base or code not in USD_RATES or base not in USD_RATES:
        return None
    return CurrencyQuote(base=base, currency=code, rate=round(USD_RATES[code] / USD_RATES[base], 4))
