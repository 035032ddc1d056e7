"""
Currency display helpers.

Amounts stay ``Decimal`` everywhere in the engine; only the CLI turns them
into strings. Codes missing from ``CURRENCY_INFO`` fall back to the code
itself as the symbol with two decimals.
"""

from __future__ import annotations

from decimal import Decimal

CURRENCY_INFO: dict[str, dict[str, str | int]] = {
    "USD": {"symbol": "$", "name": "US Dollar", "decimals": 2},
    "EUR": {"symbol": "€", "name": "Euro", "decimals": 2},
    "GBP": {"symbol": "£", "name": "British Pound", "decimals": 2},
    "CAD": {"symbol": "CA$", "name": "Canadian Dollar", "decimals": 2},
    "AUD": {"symbol": "A$", "name": "Australian Dollar", "decimals": 2},
    "NZD": {"symbol": "NZ$", "name": "New Zealand Dollar", "decimals": 2},
    "JPY": {"symbol": "¥", "name": "Japanese Yen", "decimals": 0},
    "INR": {"symbol": "₹", "name": "Indian Rupee", "decimals": 2},
    "MXN": {"symbol": "MX$", "name": "Mexican Peso", "decimals": 2},
    "CHF": {"symbol": "CHF ", "name": "Swiss Franc", "decimals": 2},
}


def format_currency(amount: Decimal, currency: str = "USD") -> str:
    """
    Format an amount with its currency symbol, sign in front.

    Examples:
        format_currency(Decimal("-1234.5"))         -> "-$1,234.50"
        format_currency(Decimal("980"), "JPY")      -> "¥980"
    """
    code = currency.upper()
    info = CURRENCY_INFO.get(code, {})
    symbol = info.get("symbol", f"{code} ")
    decimals = info.get("decimals", 2)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.{decimals}f}"
