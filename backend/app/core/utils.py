"""
Utility functions for the application.
"""
from typing import Any, Dict
from decimal import Decimal, ROUND_HALF_UP

CENTS = Decimal("0.01")


def round_money(value) -> Decimal:
    """Round an amount to cents for display."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(value, symbol: str = "$", signed: bool = False) -> str:
    """Format an amount like ``$12.50`` or ``+$12.50``."""
    amount = round_money(value)
    if not signed:
        return f"{symbol}{amount}"
    sign = "-" if amount < 0 else "+"
    return f"{sign}{symbol}{abs(amount)}"


def format_error(message: str, details: Any = None) -> Dict[str, Any]:
    """Format error response."""
    response = {"error": message}
    if details:
        response["details"] = details
    return response
