"""
Formatting helpers for rates and money.
"""

from decimal import Decimal


def format_rate(value: Decimal | float | None) -> str:
    """Format a whole-percent rate with three decimals, e.g. 5.500%."""
    if value is None:
        return "n/a"
    return f"{Decimal(str(value)):.3f}%"


def format_money(value: Decimal | float | None) -> str:
    """Format a dollar amount with thousands separators."""
    if value is None:
        return "n/a"
    return f"${Decimal(str(value)):,.2f}"
