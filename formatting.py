# formatting.py
"""Display strings for gold-piece amounts and counts."""

from typing import Optional


def format_gp(amount: Optional[float]) -> str:
    """``1234567 -> '1.23M gp'``, ``12345 -> '12.3K gp'``, ``999 -> '999 gp'``."""
    if not amount:
        return "0 gp"
    if amount >= 1_000_000:
        return f"{amount / 1_000_000:.2f}M gp"
    if amount >= 1_000:
        return f"{amount / 1_000:.1f}K gp"
    return f"{amount} gp"


def format_number(num: Optional[int]) -> str:
    if not num:
        return "0"
    return f"{num:,}"
