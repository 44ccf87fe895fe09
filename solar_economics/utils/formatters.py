"""Number and currency formatting utilities for engine output."""

from typing import Optional


def format_currency(value: float, decimals: int = 0, prefix: str = "$") -> str:
    """Format a number as currency string.

    Args:
        value: The numeric value to format.
        decimals: Number of decimal places.
        prefix: Currency symbol prefix.

    Returns:
        Formatted currency string (e.g., "$1.2M", "-$350K").
    """
    sign = "-" if value < 0 else ""
    magnitude = abs(value)
    if magnitude >= 1e9:
        return f"{sign}{prefix}{magnitude / 1e9:,.{decimals}f}B"
    if magnitude >= 1e6:
        return f"{sign}{prefix}{magnitude / 1e6:,.{decimals}f}M"
    if magnitude >= 1e3:
        return f"{sign}{prefix}{magnitude / 1e3:,.{decimals}f}K"
    return f"{sign}{prefix}{magnitude:,.{decimals}f}"


def format_currency_exact(value: float, decimals: int = 2, prefix: str = "$") -> str:
    """Format a number as exact currency string without abbreviation."""
    sign = "-" if value < 0 else ""
    return f"{sign}{prefix}{abs(value):,.{decimals}f}"


def format_percent(value: Optional[float], decimals: int = 1) -> str:
    """Format a decimal as percentage string (0.07 -> "7.0%")."""
    if value is None:
        return "N/A"
    return f"{value * 100:,.{decimals}f}%"


def format_cents_per_kwh(value: float, decimals: int = 2) -> str:
    """Format a ¢/kWh rate."""
    return f"{value:,.{decimals}f}¢/kWh"


def format_payback_year(year: Optional[int]) -> str:
    """Format a payback year, or note that it is not reached."""
    if year is None:
        return "Not reached"
    return f"Year {year}"
