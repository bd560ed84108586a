"""
Formatting utilities.
"""

from datetime import date, datetime
from typing import Optional, Union


def format_us_date(value: Optional[Union[date, datetime]], empty: str = "Not specified") -> str:
    """
    Format a date as M/D/YYYY, the layout case managers read.

    Args:
        value: Date or datetime; None yields the empty placeholder.
        empty: Placeholder for missing dates.

    Returns:
        Formatted date string.
    """
    if value is None:
        return empty
    return f"{value.month}/{value.day}/{value.year}"


def format_percent(value: float, decimals: int = 0) -> str:
    """
    Format a number as a percentage.

    Args:
        value: The percentage value.
        decimals: Number of decimal places.

    Returns:
        Formatted percentage string.
    """
    return f"{value:.{decimals}f}%"


def format_days(days: int) -> str:
    """Format a day count with the right plural."""
    return f"{days} day" if days == 1 else f"{days} days"
