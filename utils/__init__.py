"""
Utility modules for the exchange engine.
"""

from .formatting import format_days, format_percent, format_us_date
from .config import Config

__all__ = ["format_days", "format_percent", "format_us_date", "Config"]
