"""
Value Coercion - Shared Typed Interpretation of Raw Field Values

Every rule that reads a boolean-like or date-like field goes through these
helpers, so the same raw value is interpreted identically wherever it is
consumed. None of these functions raise: anything that cannot be coerced
comes back as None (or False for flags).
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, time, timezone
from typing import Any, Final, Optional


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# String values accepted as "yes" for checkbox-style fields (case-insensitive)
TRUTHY_STRINGS: Final[frozenset[str]] = frozenset({"yes", "true"})

# Non-ISO date layouts seen in imported data, tried in order
FALLBACK_DATE_FORMATS: Final[tuple[str, ...]] = (
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m-%d-%Y",
    "%Y/%m/%d",
)

# Scalar types a resolved value may carry
SCALAR_TYPES: Final[tuple[type, ...]] = (str, int, float, bool, date, datetime)


# =============================================================================
# Emptiness
# =============================================================================


def is_blank(value: Any) -> bool:
    """True for None, whitespace-only strings and empty containers."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


def is_scalar(value: Any) -> bool:
    """True if value is a type the resolver is allowed to return."""
    return isinstance(value, SCALAR_TYPES)


# =============================================================================
# Dates
# =============================================================================


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utc_now() -> datetime:
    """Current instant as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalise_now(now: Optional[Any] = None) -> datetime:
    """
    Normalise an injected "now" to naive UTC.

    Accepts None (use the clock), a datetime, a date (midnight) or an
    ISO-8601 string. Anything unparseable falls back to the clock.
    """
    if now is None:
        return utc_now()
    parsed = parse_date(now)
    if parsed is None:
        logger.debug("Unparseable 'now' value %r, using current time", now)
        return utc_now()
    return parsed


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse a date-bearing value to a naive UTC datetime.

    Accepts datetime, date and strings in ISO-8601 (with or without a
    trailing "Z") or US month/day/year layouts. Booleans, numbers and
    malformed strings return None, so an unparseable date behaves exactly
    like an absent one.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        try:
            return to_naive_utc(value)
        except OverflowError:
            return None
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    iso_text = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        return to_naive_utc(datetime.fromisoformat(iso_text))
    except (ValueError, OverflowError):
        pass

    for fmt in FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    logger.debug("Unparseable date value %r treated as absent", value)
    return None


# =============================================================================
# Flags, Text, Numbers
# =============================================================================


def is_truthy(value: Any) -> bool:
    """
    Interpret a checkbox-style field.

    True only for boolean True or the strings "Yes" / "true"
    (case-insensitive, surrounding whitespace ignored).
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    return False


def as_text(value: Any) -> Optional[str]:
    """
    Interpret a name or identifier field as display text.

    Numbers are accepted (escrow numbers are sometimes imported as numeric
    values); whole floats drop their ".0". Dates and booleans are not text.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        return text or None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and math.isfinite(value):
        return str(int(value)) if value.is_integer() else str(value)
    return None


def as_number(value: Any) -> Optional[float]:
    """Interpret a numeric field; accepts "45" and "45%". Otherwise None."""
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    text = value.strip().rstrip("%").strip() if isinstance(value, str) else value
    try:
        number = float(text)
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None
