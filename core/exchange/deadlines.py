"""
Deadline & Progress Calculator

Statutory §1031 windows:
- 45 days from the relinquished close of escrow to identify replacement property
- 180 days from the same date to complete the exchange

Recorded deadlines are read through the Field Resolver and are never
recalculated here; projections from close of escrow are offered separately
and never replace a recorded date.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Any, Final, Optional

from core.exchange.coercion import as_number, normalise_now, parse_date
from core.exchange.models import DaysRemaining, DeadlineNotice, DeadlineSet, NoticeSeverity
from core.exchange.resolver import (
    CLOSE_OF_ESCROW,
    DAY_45,
    DAY_180,
    PROCEEDS_RECEIVED,
    PROGRESS,
    resolve,
)


# =============================================================================
# Constants
# =============================================================================

IDENTIFICATION_WINDOW_DAYS: Final[int] = 45
COMPLETION_WINDOW_DAYS: Final[int] = 180

DAY45_LABEL: Final[str] = "45-Day"
DAY180_LABEL: Final[str] = "180-Day"

# days_remaining urgency thresholds (inclusive)
DAY45_URGENT_DAYS: Final[int] = 10
DAY180_URGENT_DAYS: Final[int] = 30

# deadline_notice severity thresholds (inclusive)
DAY45_CRITICAL_DAYS: Final[int] = 3
DAY45_WARNING_DAYS: Final[int] = 10
DAY180_CRITICAL_DAYS: Final[int] = 7
DAY180_WARNING_DAYS: Final[int] = 30

PROGRESS_MIN: Final[int] = 0
PROGRESS_MAX: Final[int] = 100

SECONDS_PER_DAY: Final[int] = 24 * 60 * 60


# =============================================================================
# Deadline Set
# =============================================================================


def compute_deadlines(record: Any) -> DeadlineSet:
    """
    Resolve the key exchange dates.

    Unparseable values come back as None, exactly like absent ones.
    """
    return DeadlineSet(
        day45=parse_date(resolve(record, DAY_45).value),
        day180=parse_date(resolve(record, DAY_180).value),
        close_of_escrow=parse_date(resolve(record, CLOSE_OF_ESCROW).value),
        proceeds_received=parse_date(resolve(record, PROCEEDS_RECEIVED).value),
    )


def _offset(start: datetime, days: int) -> Optional[datetime]:
    try:
        return start + timedelta(days=days)
    except OverflowError:
        return None


def project_deadlines(deadlines: DeadlineSet) -> DeadlineSet:
    """
    Fill missing statutory deadlines from the close of escrow date.

    Recorded deadlines are kept as-is. Without a close of escrow date
    nothing can be projected and the input is returned unchanged.
    """
    escrow = deadlines.close_of_escrow
    if escrow is None:
        return deadlines
    return DeadlineSet(
        day45=deadlines.day45 or _offset(escrow, IDENTIFICATION_WINDOW_DAYS),
        day180=deadlines.day180 or _offset(escrow, COMPLETION_WINDOW_DAYS),
        close_of_escrow=escrow,
        proceeds_received=deadlines.proceeds_received,
    )


# =============================================================================
# Days Remaining
# =============================================================================


def _days_until(target: datetime, now: datetime) -> int:
    """Whole calendar days until target, rounded up."""
    return math.ceil((target - now).total_seconds() / SECONDS_PER_DAY)


def days_remaining(deadlines: DeadlineSet, now: Optional[Any] = None) -> Optional[DaysRemaining]:
    """
    Days until the next live statutory deadline.

    The 45-day deadline is preferred while it is in the future; otherwise
    the 180-day deadline if it is. Returns None when neither is
    future-dated.

    Urgent when <= 10 days remain on the 45-day deadline or <= 30 days
    on the 180-day deadline.
    """
    reference = normalise_now(now)

    if deadlines.day45 is not None and deadlines.day45 > reference:
        days = _days_until(deadlines.day45, reference)
        return DaysRemaining(
            days=days,
            urgent=days <= DAY45_URGENT_DAYS,
            label=DAY45_LABEL,
            target=deadlines.day45,
        )

    if deadlines.day180 is not None and deadlines.day180 > reference:
        days = _days_until(deadlines.day180, reference)
        return DaysRemaining(
            days=days,
            urgent=days <= DAY180_URGENT_DAYS,
            label=DAY180_LABEL,
            target=deadlines.day180,
        )

    return None


# =============================================================================
# Countdown Notice
# =============================================================================


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


def _overdue_notice(label: str, name: str, days: int) -> DeadlineNotice:
    return DeadlineNotice(
        label=label,
        days=days,
        is_overdue=True,
        severity=NoticeSeverity.CRITICAL,
        title=f"{name} Deadline Passed",
        message=(
            f"The {name.lower()} deadline was {days} day{_plural(days)} ago. "
            "Please contact your coordinator immediately."
        ),
    )


def _identification_notice(days: int) -> DeadlineNotice:
    if days <= DAY45_CRITICAL_DAYS:
        severity = NoticeSeverity.CRITICAL
        title = "Urgent: Property Identification Required"
        message = (
            f"You have {days} day{_plural(days)} left to identify your replacement "
            "properties. This deadline cannot be extended."
        )
    elif days <= DAY45_WARNING_DAYS:
        severity = NoticeSeverity.WARNING
        title = "Important: Identify Your Replacement Properties"
        message = (
            f"You have {days} days to identify your replacement properties. "
            "Start your property search now to avoid missing this deadline."
        )
    else:
        severity = NoticeSeverity.INFO
        title = "45-Day Identification Period Active"
        message = (
            f"You have {days} days to identify your replacement properties."
        )
    return DeadlineNotice(DAY45_LABEL, days, False, severity, title, message)


def _completion_notice(days: int) -> DeadlineNotice:
    if days <= DAY180_CRITICAL_DAYS:
        severity = NoticeSeverity.CRITICAL
        title = "Urgent: Exchange Completion Required"
        message = (
            f"You have {days} day{_plural(days)} left to complete your exchange. "
            "Ensure all closing documents are ready."
        )
    elif days <= DAY180_WARNING_DAYS:
        severity = NoticeSeverity.WARNING
        title = "Exchange Completion Approaching"
        message = (
            f"You have {days} days to complete your exchange. "
            "Work with your coordinator to prepare for closing."
        )
    else:
        severity = NoticeSeverity.INFO
        title = "180-Day Exchange Period Active"
        message = f"You have {days} days to complete your exchange."
    return DeadlineNotice(DAY180_LABEL, days, False, severity, title, message)


def deadline_notice(deadlines: DeadlineSet, now: Optional[Any] = None) -> Optional[DeadlineNotice]:
    """
    Countdown notice for the most relevant deadline.

    Selection order: live 45-day, live 180-day, lapsed 45-day, lapsed
    180-day. Returns None when no deadline is recorded.
    """
    reference = normalise_now(now)

    live = days_remaining(deadlines, reference)
    if live is not None:
        if live.label == DAY45_LABEL:
            return _identification_notice(live.days)
        return _completion_notice(live.days)

    if deadlines.day45 is not None:
        days = (reference - deadlines.day45).days
        return _overdue_notice(DAY45_LABEL, "45-Day Identification", days)

    if deadlines.day180 is not None:
        days = (reference - deadlines.day180).days
        return _overdue_notice(DAY180_LABEL, "180-Day Exchange Completion", days)

    return None


# =============================================================================
# Progress
# =============================================================================


def clamp_progress(value: Any) -> int:
    """Clamp a stored progress value to a 0-100 integer; unusable -> 0."""
    number = as_number(value)
    if number is None:
        return PROGRESS_MIN
    return max(PROGRESS_MIN, min(PROGRESS_MAX, int(round(number))))


def display_progress(record: Any) -> int:
    """Stored progress of an exchange, ready for display."""
    return clamp_progress(resolve(record, PROGRESS).value)
