"""
Exchange Lifecycle Engine - Core Business Logic

This package provides the exchange evaluation pipeline:
1. Field Resolution (canonical / alias / imported custom fields)
2. Stage Determination (ordered first-match rules)
3. Deadlines & Progress (45/180-day windows, urgency, countdown notice)
4. Participant Roster (ordered, role-tagged, deduplicated)
"""

from .exchange import (
    Stage,
    ResolvedField,
    DeadlineSet,
    DaysRemaining,
    DeadlineNotice,
    Participant,
    ExchangeEvaluation,
    resolve,
    determine_stage,
    compute_deadlines,
    days_remaining,
    display_progress,
    extract_participants,
    evaluate_exchange,
)

__all__ = [
    "Stage",
    "ResolvedField",
    "DeadlineSet",
    "DaysRemaining",
    "DeadlineNotice",
    "Participant",
    "ExchangeEvaluation",
    "resolve",
    "determine_stage",
    "compute_deadlines",
    "days_remaining",
    "display_progress",
    "extract_participants",
    "evaluate_exchange",
]
