"""
Stage Determination Engine - Ordered Business Rules

Derives exactly one lifecycle Stage from an exchange record.

The raw business states are not mutually exclusive (a record can carry both
a rel-contract date and a proceeds-received date), so rules are evaluated
in a fixed order from most final to least final and the FIRST applicable
rule wins. The order is the business contract:

1. Failed exchange flag            -> CANCELLED
2. Day 180 elapsed                 -> COMPLETED
3. Rep docs drafted                -> UNDER_CONTRACT
4. Identified flag                 -> PROPERTY_IDENTIFIED
5. Day 45 elapsed                  -> IDENTIFICATION_OPEN
6. Proceeds received               -> FUNDS_RECEIVED
7. Close of escrow                 -> EXCHANGE_CREATED
8. Rel contract date               -> STARTED
9. Stored status (default PENDING)

A failed exchange therefore never appears completed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Final, Optional

from core.exchange.coercion import as_text, is_truthy, normalise_now, parse_date
from core.exchange.models import ResolvedField, Stage, StageDecision, StageInfo
from core.exchange.resolver import (
    CLOSE_OF_ESCROW,
    DAY_45,
    DAY_180,
    EXCHANGE_AGREEMENT_DRAFTED,
    FAILED_EXCHANGE,
    IDENTIFIED,
    PROCEEDS_RECEIVED,
    REL_CONTRACT_DATE,
    REP_DOCS_DRAFTED,
    STATUS,
    resolve_many,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Stage Metadata
# =============================================================================

STAGE_INFO: Final[dict[Stage, StageInfo]] = {
    Stage.PENDING: StageInfo(
        Stage.PENDING, "Pending", 0,
        "Exchange record exists but no lifecycle activity has been recorded",
    ),
    Stage.STARTED: StageInfo(
        Stage.STARTED, "Started", 1,
        "Relinquished property is under contract",
    ),
    Stage.EXCHANGE_CREATED: StageInfo(
        Stage.EXCHANGE_CREATED, "Exchange Created", 2,
        "Relinquished property sale has closed escrow",
    ),
    Stage.FUNDS_RECEIVED: StageInfo(
        Stage.FUNDS_RECEIVED, "Funds Received", 3,
        "Exchange proceeds confirmed in the qualified intermediary account",
    ),
    Stage.IDENTIFICATION_OPEN: StageInfo(
        Stage.IDENTIFICATION_OPEN, "Identification Period", 4,
        "45-day identification window has passed without a recorded identification",
    ),
    Stage.PROPERTY_IDENTIFIED: StageInfo(
        Stage.PROPERTY_IDENTIFIED, "Properties Identified", 5,
        "Replacement properties have been identified and documented",
    ),
    Stage.UNDER_CONTRACT: StageInfo(
        Stage.UNDER_CONTRACT, "Under Contract", 6,
        "Replacement property documents have been drafted",
    ),
    Stage.COMPLETED: StageInfo(
        Stage.COMPLETED, "Exchange Completed", 7,
        "180-day exchange period has ended",
    ),
    Stage.CANCELLED: StageInfo(
        Stage.CANCELLED, "Exchange Cancelled", 99,
        "Exchange failed, was cancelled, or missed its deadlines",
    ),
}


def stage_info(stage: Stage) -> StageInfo:
    """Display metadata for a stage."""
    return STAGE_INFO[stage]


# =============================================================================
# Stored Status Mapping
# =============================================================================

# Legacy status values written by earlier versions of the case system
LEGACY_STATUS_MAP: Final[dict[str, Stage]] = {
    "45D": Stage.IDENTIFICATION_OPEN,
    "180D": Stage.PROPERTY_IDENTIFIED,
    "ACTIVE": Stage.STARTED,
    "OPEN": Stage.STARTED,
    "IN_PROGRESS": Stage.STARTED,
    "COMPLETE": Stage.COMPLETED,
    "CLOSED": Stage.COMPLETED,
    "TERMINATED": Stage.CANCELLED,
    "CANCELED": Stage.CANCELLED,
    "FAILED": Stage.CANCELLED,
    "ON_HOLD": Stage.PENDING,
    "DRAFT": Stage.PENDING,
    "NEW": Stage.PENDING,
}


def stage_from_status(status: Any) -> Optional[Stage]:
    """
    Map a stored status value to a Stage.

    Stage names match case-insensitively with spaces or hyphens in place of
    underscores ("Under Contract" -> UNDER_CONTRACT). Legacy values go
    through LEGACY_STATUS_MAP. Anything else returns None.
    """
    text = as_text(status)
    if text is None:
        return None
    key = text.upper().replace("-", "_").replace(" ", "_")
    if key in Stage.__members__:
        return Stage[key]
    if key in LEGACY_STATUS_MAP:
        return LEGACY_STATUS_MAP[key]
    logger.debug("Unrecognised stored status %r", status)
    return None


# =============================================================================
# Rules
# =============================================================================

# Labels every evaluation resolves, in a stable order for the audit trail
STAGE_FACT_LABELS: Final[tuple[str, ...]] = (
    FAILED_EXCHANGE,
    DAY_180,
    DAY_45,
    PROCEEDS_RECEIVED,
    CLOSE_OF_ESCROW,
    IDENTIFIED,
    REP_DOCS_DRAFTED,
    REL_CONTRACT_DATE,
    EXCHANGE_AGREEMENT_DRAFTED,
    STATUS,
)


@dataclass(frozen=True)
class StageFacts:
    """Typed view of the resolved inputs the rules read."""

    failed: bool
    day180: Optional[datetime]
    day45: Optional[datetime]
    proceeds_received: Optional[datetime]
    close_of_escrow: Optional[datetime]
    identified: bool
    rep_docs_drafted: Optional[datetime]
    rel_contract_date: Optional[datetime]
    exchange_agreement_drafted: bool
    stored_status: Optional[Stage]

    @classmethod
    def from_resolved(cls, resolved: dict[str, ResolvedField]) -> "StageFacts":
        return cls(
            failed=is_truthy(resolved[FAILED_EXCHANGE].value),
            day180=parse_date(resolved[DAY_180].value),
            day45=parse_date(resolved[DAY_45].value),
            proceeds_received=parse_date(resolved[PROCEEDS_RECEIVED].value),
            close_of_escrow=parse_date(resolved[CLOSE_OF_ESCROW].value),
            identified=is_truthy(resolved[IDENTIFIED].value),
            rep_docs_drafted=parse_date(resolved[REP_DOCS_DRAFTED].value),
            rel_contract_date=parse_date(resolved[REL_CONTRACT_DATE].value),
            exchange_agreement_drafted=is_truthy(resolved[EXCHANGE_AGREEMENT_DRAFTED].value),
            stored_status=stage_from_status(resolved[STATUS].value),
        )


@dataclass(frozen=True)
class StageRule:
    """One rule: a name, a predicate over facts and "now", and its stage."""

    name: str
    applies: Callable[[StageFacts, datetime], bool]
    stage: Stage


def _elapsed(deadline: Optional[datetime], now: datetime) -> bool:
    return deadline is not None and deadline < now


# Evaluated top to bottom; do not reorder.
STAGE_RULES: Final[tuple[StageRule, ...]] = (
    StageRule("failed_exchange", lambda f, now: f.failed, Stage.CANCELLED),
    StageRule("day180_elapsed", lambda f, now: _elapsed(f.day180, now), Stage.COMPLETED),
    StageRule("rep_docs_drafted", lambda f, now: f.rep_docs_drafted is not None, Stage.UNDER_CONTRACT),
    StageRule("identified", lambda f, now: f.identified, Stage.PROPERTY_IDENTIFIED),
    StageRule("day45_elapsed", lambda f, now: _elapsed(f.day45, now), Stage.IDENTIFICATION_OPEN),
    StageRule("proceeds_received", lambda f, now: f.proceeds_received is not None, Stage.FUNDS_RECEIVED),
    StageRule("close_of_escrow", lambda f, now: f.close_of_escrow is not None, Stage.EXCHANGE_CREATED),
    StageRule("rel_contract", lambda f, now: f.rel_contract_date is not None, Stage.STARTED),
)

STORED_STATUS_RULE: Final[str] = "stored_status"
DEFAULT_RULE: Final[str] = "default"


# =============================================================================
# Public API
# =============================================================================


def explain_stage(record: Any, now: Optional[Any] = None) -> StageDecision:
    """
    Determine the stage and report which rule fired.

    Args:
        record: Exchange record snapshot
        now: Reference instant (default: current UTC time)

    Returns:
        StageDecision with the stage, the rule name and the resolved facts
    """
    reference = normalise_now(now)
    resolved = resolve_many(record, STAGE_FACT_LABELS)
    facts = StageFacts.from_resolved(resolved)

    for rule in STAGE_RULES:
        if rule.applies(facts, reference):
            return StageDecision(stage=rule.stage, rule=rule.name, facts=resolved)

    if facts.stored_status is not None:
        return StageDecision(stage=facts.stored_status, rule=STORED_STATUS_RULE, facts=resolved)

    return StageDecision(stage=Stage.PENDING, rule=DEFAULT_RULE, facts=resolved)


def determine_stage(record: Any, now: Optional[Any] = None) -> Stage:
    """
    Derive the lifecycle stage of an exchange.

    Total function: always returns exactly one Stage and never raises on
    absent or malformed data.
    """
    return explain_stage(record, now).stage
