"""
Data models for the Exchange Lifecycle Engine

Derived structures produced from a single exchange record snapshot.
Every instance is created fresh per evaluation and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional


# =============================================================================
# Enums
# =============================================================================


class Stage(Enum):
    """
    Derived lifecycle stage of an exchange.

    COMPLETED and CANCELLED are terminal. The engine is stateless and
    re-derives the stage on every call; callers that apply manual overrides
    must not re-derive afterwards.
    """

    PENDING = "PENDING"
    STARTED = "STARTED"
    EXCHANGE_CREATED = "EXCHANGE_CREATED"
    FUNDS_RECEIVED = "FUNDS_RECEIVED"
    IDENTIFICATION_OPEN = "IDENTIFICATION_OPEN"
    PROPERTY_IDENTIFIED = "PROPERTY_IDENTIFIED"
    UNDER_CONTRACT = "UNDER_CONTRACT"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (Stage.COMPLETED, Stage.CANCELLED)


class SourceKind(Enum):
    """Where a resolved value was found."""

    CANONICAL = "canonical"  # First-class field on the record
    ALIAS = "alias"  # Legacy / snake_case duplicate
    CUSTOM_FIELD = "custom_field"  # Third-party imported payload
    ABSENT = "absent"  # Not found anywhere


class ParticipantType(Enum):
    """Roster grouping for a participant."""

    PRIMARY = "primary"
    INTERNAL = "internal"
    REFERRAL = "referral"
    ESCROW = "escrow"
    TRANSACTION = "transaction"
    FINANCIAL = "financial"


class NoticeSeverity(Enum):
    """Severity of a deadline countdown notice."""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


# =============================================================================
# Resolved Field
# =============================================================================


@dataclass(frozen=True)
class ResolvedField:
    """
    The single best value for a canonical label.

    source_path records the exact location that supplied the value,
    e.g. "day_45" or "pp_data.custom_field_values[Day 45]".
    """

    label: str
    value: Any
    source_kind: SourceKind
    source_path: Optional[str] = None

    @classmethod
    def absent(cls, label: str) -> "ResolvedField":
        return cls(label=label, value=None, source_kind=SourceKind.ABSENT)

    @property
    def is_resolved(self) -> bool:
        return self.source_kind is not SourceKind.ABSENT

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "value": _serialise(self.value),
            "source_kind": self.source_kind.value,
            "source_path": self.source_path,
        }


# =============================================================================
# Deadlines
# =============================================================================


@dataclass(frozen=True)
class DeadlineSet:
    """
    Key exchange dates.

    day180 is expected to fall after day45, but source data may violate
    this and the values are reported exactly as given.
    """

    day45: Optional[datetime] = None
    day180: Optional[datetime] = None
    close_of_escrow: Optional[datetime] = None
    proceeds_received: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "day45": _serialise(self.day45),
            "day180": _serialise(self.day180),
            "close_of_escrow": _serialise(self.close_of_escrow),
            "proceeds_received": _serialise(self.proceeds_received),
        }


@dataclass(frozen=True)
class DaysRemaining:
    """Whole calendar days until the next live statutory deadline."""

    days: int
    urgent: bool
    label: str  # "45-Day" or "180-Day"
    target: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "days": self.days,
            "urgent": self.urgent,
            "label": self.label,
            "target": _serialise(self.target),
        }


@dataclass(frozen=True)
class DeadlineNotice:
    """Countdown message for the most relevant deadline, live or lapsed."""

    label: str
    days: int
    is_overdue: bool
    severity: NoticeSeverity
    title: str
    message: str

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "days": self.days,
            "is_overdue": self.is_overdue,
            "severity": self.severity.value,
            "title": self.title,
            "message": self.message,
        }


# =============================================================================
# Participants
# =============================================================================


@dataclass(frozen=True)
class Participant:
    """A person or organisation attached to the exchange."""

    display_name: str
    role: str
    type: ParticipantType
    email: Optional[str] = None
    escrow_number: Optional[str] = None
    is_referral: Optional[bool] = None
    title: Optional[str] = None  # Signatory title, client only

    def to_dict(self) -> dict:
        data = {
            "display_name": self.display_name,
            "role": self.role,
            "type": self.type.value,
        }
        # Optional attributes are omitted rather than emitted as null
        if self.email is not None:
            data["email"] = self.email
        if self.escrow_number is not None:
            data["escrow_number"] = self.escrow_number
        if self.is_referral is not None:
            data["is_referral"] = self.is_referral
        if self.title is not None:
            data["title"] = self.title
        return data


# =============================================================================
# Stage Metadata & Decisions
# =============================================================================


@dataclass(frozen=True)
class StageInfo:
    """Display metadata for a stage."""

    stage: Stage
    name: str
    order: int
    description: str

    @property
    def is_terminal(self) -> bool:
        return self.stage.is_terminal

    def to_dict(self) -> dict:
        return {
            "stage": self.stage.value,
            "name": self.name,
            "order": self.order,
            "description": self.description,
            "is_terminal": self.is_terminal,
        }


@dataclass(frozen=True)
class StageDecision:
    """
    Outcome of stage determination with its audit trail.

    rule names the rule that fired; facts holds the resolved inputs
    every rule looked at.
    """

    stage: Stage
    rule: str
    facts: dict[str, ResolvedField] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "stage": self.stage.value,
            "rule": self.rule,
            "facts": {name: fact.to_dict() for name, fact in self.facts.items()},
        }


# =============================================================================
# Full Evaluation
# =============================================================================


@dataclass(frozen=True)
class ExchangeEvaluation:
    """Everything the engine derives for one record at one instant."""

    evaluated_at: datetime
    stage: Stage
    stage_info: StageInfo
    stage_rule: str
    stored_status: Optional[str]
    deadlines: DeadlineSet
    projected_deadlines: DeadlineSet
    days_remaining: Optional[DaysRemaining]
    notice: Optional[DeadlineNotice]
    participants: list[Participant]
    progress: int

    def to_dict(self) -> dict:
        return {
            "evaluated_at": _serialise(self.evaluated_at),
            "stage": self.stage.value,
            "stage_info": self.stage_info.to_dict(),
            "stage_rule": self.stage_rule,
            "stored_status": self.stored_status,
            "deadlines": self.deadlines.to_dict(),
            "projected_deadlines": self.projected_deadlines.to_dict(),
            "days_remaining": self.days_remaining.to_dict() if self.days_remaining else None,
            "notice": self.notice.to_dict() if self.notice else None,
            "participants": [p.to_dict() for p in self.participants],
            "progress": self.progress,
        }


def _serialise(value: Any) -> Any:
    """Make a resolved value JSON-safe."""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value
