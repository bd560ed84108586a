"""
Exchange Lifecycle & Deadline Resolution Engine

Pure functions over a single §1031 exchange record snapshot:
- Field Resolver: one precedence order across canonical, alias and
  imported custom-field sources
- Stage Determination Engine: ordered first-match business rules
- Deadline & Progress Calculator: 45/180-day windows and urgency
- Participant Roster Extractor: deduplicated, role-tagged roster

No component performs I/O or mutates its input.
"""

from .models import (
    Stage,
    SourceKind,
    ParticipantType,
    NoticeSeverity,
    ResolvedField,
    DeadlineSet,
    DaysRemaining,
    DeadlineNotice,
    Participant,
    StageInfo,
    StageDecision,
    ExchangeEvaluation,
)
from .coercion import is_truthy, parse_date
from .resolver import FIELD_CANDIDATES, FieldCandidates, known_labels, resolve, resolve_many
from .stage import determine_stage, explain_stage, stage_from_status, stage_info
from .deadlines import (
    compute_deadlines,
    days_remaining,
    deadline_notice,
    display_progress,
    project_deadlines,
)
from .participants import DEFAULT_OPERATOR_DOMAINS, extract_participants
from .evaluation import evaluate_exchange

__all__ = [
    # Models
    "Stage",
    "SourceKind",
    "ParticipantType",
    "NoticeSeverity",
    "ResolvedField",
    "DeadlineSet",
    "DaysRemaining",
    "DeadlineNotice",
    "Participant",
    "StageInfo",
    "StageDecision",
    "ExchangeEvaluation",
    # Coercion
    "is_truthy",
    "parse_date",
    # Field Resolver
    "FIELD_CANDIDATES",
    "FieldCandidates",
    "known_labels",
    "resolve",
    "resolve_many",
    # Stage Engine
    "determine_stage",
    "explain_stage",
    "stage_from_status",
    "stage_info",
    # Deadlines & Progress
    "compute_deadlines",
    "days_remaining",
    "deadline_notice",
    "display_progress",
    "project_deadlines",
    # Participants
    "DEFAULT_OPERATOR_DOMAINS",
    "extract_participants",
    # Evaluation
    "evaluate_exchange",
]

__version__ = "1.0"
