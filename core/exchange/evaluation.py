"""
Exchange Evaluation - One-Call Assembly of Everything the Engine Derives

Runs the stage engine, deadline calculator and participant extractor once
against the same reference instant, producing a view model ready for an API
response or a dashboard row.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from core.exchange.coercion import as_text, normalise_now
from core.exchange.deadlines import (
    compute_deadlines,
    days_remaining,
    deadline_notice,
    display_progress,
    project_deadlines,
)
from core.exchange.models import ExchangeEvaluation
from core.exchange.participants import DEFAULT_OPERATOR_DOMAINS, extract_participants
from core.exchange.resolver import STATUS
from core.exchange.stage import explain_stage, stage_info


def evaluate_exchange(
    record: Any,
    now: Optional[Any] = None,
    operator_domains: Iterable[str] = DEFAULT_OPERATOR_DOMAINS,
) -> ExchangeEvaluation:
    """
    Evaluate a single exchange record.

    The countdown notice is suppressed once the exchange has reached a
    terminal stage.

    Args:
        record: Exchange record snapshot (never mutated)
        now: Reference instant (default: current UTC time)
        operator_domains: Email domains identifying internal coordinators

    Returns:
        ExchangeEvaluation
    """
    reference = normalise_now(now)

    decision = explain_stage(record, reference)
    deadlines = compute_deadlines(record)
    notice = None if decision.stage.is_terminal else deadline_notice(deadlines, reference)

    return ExchangeEvaluation(
        evaluated_at=reference,
        stage=decision.stage,
        stage_info=stage_info(decision.stage),
        stage_rule=decision.rule,
        stored_status=as_text(decision.facts[STATUS].value),
        deadlines=deadlines,
        projected_deadlines=project_deadlines(deadlines),
        days_remaining=days_remaining(deadlines, reference),
        notice=notice,
        participants=extract_participants(record, operator_domains),
        progress=display_progress(record),
    )
