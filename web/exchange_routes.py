"""
Exchange Engine Routes - JSON API over the Lifecycle Engine

Callers post an exchange record snapshot they already hold; the routes
report the derived stage, deadlines and roster. Nothing is fetched or
stored here.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from core.exchange import (
    evaluate_exchange,
    explain_stage,
    known_labels,
    parse_date,
    resolve_many,
)
from core.exchange.coercion import utc_now
from core.exchange.participants import DEFAULT_OPERATOR_DOMAINS


# =============================================================================
# Router Setup
# =============================================================================

router = APIRouter(prefix="/api/exchanges", tags=["exchanges"])


# =============================================================================
# Request Models
# =============================================================================


class EvaluateRequest(BaseModel):
    """An exchange record plus an optional reference instant."""

    record: Dict[str, Any]
    now: Optional[str] = Field(None, description="ISO-8601 reference instant")


class ResolveRequest(BaseModel):
    """An exchange record and the labels to resolve (all when empty)."""

    record: Dict[str, Any]
    labels: List[str] = Field(default_factory=list)


# =============================================================================
# Helpers
# =============================================================================


def parse_reference_time(now: Optional[str]) -> datetime:
    """
    Parse the optional "now" of a request.

    Raises:
        HTTPException(400) if a value is given but cannot be parsed
    """
    if now is None or not now.strip():
        return utc_now()
    parsed = parse_date(now)
    if parsed is None:
        raise HTTPException(status_code=400, detail=f"Invalid 'now' timestamp: {now}")
    return parsed


def operator_domains(request: Request) -> List[str]:
    """Operator email domains from app config, falling back to the default."""
    config = getattr(request.app.state, "config", None)
    if config is None or not config.operator_email_domains:
        return list(DEFAULT_OPERATOR_DOMAINS)
    return list(config.operator_email_domains)


# =============================================================================
# Routes
# =============================================================================


@router.post("/evaluate")
async def evaluate(request: Request, body: EvaluateRequest):
    """
    Evaluate an exchange record.

    Returns stage, deadlines, days remaining, countdown notice,
    participants and display progress.
    """
    reference = parse_reference_time(body.now)
    evaluation = evaluate_exchange(body.record, reference, operator_domains(request))
    return evaluation.to_dict()


@router.post("/stage")
async def stage(body: EvaluateRequest):
    """Return the derived stage, the rule that fired and the facts it read."""
    reference = parse_reference_time(body.now)
    return explain_stage(body.record, reference).to_dict()


@router.post("/resolve")
async def resolve_fields(body: ResolveRequest):
    """Resolve labels against a record and report where each value came from."""
    labels = body.labels or known_labels()
    resolved = resolve_many(body.record, labels)
    return {"fields": [field.to_dict() for field in resolved.values()]}


@router.get("/labels")
async def labels():
    """List the canonical labels the resolver knows."""
    return {"labels": known_labels()}
