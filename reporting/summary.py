"""
Plain-text rendering of an exchange evaluation.

Used by the CLI; one line per fact, dates in US layout.
"""

from __future__ import annotations

from typing import List

from core.exchange import DeadlineSet, ExchangeEvaluation
from utils.formatting import format_days, format_percent, format_us_date


def _deadline_lines(deadlines: DeadlineSet, projected: DeadlineSet) -> List[str]:
    lines = []
    for label, recorded, estimate in (
        ("45-Day Deadline", deadlines.day45, projected.day45),
        ("180-Day Deadline", deadlines.day180, projected.day180),
    ):
        if recorded is None and estimate is not None:
            lines.append(f"  {label:<20} {format_us_date(estimate)} (projected)")
        else:
            lines.append(f"  {label:<20} {format_us_date(recorded)}")
    lines.append(f"  {'Close of Escrow':<20} {format_us_date(deadlines.close_of_escrow)}")
    lines.append(f"  {'Proceeds Received':<20} {format_us_date(deadlines.proceeds_received)}")
    return lines


def render_summary(evaluation: ExchangeEvaluation) -> str:
    """Render an evaluation as a multi-line text summary."""
    lines = [
        f"Stage:     {evaluation.stage_info.name} ({evaluation.stage.value})",
        f"Rule:      {evaluation.stage_rule}",
        f"Stored:    {evaluation.stored_status or '-'}",
        f"Progress:  {format_percent(evaluation.progress)}",
        "",
        "Deadlines:",
    ]
    lines.extend(_deadline_lines(evaluation.deadlines, evaluation.projected_deadlines))

    remaining = evaluation.days_remaining
    if remaining is not None:
        flag = " URGENT" if remaining.urgent else ""
        lines.append(f"  {remaining.label} deadline in {format_days(remaining.days)}{flag}")

    if evaluation.notice is not None:
        lines.append("")
        lines.append(f"[{evaluation.notice.severity.value.upper()}] {evaluation.notice.title}")
        lines.append(f"  {evaluation.notice.message}")

    lines.append("")
    lines.append("Participants:")
    if not evaluation.participants:
        lines.append("  (none)")
    for participant in evaluation.participants:
        details = []
        if participant.title:
            details.append(participant.title)
        if participant.email:
            details.append(participant.email)
        if participant.escrow_number:
            details.append(f"Escrow #{participant.escrow_number}")
        if participant.is_referral:
            details.append("Referral")
        suffix = f" ({', '.join(details)})" if details else ""
        lines.append(f"  {participant.role:<20} {participant.display_name}{suffix}")

    return "\n".join(lines)
