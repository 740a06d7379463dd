"""Structured logging helpers for engine events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class LogContext:
    """Normalized context fields expected in structured logs."""

    job_id: int | None = None
    partner_id: int | None = None
    callout_id: int | None = None
    actor: str | None = None
    trace_id: str | None = None


def build_log_event(event: str, context: LogContext, **fields: Any) -> dict[str, Any]:
    """Build a normalized structured log payload.

    The result is meant to be passed as ``extra=`` to a logger call, so it
    always carries the ``event`` key picked up by ``JsonFormatter``.
    """
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "job_id": context.job_id,
        "partner_id": context.partner_id,
        "callout_id": context.callout_id,
        "actor": context.actor,
        "trace_id": context.trace_id,
    }
    payload.update(fields)
    return payload
