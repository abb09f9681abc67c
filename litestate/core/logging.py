"""Structured logging helpers for transition events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class TransitionLogContext:
    """Normalized context fields expected in transition logs."""

    entity_type: str | None = None
    entity_id: str | None = None
    field: str | None = None
    transition: str | None = None


def build_log_event(event: str, context: TransitionLogContext, **fields: Any) -> dict[str, Any]:
    """Build a normalized structured log payload."""
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "entity_type": context.entity_type,
        "entity_id": context.entity_id,
        "field": context.field,
        "transition": context.transition,
    }
    payload.update(fields)
    return payload
