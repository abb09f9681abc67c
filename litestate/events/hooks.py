"""Structured log line for every transition attempt."""

from __future__ import annotations

import logging
from typing import Any

from litestate.core.enums import TransitionOutcome
from litestate.core.logging import TransitionLogContext, build_log_event
from litestate.schemas.events import TransitionEventRecord

logger = logging.getLogger("litestate.events")

_LEVELS = {
    TransitionOutcome.SUCCESS: logging.INFO,
    TransitionOutcome.INVALID: logging.WARNING,
    TransitionOutcome.FAILED: logging.ERROR,
}


def build_transition_log(name: str, payload: dict[str, Any]) -> dict[str, Any]:
    """Build the structured log payload for one published transition event."""
    record = TransitionEventRecord.from_payload(name, payload)
    return build_log_event(
        event=f"transition.{record.outcome.value}",
        context=TransitionLogContext(
            entity_type=record.entity_type,
            entity_id=record.entity_id,
            field=record.field,
            transition=record.event,
        ),
        outcome=record.outcome.value,
        from_state=record.from_state,
        to_state=record.to_state,
        occurred_at=record.timestamp.isoformat(),
    )


def log_transition_event(name: str, payload: dict[str, Any]) -> None:
    """Log one attempt at INFO, WARNING or ERROR by outcome."""
    fields = build_transition_log(name, payload)
    level = _LEVELS.get(TransitionOutcome(fields["outcome"]), logging.INFO)
    message = fields.pop("event")
    fields.pop("timestamp", None)
    logger.log(level, message, extra={"event": message, **fields})
