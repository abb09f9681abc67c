"""Event schema module."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from litestate.core.enums import TransitionOutcome


class TransitionEventRecord(BaseModel):
    """JSON-safe projection of a published transition event."""

    name: str
    entity_type: str
    entity_id: str | None = None
    field: str | None = None
    from_state: str | None = None
    to_state: str
    event: str
    outcome: TransitionOutcome
    timestamp: datetime

    @classmethod
    def from_payload(cls, name: str, payload: dict[str, Any]) -> "TransitionEventRecord":
        entity_id = payload.get("entity_id")
        return cls(
            name=name,
            entity_type=payload["entity_type"],
            entity_id=str(entity_id) if entity_id is not None else None,
            field=payload.get("field"),
            from_state=payload.get("from_state"),
            to_state=payload["to_state"],
            event=payload["event"],
            outcome=payload["outcome"],
            timestamp=payload["timestamp"],
        )
