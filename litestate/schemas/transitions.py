"""Transition schema module."""

from __future__ import annotations

from pydantic import BaseModel, Field


class TransitionSchema(BaseModel):
    name: str
    field: str
    to_state: str
    from_states: list[str] = Field(min_length=1)
    timestamp_field: str | None = None
    guard: str | None = None
    effect: str | None = None
