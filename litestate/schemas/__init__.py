"""Pydantic views over registry metadata and transition events."""

from litestate.schemas.events import TransitionEventRecord
from litestate.schemas.transitions import TransitionSchema

__all__ = [
    "TransitionEventRecord",
    "TransitionSchema",
]
