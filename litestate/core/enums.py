"""Enums shared by the registry and executor."""

from __future__ import annotations

import enum


class TransitionOutcome(str, enum.Enum):
    """Terminal classification of a transition attempt."""

    SUCCESS = "success"
    INVALID = "invalid"  # rejected before any write
    FAILED = "failed"  # write, commit or effect raised
