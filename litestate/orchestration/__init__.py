"""Transition registry and executor."""

from litestate.orchestration.callbacks import Callback
from litestate.orchestration.executor import (
    TransitionAttempt,
    TransitionExecutor,
    get_default_executor,
    reset_default_executor,
)
from litestate.orchestration.fields import StateField
from litestate.orchestration.registry import (
    TransitionDef,
    TransitionMethod,
    TransitionRegistry,
    registry_for,
)

__all__ = [
    "Callback",
    "StateField",
    "TransitionAttempt",
    "TransitionDef",
    "TransitionExecutor",
    "TransitionMethod",
    "TransitionRegistry",
    "get_default_executor",
    "registry_for",
    "reset_default_executor",
]
