"""Lightweight state transitions for SQLAlchemy models and plain objects."""

from litestate.core.enums import TransitionOutcome
from litestate.core.exceptions import (
    ConfigurationError,
    LiteStateException,
    PersistenceError,
    TransitionError,
    UnknownTransitionError,
)
from litestate.core.logging_config import configure_logging
from litestate.database.persistence import AttributePersistence, SQLAlchemyPersistence
from litestate.events.notifier import Notifier, notifications
from litestate.models.mixin import StatefulMixin
from litestate.orchestration.executor import TransitionExecutor
from litestate.orchestration.registry import TransitionDef, TransitionRegistry, registry_for

__version__ = "0.1.0"

__all__ = [
    "AttributePersistence",
    "ConfigurationError",
    "LiteStateException",
    "Notifier",
    "PersistenceError",
    "SQLAlchemyPersistence",
    "StatefulMixin",
    "TransitionDef",
    "TransitionError",
    "TransitionExecutor",
    "TransitionOutcome",
    "TransitionRegistry",
    "UnknownTransitionError",
    "__version__",
    "configure_logging",
    "notifications",
    "registry_for",
]
