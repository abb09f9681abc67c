"""Transition executor: legality checks, atomic writes and outcome events."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock
from typing import Any

from litestate.core.config import get_config
from litestate.core.enums import TransitionOutcome
from litestate.core.exceptions import ConfigurationError, TransitionError
from litestate.database.persistence import Persistence, SQLAlchemyPersistence
from litestate.events.hooks import log_transition_event
from litestate.events.notifier import Notifier, notifications
from litestate.orchestration.registry import TransitionDef, TransitionRegistry, registry_for


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp helper."""
    return datetime.now(timezone.utc)


def utcnow_naive() -> datetime:
    """Return UTC now as naive datetime for legacy columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class TransitionAttempt:
    """One invocation's outcome; published as an event and then discarded."""

    entity: Any
    entity_type: str
    entity_id: Any
    field: str
    from_state: str | None
    to_state: str
    transition: str
    outcome: TransitionOutcome
    timestamp: datetime

    @property
    def event_name(self) -> str:
        return f"{self.entity_type}.{self.transition}.{self.outcome.value}"

    def to_payload(self) -> dict[str, Any]:
        return {
            "entity": self.entity,
            "entity_id": self.entity_id,
            "entity_type": self.entity_type,
            "field": self.field,
            "from_state": self.from_state,
            "to_state": self.to_state,
            "event": self.transition,
            "outcome": self.outcome.value,
            "timestamp": self.timestamp,
        }


class TransitionExecutor:
    """Stateless runtime protocol over an entity and its registry.

    The executor holds no per-entity state and takes no locks; two transitions
    on different fields of the same entity never wait on each other here.
    Serialising writes to the same row is left to the persistence layer.
    """

    def __init__(
        self,
        persistence: Persistence | None = None,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.persistence = persistence or SQLAlchemyPersistence()
        self.notifier = notifier or notifications
        if clock is None:
            clock = utcnow_naive if get_config().NAIVE_TIMESTAMPS else utcnow
        self.clock = clock

    @staticmethod
    def _registry(entity: Any, registry: TransitionRegistry | None) -> TransitionRegistry:
        resolved = registry or registry_for(entity)
        if resolved is None:
            raise ConfigurationError(f"{type(entity).__name__} has no transition registry")
        return resolved

    def _current_state(self, entity: Any, definition: TransitionDef) -> str | None:
        return definition.field.symbol(self.persistence.read(entity, definition.field.name))

    # ------------------------------------------------------------------
    # Probing
    # ------------------------------------------------------------------

    def can_transition(self, entity: Any, name: str, registry: TransitionRegistry | None = None) -> bool:
        """Return whether ``name`` would currently pass legality and guard checks.

        Unknown names and unset state yield ``False``.  Guard exceptions are
        not caught: guards are expected to be side-effect free and not to
        raise, and a guard that does raise surfaces to the caller.
        """
        definition = self._registry(entity, registry).lookup(name)
        if definition is None:
            return False

        current_state = self._current_state(entity, definition)
        if not definition.allows_from(current_state):
            return False
        return definition.guard is None or bool(definition.guard(entity))

    def permitted_transitions(self, entity: Any, registry: TransitionRegistry | None = None) -> list[str]:
        resolved = self._registry(entity, registry)
        return [name for name in resolved.names() if self.can_transition(entity, name, registry=resolved)]

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------

    def invoke(self, entity: Any, name: str, registry: TransitionRegistry | None = None) -> bool:
        """Run transition ``name`` on ``entity``.

        Returns ``True`` on success.  Raises ``TransitionError`` when the
        current state or the guard rejects the attempt, and re-raises any error
        from the write, the commit, the guard or the effect after rolling back.
        Exactly one outcome event is published before returning or raising.
        """
        resolved = self._registry(entity, registry)
        definition = resolved.get(name)
        entity_type = resolved.entity_type_for(entity)
        current_state = self._current_state(entity, definition)

        if not definition.allows_from(current_state):
            self._reject(entity, entity_type, definition, current_state)

        if definition.guard is not None:
            try:
                allowed = definition.guard(entity)
            except Exception:
                self._publish(entity, entity_type, definition, current_state, TransitionOutcome.FAILED)
                raise
            if not allowed:
                self._reject(entity, entity_type, definition, current_state)

        try:
            with self.persistence.unit_of_work(entity):
                values: dict[str, Any] = {definition.field.name: definition.field.coerce(definition.to_state)}
                if definition.timestamp_field:
                    values[definition.timestamp_field] = self.clock()
                self.persistence.write(entity, values)

                if definition.effect is not None:
                    definition.effect(entity)
        except Exception:
            self._publish(entity, entity_type, definition, current_state, TransitionOutcome.FAILED)
            raise

        self._publish(entity, entity_type, definition, current_state, TransitionOutcome.SUCCESS)
        return True

    def _reject(
        self,
        entity: Any,
        entity_type: str,
        definition: TransitionDef,
        current_state: str | None,
    ) -> None:
        self._publish(entity, entity_type, definition, current_state, TransitionOutcome.INVALID)
        raise TransitionError(
            entity=entity,
            from_state=current_state,
            to_state=definition.to_state,
            event=definition.name,
            field=definition.field.name,
            entity_id=self.persistence.identity(entity),
        )

    def _publish(
        self,
        entity: Any,
        entity_type: str,
        definition: TransitionDef,
        current_state: str | None,
        outcome: TransitionOutcome,
    ) -> None:
        attempt = TransitionAttempt(
            entity=entity,
            entity_type=entity_type,
            entity_id=self.persistence.identity(entity),
            field=definition.field.name,
            from_state=current_state,
            to_state=definition.to_state,
            transition=definition.name,
            outcome=outcome,
            timestamp=self.clock(),
        )
        payload = attempt.to_payload()
        log_transition_event(attempt.event_name, payload)
        self.notifier.publish(attempt.event_name, payload)


_default_executor: TransitionExecutor | None = None
_default_lock = Lock()


def get_default_executor() -> TransitionExecutor:
    """Process-wide executor: SQLAlchemy persistence and the default bus."""
    global _default_executor
    with _default_lock:
        if _default_executor is None:
            _default_executor = TransitionExecutor()
        return _default_executor


def reset_default_executor() -> None:
    global _default_executor
    with _default_lock:
        _default_executor = None
