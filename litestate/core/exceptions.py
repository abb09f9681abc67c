"""Custom exceptions for the litestate engine."""

from __future__ import annotations

from typing import Any


class LiteStateException(Exception):
    """Base exception for litestate."""

    pass


class ConfigurationError(LiteStateException):
    """Raised when a field, transition or runtime setting is invalid."""

    pass


class UnknownTransitionError(ConfigurationError):
    """Raised when a transition name was never declared for an entity type."""

    def __init__(self, entity_type: str | None, name: str) -> None:
        self.entity_type = entity_type
        self.name = name
        super().__init__(f"Unknown transition {name!r} for {entity_type or 'unbound registry'}")


class PersistenceError(LiteStateException):
    """Raised when the persistence collaborator cannot serve an entity."""

    pass


class TransitionError(LiteStateException):
    """Raised when a transition is not allowed from the entity's current state."""

    def __init__(
        self,
        entity: Any,
        from_state: str | None,
        to_state: str,
        event: str,
        field: str | None = None,
        entity_id: Any = None,
    ) -> None:
        self.entity = entity
        self.from_state = from_state
        self.to_state = to_state
        self.event = event
        self.field = field
        if entity_id is None:
            entity_id = getattr(entity, "id", None)
        self.entity_id = entity_id
        super().__init__(
            f"Invalid transition: {type(entity).__name__} #{entity_id} "
            f"from {from_state!r} -> {to_state!r} on {event}"
        )

    @property
    def to(self) -> str:
        return self.to_state
