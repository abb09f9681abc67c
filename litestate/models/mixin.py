"""Host mixin exposing the generic transition entry points on entities."""

from __future__ import annotations

from litestate.core.exceptions import ConfigurationError
from litestate.orchestration.registry import TransitionRegistry, registry_for


class StatefulMixin:
    """Mixin for SQLAlchemy models or plain classes carrying a TransitionRegistry."""

    @classmethod
    def transition_registry(cls) -> TransitionRegistry:
        registry = registry_for(cls)
        if registry is None:
            raise ConfigurationError(f"{cls.__name__} has no transition registry")
        return registry

    def invoke(self, name: str) -> bool:
        return self.transition_registry().invoke(self, name)

    def can_transition(self, name: str) -> bool:
        return self.transition_registry().can_transition(self, name)

    def permitted_transitions(self) -> list[str]:
        return self.transition_registry().permitted_transitions(self)
