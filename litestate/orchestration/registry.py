"""Per-entity-type transition registry.

A registry is built once while the host class is being defined, validated
declaration by declaration, and frozen when it is bound to its class.  After
that it is read-only and safe to share between threads without locking.

    class Order(StatefulMixin, Base):
        __tablename__ = "orders"
        status: Mapped[OrderStatus] = mapped_column(Enum(OrderStatus))
        processing_at: Mapped[datetime | None] = mapped_column(DateTime)

        states = TransitionRegistry(default_field="status")
        states.declare_field("status", OrderStatus)
        process = states.declare_transition("process", to="processing", from_="pending", timestamp=True)
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from litestate.core.config import get_config
from litestate.core.exceptions import ConfigurationError, UnknownTransitionError
from litestate.orchestration.callbacks import Callback
from litestate.orchestration.fields import StateField, to_symbol
from litestate.schemas.transitions import TransitionSchema

if TYPE_CHECKING:
    from litestate.orchestration.executor import TransitionExecutor

logger = logging.getLogger(__name__)

REGISTRY_ATTRIBUTE = "__transition_registry__"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NON_WORD = re.compile(r"\W+")

StateValue = Any


def entity_type_name(cls: type) -> str:
    """Snake-case event prefix for a host class (``MultiStateOrder`` -> ``multi_state_order``)."""
    return _CAMEL_BOUNDARY.sub("_", cls.__name__).lower()


def derive_timestamp_field(to_state: str, suffix: str) -> str:
    """Timestamp attribute for ``timestamp=True``: ``<to_state><suffix>``."""
    stem = _NON_WORD.sub("_", to_state).strip("_").lower()
    name = f"{stem}{suffix}"
    if not name.isidentifier():
        raise ConfigurationError(f"Cannot derive a timestamp field from state {to_state!r}; pass an explicit name")
    return name


@dataclass(frozen=True)
class TransitionDef:
    """Immutable definition of one named transition."""

    name: str
    field: StateField
    to_state: str
    from_states: tuple[str, ...]
    timestamp: bool | str | None = None
    timestamp_field: str | None = None
    guard: Callback | None = None
    effect: Callback | None = None
    field_explicit: bool = False

    def allows_from(self, state: str | None) -> bool:
        return state is not None and state in self.from_states

    def to_schema(self) -> TransitionSchema:
        return TransitionSchema(
            name=self.name,
            field=self.field.name,
            to_state=self.to_state,
            from_states=list(self.from_states),
            timestamp_field=self.timestamp_field,
            guard=self.guard.describe() if self.guard else None,
            effect=self.effect.describe() if self.effect else None,
        )


class TransitionMethod:
    """Per-name wrapper exposed on the host class; forwards to the registry."""

    def __init__(self, registry: "TransitionRegistry", name: str) -> None:
        self.registry = registry
        self.name = name

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self

        def invoke() -> bool:
            return self.registry.invoke(instance, self.name)

        invoke.__name__ = self.name
        invoke.__qualname__ = f"{type(instance).__qualname__}.{self.name}"
        return invoke

    def __call__(self, entity: Any) -> bool:
        return self.registry.invoke(entity, self.name)

    def __repr__(self) -> str:
        return f"<TransitionMethod {self.name!r}>"


class TransitionRegistry:
    """Declared fields and transitions for one entity type."""

    def __init__(
        self,
        default_field: str | None = None,
        *,
        executor: "TransitionExecutor | None" = None,
        entity_type: str | None = None,
    ) -> None:
        self._fields: dict[str, StateField] = {}
        self._transitions: dict[str, TransitionDef] = {}
        self._default_field = default_field
        self._executor = executor
        self._entity_type = entity_type
        self._owner: type | None = None
        self._frozen = False

    # ------------------------------------------------------------------
    # Declaration
    # ------------------------------------------------------------------

    def declare_field(self, name: str, domain: type[enum.Enum] | Iterable[StateValue]) -> StateField:
        self._ensure_mutable()
        if name in self._fields:
            raise ConfigurationError(f"State field {name} is already declared")
        field = StateField.from_domain(name, domain)
        self._fields[name] = field
        return field

    def set_default_field(self, name: str) -> None:
        self._ensure_mutable()
        self._default_field = name

    def declare_transition(
        self,
        name: str,
        *,
        to: StateValue,
        from_: StateValue | Iterable[StateValue],
        field: str | None = None,
        timestamp: bool | str | None = None,
        guard: str | Callable[[Any], Any] | None = None,
        effect: str | Callable[[Any], Any] | None = None,
    ) -> TransitionMethod:
        self._ensure_mutable()
        if not isinstance(name, str) or not name.isidentifier():
            raise ConfigurationError(f"Transition name must be an identifier, got {name!r}")
        if name in self._transitions:
            raise ConfigurationError(f"duplicate transition name: {name}")

        state_field = self._resolve_field(field)
        to_state = self._validate_state(to, state_field)
        sources = [from_] if isinstance(from_, (str, enum.Enum)) else list(from_)
        if not sources:
            raise ConfigurationError(f"Transition {name} declares no source states")
        from_states: list[str] = []
        for source in sources:
            symbol = self._validate_state(source, state_field)
            if symbol not in from_states:
                from_states.append(symbol)

        definition = TransitionDef(
            name=name,
            field=state_field,
            to_state=to_state,
            from_states=tuple(from_states),
            timestamp=timestamp,
            timestamp_field=self._resolve_timestamp(timestamp, to_state),
            guard=Callback.from_spec(guard),
            effect=Callback.from_spec(effect),
            field_explicit=field is not None,
        )
        self._transitions[name] = definition
        logger.debug(
            "registry.transition.declared",
            extra={"event": "registry.transition.declared", "transition": name, "field": state_field.name},
        )
        return TransitionMethod(self, name)

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise ConfigurationError(f"Transition registry for {self._entity_type} is frozen")

    def _resolve_field(self, field: str | None) -> StateField:
        field_name = field or self._default_field
        if field_name is None:
            raise ConfigurationError("no state field specified: declare a default field or pass field=")
        if field_name not in self._fields:
            raise ConfigurationError(f"Unknown state field {field_name}; declare it with declare_field() first")
        return self._fields[field_name]

    @staticmethod
    def _validate_state(value: StateValue, field: StateField) -> str:
        symbol = to_symbol(value)
        if symbol is None or symbol not in field.domain:
            raise ConfigurationError(
                f"invalid state value {symbol!r} for {field.name}. Valid states: {', '.join(field.domain)}"
            )
        return symbol

    @staticmethod
    def _resolve_timestamp(timestamp: bool | str | None, to_state: str) -> str | None:
        if timestamp is None or timestamp is False:
            return None
        if timestamp is True:
            return derive_timestamp_field(to_state, get_config().TIMESTAMP_SUFFIX)
        if isinstance(timestamp, str) and timestamp.isidentifier():
            return timestamp
        raise ConfigurationError(f"timestamp must be True, None or an attribute name, got {timestamp!r}")

    # ------------------------------------------------------------------
    # Binding and freezing
    # ------------------------------------------------------------------

    def __set_name__(self, owner: type, attribute: str) -> None:
        self.bind(owner)

    def bind(self, owner: type) -> "TransitionRegistry":
        """Attach to a host class, install per-name methods, then freeze."""
        if self._owner is not None:
            raise ConfigurationError(f"Transition registry is already bound to {self._owner.__name__}")
        if isinstance(owner.__dict__.get(REGISTRY_ATTRIBUTE), TransitionRegistry):
            raise ConfigurationError(f"{owner.__name__} already has a transition registry")

        for name in self._transitions:
            current = getattr(owner, name, None)
            if isinstance(current, TransitionMethod):
                if current.registry is self:
                    continue
            elif current is not None:
                raise ConfigurationError(f"Transition {name} clashes with existing attribute {owner.__name__}.{name}")
            setattr(owner, name, TransitionMethod(self, name))

        self._owner = owner
        if self._entity_type is None:
            self._entity_type = entity_type_name(owner)
        setattr(owner, REGISTRY_ATTRIBUTE, self)
        self.freeze()
        return self

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def owner(self) -> type | None:
        return self._owner

    @property
    def entity_type(self) -> str | None:
        return self._entity_type

    def entity_type_for(self, entity: Any) -> str:
        return self._entity_type or entity_type_name(type(entity))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(self, name: str) -> TransitionDef | None:
        return self._transitions.get(name)

    def get(self, name: str) -> TransitionDef:
        definition = self._transitions.get(name)
        if definition is None:
            raise UnknownTransitionError(self._entity_type, name)
        return definition

    @property
    def transitions(self) -> Mapping[str, TransitionDef]:
        return MappingProxyType(self._transitions)

    @property
    def fields(self) -> Mapping[str, StateField]:
        return MappingProxyType(self._fields)

    @property
    def default_field(self) -> str | None:
        return self._default_field

    def names(self) -> list[str]:
        return sorted(self._transitions)

    def describe(self) -> list[TransitionSchema]:
        return [self._transitions[name].to_schema() for name in self.names()]

    def __contains__(self, name: object) -> bool:
        return name in self._transitions

    def __len__(self) -> int:
        return len(self._transitions)

    # ------------------------------------------------------------------
    # Execution (delegated)
    # ------------------------------------------------------------------

    @property
    def executor(self) -> "TransitionExecutor":
        if self._executor is not None:
            return self._executor
        from litestate.orchestration.executor import get_default_executor

        return get_default_executor()

    def invoke(self, entity: Any, name: str) -> bool:
        return self.executor.invoke(entity, name, registry=self)

    def can_transition(self, entity: Any, name: str) -> bool:
        return self.executor.can_transition(entity, name, registry=self)

    def permitted_transitions(self, entity: Any) -> list[str]:
        return self.executor.permitted_transitions(entity, registry=self)


def registry_for(entity_or_type: Any) -> TransitionRegistry | None:
    """Return the registry bound to a host class (or an instance's class)."""
    cls = entity_or_type if isinstance(entity_or_type, type) else type(entity_or_type)
    registry = getattr(cls, REGISTRY_ATTRIBUTE, None)
    return registry if isinstance(registry, TransitionRegistry) else None
