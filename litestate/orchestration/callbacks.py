"""Guard and effect references resolved against an entity at call time."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from litestate.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class Callback:
    """Either a method name on the entity or an inline callable taking the entity."""

    method: str | None = None
    function: Callable[[Any], Any] | None = None

    @classmethod
    def from_spec(cls, spec: str | Callable[[Any], Any] | None) -> "Callback | None":
        if spec is None:
            return None
        if isinstance(spec, str):
            if not spec.isidentifier():
                raise ConfigurationError(f"Callback method name must be an identifier, got {spec!r}")
            return cls(method=spec)
        if callable(spec):
            return cls(function=spec)
        raise ConfigurationError(f"Guard/effect must be a method name or a callable, got {type(spec).__name__}")

    def __call__(self, entity: Any) -> Any:
        if self.method is not None:
            return getattr(entity, self.method)()
        return self.function(entity)

    def describe(self) -> str:
        if self.method is not None:
            return self.method
        return getattr(self.function, "__qualname__", repr(self.function))
