"""State field declarations and symbol normalisation."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from litestate.core.exceptions import ConfigurationError


def to_symbol(value: Any) -> str | None:
    """Return the symbolic form of a state value (enum member or string)."""
    if value is None:
        return None
    if isinstance(value, enum.Enum):
        if isinstance(value.value, str):
            return value.value
        return value.name.lower()
    return str(value)


@dataclass(frozen=True)
class StateField:
    """One governed attribute and its finite, ordered domain."""

    name: str
    domain: tuple[str, ...]
    enum_class: type[enum.Enum] | None = None

    @classmethod
    def from_domain(cls, name: str, domain: type[enum.Enum] | Iterable[Any]) -> "StateField":
        if not isinstance(name, str) or not name.isidentifier():
            raise ConfigurationError(f"State field name must be an identifier, got {name!r}")

        enum_class: type[enum.Enum] | None = None
        if isinstance(domain, type) and issubclass(domain, enum.Enum):
            enum_class = domain
            values = [to_symbol(member) for member in domain]
        elif isinstance(domain, (str, bytes)):
            raise ConfigurationError(f"Domain for {name} must be an enum class or an iterable of values")
        else:
            values = [to_symbol(member) for member in domain]

        symbols: list[str] = []
        for value in values:
            if value not in symbols:
                symbols.append(value)
        if not symbols:
            raise ConfigurationError(f"State field {name} declares an empty domain")
        return cls(name=name, domain=tuple(symbols), enum_class=enum_class)

    def contains(self, value: Any) -> bool:
        return to_symbol(value) in self.domain

    def symbol(self, value: Any) -> str | None:
        return to_symbol(value)

    def coerce(self, symbol: str) -> Any:
        """Map a symbol back to the value stored on the entity."""
        if self.enum_class is None:
            return symbol
        for member in self.enum_class:
            if to_symbol(member) == symbol:
                return member
        raise ConfigurationError(f"Invalid state {symbol!r} for {self.name}. Valid states: {', '.join(self.domain)}")
