"""Host-side helpers for entity classes."""

from litestate.models.mixin import StatefulMixin

__all__ = ["StatefulMixin"]
