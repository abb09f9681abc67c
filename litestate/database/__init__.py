"""Persistence collaborators."""

from litestate.database.persistence import AttributePersistence, Persistence, SQLAlchemyPersistence

__all__ = [
    "AttributePersistence",
    "Persistence",
    "SQLAlchemyPersistence",
]
