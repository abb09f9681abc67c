"""Persistence collaborators used by the transition executor.

The executor never talks to storage directly.  It reads and writes attributes,
asks for a stable identity for event payloads, and wraps the write plus the
effect routine in ``unit_of_work``, which must commit on a clean exit and roll
back (then re-raise) when the body raises.

Units nest when an effect invokes another transition.  Only the outermost
unit commits; an inner unit is undone with its outer unit.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Protocol

from sqlalchemy import inspect
from sqlalchemy.orm import Session, object_session

from litestate.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)

UNIT_DEPTH_KEY = "litestate.unit_depth"


class Persistence(Protocol):
    def read(self, entity: Any, field_name: str) -> Any: ...

    def write(self, entity: Any, values: dict[str, Any]) -> None: ...

    def unit_of_work(self, entity: Any) -> Any: ...

    def identity(self, entity: Any) -> Any: ...


class SQLAlchemyPersistence:
    """Persistence backed by the SQLAlchemy session owning the entity.

    The outermost unit on a session commits or rolls back the session.  Units
    opened while another one is active on the same session (an effect running
    a further transition) use a savepoint, so their writes are released into
    the outer transaction and discarded if it rolls back.  With
    ``savepoint=True`` every unit is a savepoint and the host owns the commit.
    """

    def __init__(self, session: Session | None = None, savepoint: bool = False) -> None:
        self.session = session
        self.savepoint = savepoint

    def _session_for(self, entity: Any) -> Session:
        session = self.session or object_session(entity)
        if session is None:
            raise PersistenceError(
                f"{type(entity).__name__} is not attached to a session; add it before transitioning"
            )
        return session

    def read(self, entity: Any, field_name: str) -> Any:
        return getattr(entity, field_name)

    def write(self, entity: Any, values: dict[str, Any]) -> None:
        for key, value in values.items():
            setattr(entity, key, value)
        # Surface storage constraint errors inside the unit of work.
        self._session_for(entity).flush()

    @contextmanager
    def unit_of_work(self, entity: Any) -> Generator[Session, None, None]:
        session = self._session_for(entity)
        depth = session.info.get(UNIT_DEPTH_KEY, 0)
        session.info[UNIT_DEPTH_KEY] = depth + 1
        try:
            if self.savepoint or depth:
                with session.begin_nested():
                    yield session
                return

            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise
        finally:
            session.info[UNIT_DEPTH_KEY] = depth

    def identity(self, entity: Any) -> Any:
        state = inspect(entity, raiseerr=False)
        key = getattr(state, "identity", None) if state is not None else None
        if not key:
            return getattr(entity, "id", None)
        return key[0] if len(key) == 1 else key


def _detached_copy(value: Any) -> Any:
    try:
        return copy.deepcopy(value)
    except (TypeError, copy.Error):
        # Locks, handles and similar values are restored by reference.
        return value


@dataclass(eq=False)
class _AttributeUnit:
    entity: Any
    thread_id: int
    snapshot: dict[str, Any]
    written: set[str] = field(default_factory=set)
    foreign: set[str] = field(default_factory=set)


class AttributePersistence:
    """In-memory persistence for plain Python objects.

    A unit snapshots the instance attributes (deep-copied, so in-place changes
    to lists and dicts are undone too) and restores them when the body raises.
    Attributes written by transitions running on other threads while the unit
    is open are left alone, so a failed transition on one field never undoes a
    concurrent transition on another.  Attributes that another thread's effect
    changes without going through ``write`` cannot be told apart and are
    restored with the rest.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._units: list[_AttributeUnit] = []

    def read(self, entity: Any, field_name: str) -> Any:
        return getattr(entity, field_name, None)

    def write(self, entity: Any, values: dict[str, Any]) -> None:
        with self._lock:
            for key, value in values.items():
                setattr(entity, key, value)
            self._record_writes(entity, values.keys())

    def _record_writes(self, entity: Any, keys: Iterable[str]) -> None:
        current_thread = threading.get_ident()
        keys = set(keys)
        for unit in self._units:
            if unit.entity is not entity:
                continue
            if unit.thread_id == current_thread:
                unit.written |= keys
            else:
                unit.foreign |= keys

    @contextmanager
    def unit_of_work(self, entity: Any) -> Generator[None, None, None]:
        with self._lock:
            snapshot = {key: _detached_copy(value) for key, value in vars(entity).items()}
            unit = _AttributeUnit(entity=entity, thread_id=threading.get_ident(), snapshot=snapshot)
            self._units.append(unit)
        try:
            yield
        except Exception:
            with self._lock:
                self._restore(unit)
            logger.debug(
                "persistence.attributes.restored",
                extra={"event": "persistence.attributes.restored", "entity_type": type(entity).__name__},
            )
            raise
        finally:
            with self._lock:
                self._units.remove(unit)

    @staticmethod
    def _restore(unit: _AttributeUnit) -> None:
        keep = unit.foreign - unit.written
        current = vars(unit.entity)
        for key in [key for key in current if key not in unit.snapshot and key not in keep]:
            del current[key]
        for key, value in unit.snapshot.items():
            if key not in keep:
                current[key] = value

    def identity(self, entity: Any) -> Any:
        return getattr(entity, "id", None)
