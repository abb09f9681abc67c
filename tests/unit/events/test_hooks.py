from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from litestate import AttributePersistence, Notifier, TransitionError, TransitionExecutor, TransitionRegistry
from litestate.events.hooks import build_transition_log, log_transition_event


def _payload(outcome: str) -> dict:
    return {
        "entity": object(),
        "entity_id": 7,
        "entity_type": "order",
        "field": "status",
        "from_state": "pending",
        "to_state": "processing",
        "event": "process",
        "outcome": outcome,
        "timestamp": datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    }


def test_build_transition_log_projects_payload():
    payload = build_transition_log("order.process.success", _payload("success"))

    assert payload["event"] == "transition.success"
    assert payload["entity_type"] == "order"
    assert payload["entity_id"] == "7"
    assert payload["transition"] == "process"
    assert payload["from_state"] == "pending"
    assert payload["to_state"] == "processing"
    assert payload["occurred_at"] == "2024-05-01T12:00:00+00:00"
    assert "entity" not in payload


def test_log_level_follows_outcome(caplog):
    with caplog.at_level(logging.INFO, logger="litestate.events"):
        log_transition_event("order.process.success", _payload("success"))
        log_transition_event("order.process.invalid", _payload("invalid"))
        log_transition_event("order.process.failed", _payload("failed"))

    records = [record for record in caplog.records if record.name == "litestate.events"]
    assert [record.levelno for record in records] == [logging.INFO, logging.WARNING, logging.ERROR]
    assert records[0].event == "transition.success"
    assert records[1].transition == "process"
    assert records[2].entity_id == "7"


class _Parcel:
    def __init__(self) -> None:
        self.id = 3
        self.status = "packed"

    states = TransitionRegistry(
        default_field="status",
        executor=TransitionExecutor(persistence=AttributePersistence(), notifier=Notifier()),
    )
    states.declare_field("status", ["packed", "sent"])
    states.declare_transition("send", to="sent", from_="packed")


def test_each_attempt_is_logged_once(caplog):
    parcel = _Parcel()

    with caplog.at_level(logging.INFO):
        parcel.send()
        with pytest.raises(TransitionError):
            parcel.send()

    records = [record for record in caplog.records if getattr(record, "transition", None) == "send"]
    assert [record.getMessage() for record in records] == ["transition.success", "transition.invalid"]
    assert all(record.entity_type == "_parcel" for record in records)
