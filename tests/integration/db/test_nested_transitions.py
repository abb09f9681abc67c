from __future__ import annotations

import re

import pytest
from sqlalchemy import String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from litestate import StatefulMixin, TransitionError, TransitionRegistry, notifications


class Base(DeclarativeBase):
    pass


class Membership(StatefulMixin, Base):
    __tablename__ = "memberships"

    membership_number: Mapped[str] = mapped_column(String(20), primary_key=True)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    billing_status: Mapped[str] = mapped_column(String(20), default="unpaid", nullable=False)
    note: Mapped[str | None] = mapped_column(String(200))

    payment_blocked = False
    refund_blocked = False

    states = TransitionRegistry(default_field="status")
    states.declare_field("status", ["pending", "active", "cancelled"])
    states.declare_field("billing_status", ["unpaid", "paid", "refunded"])
    states.declare_transition("activate", to="active", from_="pending")
    states.declare_transition("welcome", to="active", from_="pending", effect="send_welcome")
    states.declare_transition("cancel", to="cancelled", from_=["pending", "active"])
    states.declare_transition("pay", to="paid", from_="unpaid", field="billing_status", effect="record_payment")
    states.declare_transition(
        "pay_and_welcome",
        to="paid",
        from_="unpaid",
        field="billing_status",
        effect="try_welcome",
    )
    states.declare_transition("refund", to="refunded", from_="paid", field="billing_status", effect="refund_and_cancel")

    def record_payment(self) -> None:
        if self.payment_blocked:
            raise RuntimeError("payment gateway unavailable")

    def send_welcome(self) -> None:
        raise RuntimeError("welcome mail failed")

    def try_welcome(self) -> None:
        try:
            self.welcome()
        except RuntimeError:
            self.note = "welcome skipped"

    def refund_and_cancel(self) -> None:
        self.cancel()
        if self.refund_blocked:
            raise RuntimeError("refund rejected")


@pytest.fixture
def session(session_factory):
    return session_factory(Base)


def _add(session, **values):
    membership = Membership(**values)
    session.add(membership)
    session.commit()
    return membership


def test_failed_outer_transition_undoes_nested_transition(session):
    membership = _add(session, membership_number="M-1", status="active", billing_status="paid")
    membership.refund_blocked = True

    with notifications.capture(re.compile(r"^membership\.")) as events:
        with pytest.raises(RuntimeError, match="refund rejected"):
            membership.refund()

    session.expire_all()
    assert membership.billing_status == "paid"
    assert membership.status == "active"
    assert [name for name, _ in events] == ["membership.cancel.success", "membership.refund.failed"]


def test_successful_outer_transition_commits_nested_transition(session):
    membership = _add(session, membership_number="M-2", status="active", billing_status="paid")

    assert membership.refund()

    session.expire_all()
    assert membership.billing_status == "refunded"
    assert membership.status == "cancelled"


def test_failed_nested_transition_is_undone_while_outer_commits(session):
    membership = _add(session, membership_number="M-3")

    with notifications.capture(re.compile(r"^membership\.")) as events:
        assert membership.pay_and_welcome()

    session.expire_all()
    assert membership.billing_status == "paid"
    assert membership.status == "pending"
    assert membership.note == "welcome skipped"
    assert [name for name, _ in events] == ["membership.welcome.failed", "membership.pay_and_welcome.success"]


def test_nesting_depth_is_cleared_after_each_unit(session):
    membership = _add(session, membership_number="M-4", status="active", billing_status="paid")
    membership.refund_blocked = True

    with pytest.raises(RuntimeError):
        membership.refund()

    membership.refund_blocked = False
    assert membership.refund()
    session.expire_all()
    assert membership.billing_status == "refunded"
    assert not session.info.get("litestate.unit_depth")


def test_error_and_events_use_the_primary_key(session):
    membership = _add(session, membership_number="M-5", status="cancelled")

    with notifications.capture(re.compile(r"^membership\.activate\.")) as events:
        with pytest.raises(TransitionError) as exc_info:
            membership.activate()

    assert exc_info.value.entity_id == "M-5"
    assert str(exc_info.value) == "Invalid transition: Membership #M-5 from 'cancelled' -> 'active' on activate"
    assert events[0][1]["entity_id"] == "M-5"


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'memberships.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


def test_failed_transition_in_one_session_keeps_other_sessions_field(engine):
    with Session(engine) as setup:
        setup.add(Membership(membership_number="M-6"))
        setup.commit()

    billing = Session(engine)
    enrolment = Session(engine)
    try:
        stale = billing.get(Membership, "M-6")
        fresh = enrolment.get(Membership, "M-6")

        assert fresh.activate()

        stale.payment_blocked = True
        with pytest.raises(RuntimeError, match="payment gateway unavailable"):
            stale.pay()

        assert stale.status == "active"
        assert stale.billing_status == "unpaid"
    finally:
        billing.close()
        enrolment.close()


def test_transition_in_one_session_does_not_overwrite_other_sessions_field(engine):
    with Session(engine) as setup:
        setup.add(Membership(membership_number="M-7"))
        setup.commit()

    billing = Session(engine)
    enrolment = Session(engine)
    try:
        stale = billing.get(Membership, "M-7")
        fresh = enrolment.get(Membership, "M-7")

        assert fresh.activate()
        assert stale.pay()

        enrolment.expire_all()
        assert fresh.status == "active"
        assert fresh.billing_status == "paid"
    finally:
        billing.close()
        enrolment.close()
