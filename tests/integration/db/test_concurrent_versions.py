from __future__ import annotations

import re

import pytest
from sqlalchemy import Integer, String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column
from sqlalchemy.orm.exc import StaleDataError

from litestate import StatefulMixin, TransitionRegistry, notifications


class Base(DeclarativeBase):
    pass


class Invoice(StatefulMixin, Base):
    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    status: Mapped[str] = mapped_column(String(20), default="open", nullable=False)
    payment_status: Mapped[str] = mapped_column(String(20), default="unpaid", nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    states = TransitionRegistry(default_field="status")
    states.declare_field("status", ["open", "sent", "void"])
    states.declare_field("payment_status", ["unpaid", "paid"])
    states.declare_transition("send", to="sent", from_="open")
    states.declare_transition("void", to="void", from_=["open", "sent"])
    states.declare_transition("pay", to="paid", from_="unpaid", field="payment_status")


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'invoices.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


def test_stale_writer_fails_and_keeps_the_winning_transition(engine):
    with Session(engine) as setup:
        setup.add(Invoice(status="open"))
        setup.commit()

    first = Session(engine)
    second = Session(engine)
    try:
        winner = first.get(Invoice, 1)
        loser = second.get(Invoice, 1)

        assert winner.send()

        with notifications.capture(re.compile(r"^invoice\.")) as events:
            with pytest.raises(StaleDataError):
                loser.void()

        assert [name for name, _ in events] == ["invoice.void.failed"]
        assert events[0][1]["from_state"] == "open"

        second.expire_all()
        assert loser.status == "sent"
        assert loser.version == 2
    finally:
        first.close()
        second.close()


def test_sequential_transitions_on_different_fields_bump_the_version(engine):
    with Session(engine) as session:
        invoice = Invoice(status="open")
        session.add(invoice)
        session.commit()
        assert invoice.version == 1

        invoice.send()
        invoice.pay()

        session.expire_all()
        assert invoice.status == "sent"
        assert invoice.payment_status == "paid"
        assert invoice.version == 3
