"""
Two-session tests: concurrent writers on one ledger.

Each test lets a second session commit its own change in the middle of
another session's unit of work (right before that session flushes), which
is exactly the window two clients race in. A file-backed SQLite database
gives every session its own connection.
"""

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from salon_api.models import Base, Customer, Order, OrderLine, Product, Settlement, Table
from salon_api.services.domain import OrderService, SettlementService, TableService
from salon_api.services.engine import SalonEngine
from shared.config.constants import OrderStatus
from shared.utils.exceptions import ValidationError


@pytest.fixture
def ledger(tmp_path):
    """Session factory over a fresh file database, seeded with M-01, Ana and a small menu."""
    engine = create_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False)

    with factory() as db:
        db.add_all(
            [
                Table(code="M-01", capacity=4),
                Customer(name="Ana Ribeiro", points=0),
                Product(name="Cerveja", price_cents=1000, requires_preparation=False),
                Product(name="Água", price_cents=600, requires_preparation=False),
            ]
        )
        db.commit()

    yield factory
    engine.dispose()


@pytest.fixture
def ids(ledger):
    with ledger() as db:
        return {
            "table": db.query(Table.id).scalar(),
            "ana": db.query(Customer.id).scalar(),
            "beer": db.query(Product.id).filter_by(name="Cerveja").scalar(),
            "water": db.query(Product.id).filter_by(name="Água").scalar(),
        }


def before_next_flush(session, action):
    """Run ``action`` once, just before ``session`` writes anything."""

    def _hook(flush_session, flush_context, instances):
        action()

    event.listen(session, "before_flush", _hook, once=True)


class TestConcurrentSettlements:
    def test_paying_the_last_two_lines_at_once_settles_the_order(self, ledger, ids):
        with ledger() as setup:
            TableService(setup).seat_occupant(ids["table"], ids["ana"])
            beer = OrderService(setup).add_line(ids["table"], ids["beer"])
            water = OrderService(setup).add_line(ids["table"], ids["water"])
        order_id = beer.order_id

        with ledger() as first, ledger() as second:
            before_next_flush(
                second,
                lambda: SettlementService(first).settle_partial(order_id, beer.id, 1, ids["ana"]),
            )
            result = SettlementService(second).settle_partial(order_id, water.id, 1, ids["ana"])

        assert result.order_status == OrderStatus.SETTLED
        with ledger() as check:
            order = check.get(Order, order_id)
            assert order.status == OrderStatus.SETTLED
            assert order.settlement_count == 2
            assert [line.quantity_remaining_to_settle for line in order.lines] == [0, 0]
            assert check.query(Settlement).count() == 2
            assert check.get(Table, ids["table"]).occupants == []

    def test_racing_partial_sees_the_first_decrement(self, ledger, ids):
        with ledger() as setup:
            TableService(setup).seat_occupant(ids["table"], ids["ana"])
            line = OrderService(setup).add_line(ids["table"], ids["beer"], quantity=2)

        with ledger() as first, ledger() as second:
            before_next_flush(
                second,
                lambda: SettlementService(first).settle_partial(line.order_id, line.id, 1, ids["ana"]),
            )
            with pytest.raises(ValidationError) as exc:
                SettlementService(second).settle_partial(line.order_id, line.id, 2, ids["ana"])

        assert exc.value.context["field"] == "quantity"
        assert exc.value.context["remaining"] == 1
        with ledger() as check:
            assert check.get(OrderLine, line.id).quantity_remaining_to_settle == 1
            assert [s.subtotal_cents for s in check.query(Settlement)] == [1000]
            assert check.get(Order, line.order_id).status == OrderStatus.OPEN


class TestConcurrentTabOpening:
    def test_both_first_lines_land_on_one_order(self, ledger, ids):
        with ledger() as first, ledger() as second:
            before_next_flush(
                second,
                lambda: OrderService(first).add_line(ids["table"], ids["water"]),
            )
            result = SalonEngine(second).add_line(ids["table"], ids["beer"])

        assert result.ok
        with ledger() as check:
            orders = check.query(Order).all()
            assert len(orders) == 1
            assert [line.product_name for line in orders[0].lines] == ["Água", "Cerveja"]
            assert result.value.order_id == orders[0].id
