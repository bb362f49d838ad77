"""
Tests for SettlementService: full, per-occupant and partial settlement.
"""

import pytest

from salon_api.models import Order, OrderLine, OutboxEvent, Settlement, Table
from salon_api.services.domain import OrderService, SettlementService
from shared.config.constants import LinePrepStatus, OrderStatus, SettlementKind
from shared.utils.exceptions import (
    AmbiguousPartialSettlementError,
    IncompleteOrderStateError,
    OrderNotFoundError,
    StaffNotFoundError,
    ValidationError,
)
from tests.conftest import add_line, seat


@pytest.fixture
def two_at_table(db_session, seed_table, seed_customers):
    """Ana and Bruno seated at M-01 (Ana is principal)."""
    ana, bruno, _ = seed_customers
    seat(db_session, seed_table, ana, bruno)
    return ana, bruno


class TestGroupLines:
    def test_groups_for_open_order(self, db_session, seed_table, two_at_table, seed_products):
        ana, bruno = two_at_table
        line = add_line(db_session, seed_table, seed_products["beer"], consumer=ana)
        add_line(db_session, seed_table, seed_products["water"])

        groups = SettlementService(db_session).group_lines(line.order_id)

        assert [g.subtotal_cents for g in groups] == [1000, 0, 600]
        assert groups.to_output().groups[1].consumer.customer_id == bruno.id

    def test_unknown_order(self, db_session):
        with pytest.raises(OrderNotFoundError):
            SettlementService(db_session).group_lines(999)


class TestSettleFull:
    """Pay everything and free the table."""

    def test_settles_order_and_clears_table(self, db_session, seed_table, two_at_table, seed_products):
        ana, _ = two_at_table
        line = add_line(db_session, seed_table, seed_products["beer"], quantity=2, consumer=ana)
        add_line(db_session, seed_table, seed_products["water"])

        result = SettlementService(db_session).settle_full(line.order_id)

        assert result.kind == SettlementKind.FULL
        assert result.subtotal_cents == 2000 + 600
        assert result.tip_cents == 0
        assert result.order_status == OrderStatus.SETTLED
        assert result.payer_customer_id == ana.id

        table = db_session.get(Table, seed_table.id)
        assert table.occupants == []
        assert table.principal_customer_id is None
        assert all(l.quantity_remaining_to_settle == 0 for l in db_session.query(OrderLine))

    def test_tip_credited_to_recipient(self, db_session, seed_table, two_at_table, seed_products, seed_waiter):
        line = add_line(db_session, seed_table, seed_products["beer"], quantity=2)

        result = SettlementService(db_session).settle_full(line.order_id, tip_recipient_id=seed_waiter.id)

        assert result.tip_cents == 200
        assert result.total_cents == 2200
        assert result.tip_recipient_id == seed_waiter.id
        order = db_session.get(Order, line.order_id)
        assert order.tip_cents == 200
        assert order.tip_recipient_id == seed_waiter.id

    def test_unknown_tip_recipient(self, db_session, seed_table, seed_products):
        line = add_line(db_session, seed_table, seed_products["beer"])

        with pytest.raises(StaffNotFoundError):
            SettlementService(db_session).settle_full(line.order_id, tip_recipient_id=999)

        assert db_session.get(Order, line.order_id).status == OrderStatus.OPEN

    def test_refused_while_kitchen_preparing(self, db_session, seed_table, seed_products):
        line = add_line(db_session, seed_table, seed_products["fries"])
        OrderService(db_session).advance_preparation(line.id, LinePrepStatus.PREPARING)

        with pytest.raises(IncompleteOrderStateError):
            SettlementService(db_session).settle_full(line.order_id)

        assert db_session.get(OrderLine, line.id).quantity_remaining_to_settle == 1
        assert db_session.query(Settlement).count() == 0

    def test_pending_kitchen_lines_do_not_block(self, db_session, seed_table, seed_products):
        line = add_line(db_session, seed_table, seed_products["fries"])

        result = SettlementService(db_session).settle_full(line.order_id)

        assert result.order_status == OrderStatus.SETTLED

    def test_closed_order_rejected(self, db_session, seed_table, seed_products):
        line = add_line(db_session, seed_table, seed_products["beer"])
        service = SettlementService(db_session)
        service.settle_full(line.order_id)

        with pytest.raises(ValidationError):
            service.settle_full(line.order_id)

        assert db_session.query(Settlement).count() == 1

    def test_emits_settlement_and_order_events(self, db_session, seed_table, seed_products):
        line = add_line(db_session, seed_table, seed_products["beer"])

        SettlementService(db_session).settle_full(line.order_id)

        types = [e.event_type for e in db_session.query(OutboxEvent).order_by(OutboxEvent.id)]
        assert types[-2:] == ["settlement.completed", "order.settled"]


class TestSettleOccupant:
    """Pay one occupant's lines; they leave the table."""

    def test_pays_only_occupant_lines(self, db_session, seed_table, two_at_table, seed_products):
        ana, bruno = two_at_table
        ana_line = add_line(db_session, seed_table, seed_products["beer"], quantity=2, consumer=ana)
        bruno_line = add_line(db_session, seed_table, seed_products["water"], consumer=bruno)
        shared = add_line(db_session, seed_table, seed_products["fries"])

        result = SettlementService(db_session).settle_occupant(ana_line.order_id, ana.id)

        assert result.kind == SettlementKind.OCCUPANT
        assert result.subtotal_cents == 2000
        assert [i.line_id for i in result.items] == [ana_line.id]
        assert result.order_status == OrderStatus.OPEN
        assert db_session.get(OrderLine, bruno_line.id).quantity_remaining_to_settle == 1
        assert db_session.get(OrderLine, shared.id).quantity_remaining_to_settle == 1

        table = db_session.get(Table, seed_table.id)
        assert [o.customer_id for o in table.occupants] == [bruno.id]
        assert table.principal_customer_id == bruno.id

    def test_preparing_lines_do_not_block(self, db_session, seed_table, two_at_table, seed_products):
        ana, _ = two_at_table
        line = add_line(db_session, seed_table, seed_products["fries"], consumer=ana)
        OrderService(db_session).advance_preparation(line.id, LinePrepStatus.PREPARING)

        result = SettlementService(db_session).settle_occupant(line.order_id, ana.id)

        assert result.subtotal_cents == 3200

    def test_occupant_without_lines_settles_zero(self, db_session, seed_table, two_at_table, seed_products):
        ana, bruno = two_at_table
        line = add_line(db_session, seed_table, seed_products["beer"], consumer=ana)

        result = SettlementService(db_session).settle_occupant(line.order_id, bruno.id)

        assert result.subtotal_cents == 0
        assert result.items == []

    def test_last_lines_settle_the_order(self, db_session, seed_table, two_at_table, seed_products):
        ana, bruno = two_at_table
        a = add_line(db_session, seed_table, seed_products["beer"], consumer=ana)
        add_line(db_session, seed_table, seed_products["water"], consumer=bruno)
        service = SettlementService(db_session)

        service.settle_occupant(a.order_id, ana.id)
        result = service.settle_occupant(a.order_id, bruno.id)

        assert result.order_status == OrderStatus.SETTLED

    def test_closing_the_order_unseats_everyone(
        self, db_session, seed_table, seed_other_table, two_at_table, seed_products
    ):
        ana, bruno = two_at_table
        line = add_line(db_session, seed_table, seed_products["beer"], consumer=ana)

        result = SettlementService(db_session).settle_occupant(line.order_id, ana.id)

        assert result.order_status == OrderStatus.SETTLED
        table = db_session.get(Table, seed_table.id)
        assert table.occupants == []
        assert table.principal_customer_id is None
        # Bruno is free to sit elsewhere
        seat(db_session, seed_other_table, bruno)

    def test_occupant_must_be_seated(self, db_session, seed_table, two_at_table, seed_customers, seed_products):
        carla = seed_customers[2]
        line = add_line(db_session, seed_table, seed_products["beer"])

        with pytest.raises(ValidationError) as exc:
            SettlementService(db_session).settle_occupant(line.order_id, carla.id)

        assert exc.value.context["field"] == "occupant_id"


class TestSettlePartial:
    """Pay part of one shared line."""

    def test_decrements_remaining(self, db_session, seed_table, two_at_table, seed_products):
        ana, _ = two_at_table
        line = add_line(db_session, seed_table, seed_products["beer"], quantity=3)

        result = SettlementService(db_session).settle_partial(line.order_id, line.id, 1, ana.id)

        assert result.kind == SettlementKind.PARTIAL
        assert result.subtotal_cents == 1000
        assert result.payer_customer_id == ana.id
        assert result.order_status == OrderStatus.OPEN
        assert db_session.get(OrderLine, line.id).quantity_remaining_to_settle == 2

    def test_paying_the_rest_settles_order(self, db_session, seed_table, two_at_table, seed_products):
        ana, bruno = two_at_table
        line = add_line(db_session, seed_table, seed_products["beer"], quantity=2)
        service = SettlementService(db_session)

        service.settle_partial(line.order_id, line.id, 1, ana.id)
        result = service.settle_partial(line.order_id, line.id, 1, bruno.id)

        assert result.order_status == OrderStatus.SETTLED

    def test_closing_partial_clears_table(self, db_session, seed_table, two_at_table, seed_products):
        ana, _ = two_at_table
        line = add_line(db_session, seed_table, seed_products["water"], quantity=2)

        result = SettlementService(db_session).settle_partial(line.order_id, line.id, 2, ana.id)

        assert result.order_status == OrderStatus.SETTLED
        table = db_session.get(Table, seed_table.id)
        assert table.occupants == []
        assert table.principal_customer_id is None

        # The next line opens a fresh tab with nobody inherited
        fresh = add_line(db_session, seed_table, seed_products["beer"])
        assert fresh.order_id != line.order_id
        groups = SettlementService(db_session).group_lines(fresh.order_id)
        assert [g.is_shared for g in groups] == [True]

    def test_tip_on_partial_amount(self, db_session, seed_table, two_at_table, seed_products, seed_waiter):
        ana, _ = two_at_table
        line = add_line(db_session, seed_table, seed_products["fries"], quantity=2)

        result = SettlementService(db_session).settle_partial(
            line.order_id, line.id, 1, ana.id, tip_recipient_id=seed_waiter.id
        )

        assert result.subtotal_cents == 3200
        assert result.tip_cents == 320

    @pytest.mark.parametrize("quantity", [0, -1, 3])
    def test_quantity_bounds(self, db_session, seed_table, two_at_table, seed_products, quantity):
        ana, _ = two_at_table
        line = add_line(db_session, seed_table, seed_products["beer"], quantity=2)

        with pytest.raises(ValidationError) as exc:
            SettlementService(db_session).settle_partial(line.order_id, line.id, quantity, ana.id)

        assert exc.value.context["field"] == "quantity"
        assert db_session.get(OrderLine, line.id).quantity_remaining_to_settle == 2
        assert db_session.query(Settlement).count() == 0

    def test_personal_line_rejected(self, db_session, seed_table, two_at_table, seed_products):
        ana, _ = two_at_table
        line = add_line(db_session, seed_table, seed_products["beer"], quantity=2, consumer=ana)

        with pytest.raises(ValidationError) as exc:
            SettlementService(db_session).settle_partial(line.order_id, line.id, 1, ana.id)

        assert exc.value.context["field"] == "line_id"

    def test_merged_shared_line_is_ambiguous(self, db_session, seed_table, two_at_table, seed_products):
        ana, _ = two_at_table
        first = add_line(db_session, seed_table, seed_products["beer"])
        second = add_line(db_session, seed_table, seed_products["beer"])

        with pytest.raises(AmbiguousPartialSettlementError) as exc:
            SettlementService(db_session).settle_partial(first.order_id, first.id, 1, ana.id)

        assert exc.value.context["merged_line_ids"] == [first.id, second.id]

    def test_payer_must_be_seated(self, db_session, seed_table, two_at_table, seed_customers, seed_products):
        line = add_line(db_session, seed_table, seed_products["beer"], quantity=2)

        with pytest.raises(ValidationError) as exc:
            SettlementService(db_session).settle_partial(line.order_id, line.id, 1, seed_customers[2].id)

        assert exc.value.context["field"] == "paying_occupant_id"


class TestNoDoubleSettlement:
    """A line's quantity can never be paid twice across flows."""

    def test_occupant_then_full(self, db_session, seed_table, two_at_table, seed_products):
        ana, _ = two_at_table
        a = add_line(db_session, seed_table, seed_products["beer"], quantity=2, consumer=ana)
        add_line(db_session, seed_table, seed_products["water"])
        service = SettlementService(db_session)

        service.settle_occupant(a.order_id, ana.id)
        result = service.settle_full(a.order_id)

        assert result.subtotal_cents == 600
        paid = sum(s.subtotal_cents for s in db_session.query(Settlement))
        assert paid == 2000 + 600

    def test_partial_then_full(self, db_session, seed_table, two_at_table, seed_products):
        ana, _ = two_at_table
        line = add_line(db_session, seed_table, seed_products["beer"], quantity=3)
        service = SettlementService(db_session)

        service.settle_partial(line.order_id, line.id, 2, ana.id)
        result = service.settle_full(line.order_id)

        assert result.items[0].quantity == 1
        assert result.subtotal_cents == 1000
        assert sum(s.subtotal_cents for s in db_session.query(Settlement)) == 3000

    def test_repeated_full_settlement_is_rejected(self, db_session, seed_table, two_at_table, seed_products):
        line = add_line(db_session, seed_table, seed_products["beer"], quantity=2)
        service = SettlementService(db_session)
        service.settle_full(line.order_id)

        with pytest.raises(ValidationError) as exc:
            service.settle_full(line.order_id)

        assert exc.value.context["field"] == "order_id"
        assert db_session.query(Settlement).count() == 1

    def test_repeated_occupant_settlement_is_rejected(self, db_session, seed_table, two_at_table, seed_products):
        ana, bruno = two_at_table
        line = add_line(db_session, seed_table, seed_products["beer"], consumer=ana)
        add_line(db_session, seed_table, seed_products["water"], consumer=bruno)
        service = SettlementService(db_session)
        service.settle_occupant(line.order_id, ana.id)

        with pytest.raises(ValidationError) as exc:
            service.settle_occupant(line.order_id, ana.id)

        assert exc.value.context["field"] == "occupant_id"
        assert [s.subtotal_cents for s in db_session.query(Settlement)] == [1000]

    def test_repeated_partial_cannot_exceed_remaining(self, db_session, seed_table, two_at_table, seed_products):
        ana, _ = two_at_table
        line = add_line(db_session, seed_table, seed_products["beer"], quantity=3)
        service = SettlementService(db_session)
        service.settle_partial(line.order_id, line.id, 2, ana.id)

        with pytest.raises(ValidationError) as exc:
            service.settle_partial(line.order_id, line.id, 2, ana.id)

        assert exc.value.context["field"] == "quantity"
        assert db_session.get(OrderLine, line.id).quantity_remaining_to_settle == 1
