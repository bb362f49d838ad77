"""
Tests for TableService: seating, principal, transfer and release.
"""

import pytest

from salon_api.models import Order, OutboxEvent, Table, TableOccupant
from salon_api.services.domain import OrderService, SettlementService, TableService
from salon_api.services.identity import StaticIdentityService
from shared.config.constants import LinePrepStatus, OrderStatus, TableStatus
from shared.utils.exceptions import CustomerNotFoundError, IncompleteOrderStateError, ValidationError
from tests.conftest import add_line, seat


class TestSeatOccupant:
    """Seating customers and the principal occupant."""

    def test_first_occupant_becomes_principal(self, db_session, seed_table, seed_customers):
        ana, bruno, _ = seed_customers
        service = TableService(db_session)

        first = service.seat_occupant(seed_table.id, ana.id)
        second = service.seat_occupant(seed_table.id, bruno.id)

        assert first.is_principal
        assert not second.is_principal
        assert second.customer_name == "Bruno Teixeira"
        assert db_session.get(Table, seed_table.id).principal_customer_id == ana.id

    def test_capacity_is_enforced(self, db_session, seed_bar_seat, seed_customers):
        ana, bruno, _ = seed_customers
        service = TableService(db_session)
        service.seat_occupant(seed_bar_seat.id, ana.id)

        with pytest.raises(ValidationError) as exc:
            service.seat_occupant(seed_bar_seat.id, bruno.id)

        assert exc.value.context["field"] == "capacity"
        assert db_session.query(TableOccupant).count() == 1

    def test_customer_seated_at_one_table_only(
        self, db_session, seed_table, seed_other_table, seed_customers
    ):
        ana = seed_customers[0]
        service = TableService(db_session)
        service.seat_occupant(seed_table.id, ana.id)

        with pytest.raises(ValidationError) as exc:
            service.seat_occupant(seed_other_table.id, ana.id)

        assert exc.value.context["table_id"] == seed_table.id

    def test_unknown_customer(self, db_session, seed_table):
        with pytest.raises(CustomerNotFoundError):
            TableService(db_session).seat_occupant(seed_table.id, 999)

    def test_seating_emits_event(self, db_session, seed_table, seed_customers):
        seat(db_session, seed_table, seed_customers[0])

        assert db_session.query(OutboxEvent).filter_by(event_type="occupant.seated").count() == 1


class TestIdentifyAndSeat:
    """Seating through the Identity Service."""

    def test_recognized_customer_is_seated(self, db_session, seed_table, seed_customers):
        ana = seed_customers[0]
        identity = StaticIdentityService({b"face-ana": ana.id})

        occupant = TableService(db_session).identify_and_seat(seed_table.id, b"face-ana", identity)

        assert occupant.customer_id == ana.id

    def test_no_match_changes_nothing(self, db_session, seed_table):
        identity = StaticIdentityService()

        occupant = TableService(db_session).identify_and_seat(seed_table.id, b"stranger", identity)

        assert occupant is None
        assert db_session.query(TableOccupant).count() == 0


class TestTableStatus:
    def test_free_without_open_order(self, db_session, seed_table, seed_customers):
        seat(db_session, seed_table, seed_customers[0])

        status = TableService(db_session).table_status(seed_table.id)

        assert status.status == TableStatus.FREE
        assert status.open_order_id is None
        assert [o.customer_id for o in status.occupants] == [seed_customers[0].id]

    def test_occupied_with_open_order(self, db_session, seed_table, seed_products):
        line = add_line(db_session, seed_table, seed_products["beer"])

        status = TableService(db_session).table_status(seed_table.id)

        assert status.status == TableStatus.OCCUPIED
        assert status.open_order_id == line.order_id


class TestPrincipalPromotion:
    """When the principal leaves, the earliest-seated remaining occupant takes over."""

    def test_principal_leaving_promotes_next(self, db_session, seed_table, seed_customers, seed_products):
        ana, bruno, carla = seed_customers
        seat(db_session, seed_table, ana, bruno, carla)
        line = add_line(db_session, seed_table, seed_products["beer"], consumer=ana)

        SettlementService(db_session).settle_occupant(line.order_id, ana.id)

        status = TableService(db_session).table_status(seed_table.id)
        assert status.principal_customer_id == bruno.id
        assert [o.customer_id for o in status.occupants] == [bruno.id, carla.id]


class TestTransferOccupant:
    """Moving an occupant and their unpaid personal lines to another table."""

    def test_transfer_moves_personal_lines(
        self, db_session, seed_table, seed_other_table, seed_customers, seed_products
    ):
        ana, bruno, _ = seed_customers
        seat(db_session, seed_table, ana, bruno)
        ana_line = add_line(db_session, seed_table, seed_products["beer"], consumer=ana)
        bruno_line = add_line(db_session, seed_table, seed_products["water"], consumer=bruno)
        shared_line = add_line(db_session, seed_table, seed_products["fries"])

        result = TableService(db_session).transfer_occupant(seed_table.id, seed_other_table.id, ana.id)

        assert result.moved_line_ids == [ana_line.id]
        assert result.target_order_id is not None
        assert result.source_order_status == OrderStatus.OPEN

        orders = OrderService(db_session)
        target_order = orders.get_order(result.target_order_id)
        assert [line.id for line in target_order.lines] == [ana_line.id]
        source_order = orders.get_order(ana_line.order_id)
        assert [line.id for line in source_order.lines] == [bruno_line.id, shared_line.id]

        source_status = TableService(db_session).table_status(seed_table.id)
        assert source_status.principal_customer_id == bruno.id
        target_status = TableService(db_session).table_status(seed_other_table.id)
        assert target_status.principal_customer_id == ana.id

    def test_source_cancelled_when_emptied(
        self, db_session, seed_table, seed_other_table, seed_customers, seed_products
    ):
        ana = seed_customers[0]
        seat(db_session, seed_table, ana)
        line = add_line(db_session, seed_table, seed_products["beer"], consumer=ana)

        result = TableService(db_session).transfer_occupant(seed_table.id, seed_other_table.id, ana.id)

        assert result.source_order_status == OrderStatus.CANCELLED
        assert db_session.get(Order, line.order_id).status == OrderStatus.CANCELLED

    def test_target_must_be_free(
        self, db_session, seed_table, seed_other_table, seed_customers, seed_products
    ):
        ana = seed_customers[0]
        seat(db_session, seed_table, ana)
        add_line(db_session, seed_other_table, seed_products["water"])

        with pytest.raises(ValidationError) as exc:
            TableService(db_session).transfer_occupant(seed_table.id, seed_other_table.id, ana.id)

        assert exc.value.context["field"] == "target_table_id"
        assert TableService(db_session).table_status(seed_table.id).occupants[0].customer_id == ana.id

    def test_customer_must_be_seated_at_source(self, db_session, seed_table, seed_other_table, seed_customers):
        with pytest.raises(ValidationError):
            TableService(db_session).transfer_occupant(seed_table.id, seed_other_table.id, seed_customers[0].id)

    def test_same_table_rejected(self, db_session, seed_table, seed_customers):
        seat(db_session, seed_table, seed_customers[0])

        with pytest.raises(ValidationError):
            TableService(db_session).transfer_occupant(seed_table.id, seed_table.id, seed_customers[0].id)


class TestReleaseTable:
    """Force-release step (executed through the approval gateway)."""

    def test_release_cancels_order_and_clears_occupants(
        self, db_session, seed_table, seed_customers, seed_products
    ):
        seat(db_session, seed_table, *seed_customers[:2])
        line = add_line(db_session, seed_table, seed_products["beer"])

        status = TableService(db_session).release_table(seed_table.id)
        db_session.commit()

        assert status.status == TableStatus.FREE
        assert status.occupants == []
        assert status.principal_customer_id is None
        assert db_session.get(Order, line.order_id).status == OrderStatus.CANCELLED

    def test_release_refused_while_preparing(self, db_session, seed_table, seed_products):
        line = add_line(db_session, seed_table, seed_products["fries"])
        OrderService(db_session).advance_preparation(line.id, LinePrepStatus.PREPARING)

        with pytest.raises(IncompleteOrderStateError) as exc:
            TableService(db_session).release_table(seed_table.id)

        assert exc.value.context["preparing_line_ids"] == [line.id]
