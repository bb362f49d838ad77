"""
Tests for the outbox.

Tests verify:
- Outbox writers build PENDING rows with JSON payloads
- Domain operations write their events in the same unit of work
- The processor dispatches to subscribers, retries and dead-letters
"""

import json
from unittest.mock import MagicMock

from salon_api.models import OutboxEvent, OutboxStatus
from salon_api.services.domain import SettlementService
from salon_api.services.events import (
    CollectingSubscriber,
    EventType,
    OutboxProcessor,
    write_approval_outbox_event,
    write_outbox_event,
)
from tests.conftest import add_line


class FailingSubscriber:
    def handle(self, event):
        raise RuntimeError("notification service down")


class TestOutboxWriters:
    """Tests for outbox_service.py functions."""

    def test_write_outbox_event_creates_pending_event(self):
        """write_outbox_event should add a PENDING event to the session."""
        mock_db = MagicMock()

        write_outbox_event(
            db=mock_db,
            event_type=EventType.ORDER_SETTLED,
            aggregate_type="order",
            aggregate_id=123,
            payload={"key": "value"},
        )

        mock_db.add.assert_called_once()
        added = mock_db.add.call_args[0][0]
        assert added.event_type == "order.settled"
        assert added.aggregate_type == "order"
        assert added.aggregate_id == 123
        assert added.status == OutboxStatus.PENDING
        assert json.loads(added.payload) == {"key": "value"}
        mock_db.commit.assert_not_called()

    def test_string_event_type_is_accepted(self):
        mock_db = MagicMock()

        event = write_outbox_event(mock_db, "custom.event", "table", 1, {})

        assert event.event_type == "custom.event"

    def test_approval_event_payload(self):
        mock_db = MagicMock()

        event = write_approval_outbox_event(
            mock_db,
            EventType.APPROVAL_REQUESTED,
            request_id=5,
            action_type="apply_discount",
            target_id=9,
            requested_by_id=2,
            notify_roles=["MANAGER"],
            extra_data={"requester_role": "WAITER"},
        )

        assert event.aggregate_type == "approval_request"
        assert json.loads(event.payload) == {
            "request_id": 5,
            "action_type": "apply_discount",
            "target_id": 9,
            "requested_by_id": 2,
            "notify_roles": ["MANAGER"],
            "requester_role": "WAITER",
        }


class TestOutboxProcessor:
    """Dispatching committed events."""

    def test_publishes_to_subscribers(self, db_session, seed_table, seed_products):
        line = add_line(db_session, seed_table, seed_products["beer"])
        SettlementService(db_session).settle_full(line.order_id)
        collector = CollectingSubscriber()
        processor = OutboxProcessor(subscribers=[collector])

        published = processor.process_batch(db_session)

        assert published == db_session.query(OutboxEvent).count()
        assert db_session.query(OutboxEvent).filter_by(status=OutboxStatus.PENDING).count() == 0
        assert all(e.processed_at is not None for e in db_session.query(OutboxEvent))
        assert [e.event_type for e in collector.events] == ["settlement.completed", "order.settled"]
        assert collector.of_type("order.settled")[0].payload["order_id"] == line.order_id

    def test_nothing_pending(self, db_session):
        assert OutboxProcessor(subscribers=[CollectingSubscriber()]).process_batch(db_session) == 0

    def test_events_dispatched_once(self, db_session, seed_table, seed_products):
        line = add_line(db_session, seed_table, seed_products["beer"])
        SettlementService(db_session).settle_full(line.order_id)
        collector = CollectingSubscriber()
        processor = OutboxProcessor(subscribers=[collector])

        processor.process_batch(db_session)
        first_count = len(collector.events)
        processor.process_batch(db_session)

        assert len(collector.events) == first_count

    def test_failed_delivery_is_retried_then_dead_lettered(self, db_session):
        write_outbox_event(db_session, EventType.TABLE_RELEASED, "table", 1, {"table_id": 1})
        db_session.commit()
        processor = OutboxProcessor(subscribers=[FailingSubscriber()], max_retries=2)

        processor.process_batch(db_session)
        event = db_session.query(OutboxEvent).one()
        assert event.status == OutboxStatus.PENDING
        assert event.retry_count == 1
        assert event.last_error == "notification service down"

        processor.process_batch(db_session)
        event = db_session.query(OutboxEvent).one()
        assert event.status == OutboxStatus.FAILED
        assert event.retry_count == 2

    def test_batch_size_limits_claim(self, db_session):
        for table_id in range(3):
            write_outbox_event(db_session, EventType.TABLE_RELEASED, "table", table_id, {})
        db_session.commit()
        collector = CollectingSubscriber()

        published = OutboxProcessor(subscribers=[collector], batch_size=2).process_batch(db_session)

        assert published == 2
        assert collector.of_type("table.released")[0].aggregate_id == 0
