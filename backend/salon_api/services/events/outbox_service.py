"""
Outbox service for transactional event publishing.

Provides functions to write events to the outbox table atomically with
business data. The processor then reads and dispatches these events to
subscribers (notification and reporting consumers).

Usage in services:
    1. Perform business logic (settle lines, apply a discount, ...)
    2. Call write_outbox_event() with the same db session
    3. Commit the unit of work (business data and event are atomic)

Example:
    order.status = OrderStatus.SETTLED
    write_order_outbox_event(db, EventType.ORDER_SETTLED, order, extra_data={...})
    # committed together by atomic()
"""

import json
from typing import Any

from sqlalchemy.orm import Session

from salon_api.models import Order, OutboxEvent, OutboxStatus
from salon_api.services.events.event_types import EventType
from shared.config.logging import get_logger

logger = get_logger(__name__)


def write_outbox_event(
    db: Session,
    event_type: EventType | str,
    aggregate_type: str,
    aggregate_id: int,
    payload: dict[str, Any],
) -> OutboxEvent:
    """
    Write an event to the outbox table.

    MUST be called within the same unit of work as the business operation.
    Nothing is flushed or committed here.

    Args:
        db: SQLAlchemy session (same session as business operation)
        event_type: EventType member or its string value
        aggregate_type: Type of aggregate (e.g., "order", "approval_request", "table")
        aggregate_id: ID of the aggregate
        payload: Event payload as dict (will be JSON serialized)

    Returns:
        The created OutboxEvent instance
    """
    event_type_value = event_type.value if isinstance(event_type, EventType) else event_type
    outbox_event = OutboxEvent(
        event_type=event_type_value,
        aggregate_type=aggregate_type,
        aggregate_id=aggregate_id,
        payload=json.dumps(payload, default=str),
        status=OutboxStatus.PENDING,
        retry_count=0,
    )
    db.add(outbox_event)
    logger.debug(
        "Outbox event queued",
        event_type=event_type_value,
        aggregate_type=aggregate_type,
        aggregate_id=aggregate_id,
    )
    return outbox_event


def write_order_outbox_event(
    db: Session,
    event_type: EventType,
    order: Order,
    extra_data: dict[str, Any] | None = None,
    actor_id: int | None = None,
) -> OutboxEvent:
    """
    Write an order-scoped event (settlement, redemption) to the outbox.

    Args:
        db: SQLAlchemy session
        event_type: Event type
        order: The order the event is about
        extra_data: Additional event data (amounts, line ids, ...)
        actor_id: Staff member who triggered the event, if any
    """
    payload = {
        "order_id": order.id,
        "table_id": order.table_id,
        "order_status": order.status,
        "actor_id": actor_id,
    }
    if extra_data:
        payload.update(extra_data)

    return write_outbox_event(
        db=db,
        event_type=event_type,
        aggregate_type="order",
        aggregate_id=order.id,
        payload=payload,
    )


def write_approval_outbox_event(
    db: Session,
    event_type: EventType,
    request_id: int,
    action_type: str,
    target_id: int,
    requested_by_id: int,
    notify_roles: list[str] | None = None,
    extra_data: dict[str, Any] | None = None,
) -> OutboxEvent:
    """
    Write an approval workflow event to the outbox.

    ``notify_roles`` tells the notification consumer who should hear about it
    (privileged roles for a new request; the requester is always in payload).
    """
    payload = {
        "request_id": request_id,
        "action_type": action_type,
        "target_id": target_id,
        "requested_by_id": requested_by_id,
        "notify_roles": notify_roles or [],
    }
    if extra_data:
        payload.update(extra_data)

    return write_outbox_event(
        db=db,
        event_type=event_type,
        aggregate_type="approval_request",
        aggregate_id=request_id,
        payload=payload,
    )
