"""
Domain Event definition.
Immutable value object handed to event subscribers.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from salon_api.models import OutboxEvent


class EventType(str, Enum):
    """Event type enumeration for type safety."""

    # Approvals
    APPROVAL_REQUESTED = "approval.requested"
    APPROVAL_RESOLVED = "approval.resolved"
    DISCOUNT_APPLIED = "discount.applied"
    TABLE_RELEASED = "table.released"

    # Settlement
    SETTLEMENT_COMPLETED = "settlement.completed"
    ORDER_SETTLED = "order.settled"

    # Loyalty
    LOYALTY_REDEEMED = "loyalty.redeemed"

    # Seating
    OCCUPANT_SEATED = "occupant.seated"
    OCCUPANT_TRANSFERRED = "occupant.transferred"


@dataclass(frozen=True, slots=True)
class DomainEvent:
    """
    Immutable domain event.

    Attributes:
        event_type: Event type value (e.g. "settlement.completed")
        aggregate_type: Type of aggregate involved ("order", "approval_request", ...)
        aggregate_id: ID of the aggregate
        payload: Event data
        outbox_id: ID of the outbox row the event was read from
        timestamp: When the event occurred
    """

    event_type: str
    aggregate_type: str
    aggregate_id: int
    payload: dict[str, Any] = field(default_factory=dict)
    outbox_id: int | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_outbox(cls, event: OutboxEvent) -> "DomainEvent":
        return cls(
            event_type=event.event_type,
            aggregate_type=event.aggregate_type,
            aggregate_id=event.aggregate_id,
            payload=json.loads(event.payload),
            outbox_id=event.id,
            timestamp=event.created_at or datetime.now(timezone.utc),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.event_type,
            "aggregate_type": self.aggregate_type,
            "aggregate_id": self.aggregate_id,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }
