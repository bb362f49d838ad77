"""
Event Services - transactional outbox and subscriber dispatch.

Provides:
- Typed DomainEvent / EventType
- Outbox writers used inside units of work
- OutboxProcessor dispatching committed events to subscribers
"""

from .event_types import (
    DomainEvent,
    EventType,
)

from .outbox_service import (
    write_outbox_event,
    write_order_outbox_event,
    write_approval_outbox_event,
)

from .subscribers import (
    EventSubscriber,
    LoggingSubscriber,
    CollectingSubscriber,
)

from .outbox_processor import (
    OutboxProcessor,
    get_outbox_processor,
    start_outbox_processor,
    stop_outbox_processor,
)

__all__ = [
    "DomainEvent",
    "EventType",
    "write_outbox_event",
    "write_order_outbox_event",
    "write_approval_outbox_event",
    "EventSubscriber",
    "LoggingSubscriber",
    "CollectingSubscriber",
    "OutboxProcessor",
    "get_outbox_processor",
    "start_outbox_processor",
    "stop_outbox_processor",
]
