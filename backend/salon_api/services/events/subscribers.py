"""
Event subscribers: consumers the outbox processor dispatches to.

Notification delivery and report storage live outside this service; they
plug in by implementing ``EventSubscriber``.
"""

from typing import Protocol

from salon_api.services.events.event_types import DomainEvent
from shared.config.logging import get_logger

logger = get_logger(__name__)


class EventSubscriber(Protocol):
    """Receives every dispatched event. Raising marks the delivery as failed."""

    def handle(self, event: DomainEvent) -> None:
        ...


class LoggingSubscriber:
    """Default subscriber: writes each event to the structured log."""

    def handle(self, event: DomainEvent) -> None:
        logger.info(
            "Domain event",
            event_type=event.event_type,
            aggregate_type=event.aggregate_type,
            aggregate_id=event.aggregate_id,
            outbox_id=event.outbox_id,
        )


class CollectingSubscriber:
    """Keeps dispatched events in memory (CLI inspection, tests)."""

    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    def handle(self, event: DomainEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[DomainEvent]:
        return [e for e in self.events if e.event_type == event_type]
