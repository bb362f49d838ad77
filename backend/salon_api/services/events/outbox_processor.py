"""
Outbox processor for dispatching events from the outbox table.

Reads PENDING events and hands them to every registered subscriber.
Implements:
- Batch processing for efficiency
- Retry on failures, dead-lettering (FAILED) after max retries
- Idempotent processing (PROCESSING status prevents double dispatch)

This processor can run:
1. As a FastAPI background task (lifespan startup)
2. As a one-shot job (``cli.py process-outbox``)
"""

import asyncio
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from salon_api.models import OutboxEvent, OutboxStatus
from salon_api.services.events.event_types import DomainEvent
from salon_api.services.events.subscribers import EventSubscriber, LoggingSubscriber
from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.infrastructure.db import SessionLocal

logger = get_logger(__name__)


class OutboxProcessor:
    """
    Processes outbox events and dispatches them to subscribers.

    Status transitions: PENDING -> PROCESSING -> PUBLISHED, or back to
    PENDING on failure until ``max_retries`` is reached, then FAILED.
    """

    def __init__(
        self,
        subscribers: Sequence[EventSubscriber] | None = None,
        session_factory: Callable[[], Session] = SessionLocal,
        batch_size: int | None = None,
        max_retries: int | None = None,
        poll_interval: float | None = None,
    ):
        self._subscribers: list[EventSubscriber] = list(subscribers or [LoggingSubscriber()])
        self._session_factory = session_factory
        self._batch_size = batch_size or settings.outbox_batch_size
        self._max_retries = max_retries or settings.outbox_max_retries
        self._poll_interval = poll_interval or settings.outbox_poll_interval_seconds
        self._running = False
        self._task: asyncio.Task | None = None

    def subscribe(self, subscriber: EventSubscriber) -> None:
        self._subscribers.append(subscriber)

    async def start(self) -> None:
        """Start the processor loop."""
        if self._running:
            logger.warning("Outbox processor already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Outbox processor started", subscribers=len(self._subscribers))

    async def stop(self) -> None:
        """Stop the processor gracefully."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Outbox processor stopped")

    async def _run_loop(self) -> None:
        """Main processing loop."""
        while self._running:
            try:
                processed = await asyncio.to_thread(self.process_batch)
                if processed == 0:
                    await asyncio.sleep(self._poll_interval)
            except Exception as e:
                logger.error("Outbox processor error", error=str(e))
                await asyncio.sleep(self._poll_interval)

    def process_batch(self, db: Session | None = None) -> int:
        """
        Process a batch of PENDING events.

        Args:
            db: Session to use; a new one is opened (and closed) when omitted

        Returns:
            Number of events published
        """
        owns_session = db is None
        session = self._session_factory() if owns_session else db
        try:
            events = session.execute(
                select(OutboxEvent)
                .where(OutboxEvent.status == OutboxStatus.PENDING)
                .order_by(OutboxEvent.created_at.asc(), OutboxEvent.id.asc())
                .limit(self._batch_size)
                .with_for_update(skip_locked=True)  # Parallel workers skip claimed rows
            ).scalars().all()

            if not events:
                return 0

            # Claim the batch
            event_ids = [e.id for e in events]
            session.execute(
                update(OutboxEvent)
                .where(OutboxEvent.id.in_(event_ids))
                .values(status=OutboxStatus.PROCESSING)
                .execution_options(synchronize_session="fetch")
            )
            session.commit()

            published = 0
            for event in events:
                if self._dispatch(event):
                    event.status = OutboxStatus.PUBLISHED
                    event.processed_at = datetime.now(timezone.utc)
                    published += 1
                else:
                    event.retry_count += 1
                    if event.retry_count >= self._max_retries:
                        event.status = OutboxStatus.FAILED
                        logger.error(
                            "Outbox event failed after max retries",
                            event_id=event.id,
                            event_type=event.event_type,
                        )
                    else:
                        event.status = OutboxStatus.PENDING

            session.commit()
            logger.info("Outbox batch processed", total=len(events), published=published)
            return published

        except Exception as e:
            session.rollback()
            logger.error("Outbox batch processing failed", error=str(e))
            return 0
        finally:
            if owns_session:
                session.close()

    def _dispatch(self, event: OutboxEvent) -> bool:
        """
        Hand a single event to every subscriber.

        Returns:
            True if all subscribers accepted it, False otherwise
        """
        try:
            domain_event = DomainEvent.from_outbox(event)
            for subscriber in self._subscribers:
                subscriber.handle(domain_event)
            return True
        except Exception as e:
            event.last_error = str(e)
            logger.error(
                "Failed to dispatch outbox event",
                event_id=event.id,
                event_type=event.event_type,
                error=str(e),
            )
            return False


# Singleton instance
_processor: OutboxProcessor | None = None


def get_outbox_processor() -> OutboxProcessor:
    """Get the singleton outbox processor instance."""
    global _processor
    if _processor is None:
        _processor = OutboxProcessor()
    return _processor


async def start_outbox_processor() -> None:
    """Start the outbox processor (call in FastAPI lifespan startup)."""
    await get_outbox_processor().start()


async def stop_outbox_processor() -> None:
    """Stop the outbox processor (call in FastAPI lifespan shutdown)."""
    await get_outbox_processor().stop()
