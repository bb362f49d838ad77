"""
Consumer of an order line: a specific occupant, or the whole table.

Stored as a nullable ``consumer_customer_id`` column and exposed through
``OrderLine.consumer``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True, slots=True)
class OccupantConsumer:
    """Line consumed by one seated customer."""

    customer_id: int

    @property
    def kind(self) -> str:
        return "occupant"


@dataclass(frozen=True, slots=True)
class SharedConsumer:
    """Line shared by the whole table."""

    @property
    def kind(self) -> str:
        return "shared"


Consumer = Union[OccupantConsumer, SharedConsumer]

SHARED = SharedConsumer()


def consumer_from_id(customer_id: int | None) -> Consumer:
    return SHARED if customer_id is None else OccupantConsumer(customer_id)


def consumer_to_id(consumer: Consumer) -> int | None:
    if isinstance(consumer, OccupantConsumer):
        return consumer.customer_id
    return None
