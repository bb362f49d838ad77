"""
Line grouping: merge raw order lines into per-consumer groups.

Pure functions over ``LineSnapshot`` values, no database access.

Algorithm:
1. Drop lines with nothing left to settle.
2. Partition by consumer (an occupant, or the table as a whole).
3. Within each partition, merge lines with the same product name, summing
   quantity and discounted subtotal. The earliest-created line (lowest id)
   is the representative: its id, name and discount describe the merged item.

Every current occupant gets a group, even with no lines, and there is
always exactly one shared group. Lines attributed to a customer who is no
longer seated keep their own group so their value stays in the totals.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from salon_api.models import SHARED, Consumer, OccupantConsumer, OrderLine, SharedConsumer
from salon_api.services.billing.money import discounted_amount_cents
from shared.utils.schemas import (
    ConsumerGroupOutput,
    ConsumerOutput,
    GroupedItemOutput,
    GroupsOutput,
    OccupantConsumerOutput,
    SharedConsumerOutput,
)


@dataclass(frozen=True, slots=True)
class LineSnapshot:
    """Billing-relevant view of an order line."""

    line_id: int
    product_name: str
    unit_price_cents: int
    payable_quantity: int
    discount_percent: int = 0
    discount_reason: str | None = None
    consumer: Consumer = SHARED

    @property
    def amount_cents(self) -> int:
        return discounted_amount_cents(self.unit_price_cents, self.payable_quantity, self.discount_percent)

    @classmethod
    def from_line(cls, line: OrderLine) -> LineSnapshot:
        return cls(
            line_id=line.id,
            product_name=line.product_name,
            unit_price_cents=line.unit_price_cents,
            payable_quantity=line.quantity_remaining_to_settle,
            discount_percent=line.discount_percent,
            discount_reason=line.discount_reason,
            consumer=line.consumer,
        )


@dataclass(slots=True)
class GroupedItem:
    """Lines of one consumer merged by product name."""

    product_name: str
    unit_price_cents: int
    line_id: int
    discount_percent: int
    discount_reason: str | None
    quantity: int = 0
    subtotal_cents: int = 0
    line_ids: list[int] = field(default_factory=list)

    def add(self, line: LineSnapshot) -> None:
        self.quantity += line.payable_quantity
        self.subtotal_cents += line.amount_cents
        self.line_ids.append(line.line_id)

    @property
    def is_merged(self) -> bool:
        return len(self.line_ids) > 1

    def to_output(self) -> GroupedItemOutput:
        return GroupedItemOutput(
            product_name=self.product_name,
            quantity=self.quantity,
            unit_price_cents=self.unit_price_cents,
            subtotal_cents=self.subtotal_cents,
            line_id=self.line_id,
            discount_percent=self.discount_percent,
            discount_reason=self.discount_reason,
            line_ids=list(self.line_ids),
        )


@dataclass(slots=True)
class ConsumerGroup:
    """All eligible lines of one consumer."""

    consumer: Consumer
    seated: bool
    items: list[GroupedItem] = field(default_factory=list)

    @property
    def subtotal_cents(self) -> int:
        return sum(item.subtotal_cents for item in self.items)

    @property
    def is_shared(self) -> bool:
        return isinstance(self.consumer, SharedConsumer)

    def item_for_line(self, line_id: int) -> GroupedItem | None:
        for item in self.items:
            if line_id in item.line_ids:
                return item
        return None

    def to_output(self) -> ConsumerGroupOutput:
        return ConsumerGroupOutput(
            consumer=consumer_output(self.consumer),
            seated=self.seated,
            items=[item.to_output() for item in self.items],
            subtotal_cents=self.subtotal_cents,
        )


def consumer_output(consumer: Consumer) -> ConsumerOutput:
    if isinstance(consumer, OccupantConsumer):
        return OccupantConsumerOutput(customer_id=consumer.customer_id)
    return SharedConsumerOutput()


def _merge_by_product(lines: list[LineSnapshot]) -> list[GroupedItem]:
    items: dict[str, GroupedItem] = {}
    for line in sorted(lines, key=lambda line: line.line_id):
        item = items.get(line.product_name)
        if item is None:
            item = GroupedItem(
                product_name=line.product_name,
                unit_price_cents=line.unit_price_cents,
                line_id=line.line_id,
                discount_percent=line.discount_percent,
                discount_reason=line.discount_reason,
            )
            items[line.product_name] = item
        item.add(line)
    return list(items.values())


def group_lines(lines: Iterable[LineSnapshot], occupant_ids: Sequence[int]) -> list[ConsumerGroup]:
    """
    Build consumer groups for an order.

    Args:
        lines: Snapshots of every line of the order
        occupant_ids: Customers currently seated, in seating order

    Returns:
        One group per seated occupant (seating order), then one per
        unseated customer that still has lines (by id), then the shared group.
    """
    partitions: dict[Consumer, list[LineSnapshot]] = {}
    for line in lines:
        if line.payable_quantity <= 0:
            continue
        partitions.setdefault(line.consumer, []).append(line)

    seated = set(occupant_ids)
    groups: list[ConsumerGroup] = []

    for customer_id in occupant_ids:
        consumer = OccupantConsumer(customer_id)
        groups.append(
            ConsumerGroup(consumer=consumer, seated=True, items=_merge_by_product(partitions.get(consumer, [])))
        )

    unseated = sorted(
        (c for c in partitions if isinstance(c, OccupantConsumer) and c.customer_id not in seated),
        key=lambda c: c.customer_id,
    )
    for consumer in unseated:
        groups.append(ConsumerGroup(consumer=consumer, seated=False, items=_merge_by_product(partitions[consumer])))

    groups.append(ConsumerGroup(consumer=SHARED, seated=True, items=_merge_by_product(partitions.get(SHARED, []))))
    return groups


def shared_group(groups: Iterable[ConsumerGroup]) -> ConsumerGroup:
    for group in groups:
        if group.is_shared:
            return group
    return ConsumerGroup(consumer=SHARED, seated=True)


def group_for(groups: Iterable[ConsumerGroup], consumer: Consumer) -> ConsumerGroup | None:
    for group in groups:
        if group.consumer == consumer:
            return group
    return None


@dataclass(slots=True)
class OrderGroups:
    """Consumer groups of one order."""

    order_id: int
    table_id: int
    groups: list[ConsumerGroup]

    def __iter__(self):
        return iter(self.groups)

    def to_output(self) -> GroupsOutput:
        return GroupsOutput(
            order_id=self.order_id,
            table_id=self.table_id,
            groups=[group.to_output() for group in self.groups],
        )
