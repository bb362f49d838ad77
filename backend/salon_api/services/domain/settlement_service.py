"""
Settlement Domain Service.

Three mutually-exclusive ways to pay an open order:

1. Full-table: every remaining line at once; the order is settled and the
   table cleared. Refused while the kitchen is preparing anything.
2. Per-occupant: only the lines attributed to one occupant; the occupant
   leaves the table.
3. Partial: part of the quantity of one shared line, paid by a seated
   occupant. Refused when the shared line was merged with other lines of
   the same product, since the caller cannot tell which one is meant.

Whatever the flow, the order becomes SETTLED once nothing is left to pay
and everyone still seated leaves the table.
A tip is charged exactly when a tip recipient (staff member) is given.
"""

from collections.abc import Sequence

from sqlalchemy.orm import Session

from salon_api.models import Order, OrderLine, Settlement, SettlementItem, StaffMember
from salon_api.services.billing import (
    LineSnapshot,
    OrderGroups,
    compute_tip,
    discounted_amount_cents,
    group_lines,
    settled_amount_cents,
    shared_group,
)
from salon_api.services.domain.order_service import OrderService
from salon_api.services.domain.table_service import TableService
from salon_api.services.events import EventType, write_order_outbox_event
from shared.config.constants import SettlementKind
from shared.config.logging import billing_logger as logger
from shared.infrastructure.db import atomic
from shared.utils.exceptions import (
    AmbiguousPartialSettlementError,
    IncompleteOrderStateError,
    StaffNotFoundError,
    ValidationError,
)
from shared.utils.schemas import SettlementItemOutput, SettlementOutput


class SettlementService:
    """Domain service for grouping and settling orders."""

    def __init__(self, db: Session):
        self._db = db
        self._orders = OrderService(db)
        self._tables = TableService(db)

    # =========================================================================
    # Grouping
    # =========================================================================

    def group_lines(self, order_id: int) -> OrderGroups:
        """
        Merge the order's lines into consumer groups.

        For an open order, every occupant currently seated at the table gets
        a group. Closed orders only show what is still unpaid, which is
        nothing once settled.
        """
        order = self._orders.get_order(order_id)
        return self._groups(order)

    def _groups(self, order: Order) -> OrderGroups:
        occupant_ids = self._tables.occupant_ids(order.table) if order.is_open else []
        snapshots = [LineSnapshot.from_line(line) for line in order.lines]
        return OrderGroups(
            order_id=order.id,
            table_id=order.table_id,
            groups=group_lines(snapshots, occupant_ids),
        )

    # =========================================================================
    # Units of work
    # =========================================================================

    def settle_full(
        self,
        order_id: int,
        tip_recipient_id: int | None = None,
        actor_id: int | None = None,
    ) -> SettlementOutput:
        """Pay everything left on the order and free the table."""

        def _settle() -> SettlementOutput:
            order = self._open_order(order_id)
            self._validate_tip_recipient(tip_recipient_id)

            preparing = self._orders.preparing_line_ids(order)
            if preparing:
                raise IncompleteOrderStateError(order.id, preparing)

            payable = [line for line in order.lines if line.quantity_remaining_to_settle > 0]
            if not payable:
                raise ValidationError("Não há itens pendentes de pagamento", field="order_id", order_id=order.id)

            paid = [self._pay_all(line) for line in payable]
            settlement = self._record(
                order,
                SettlementKind.FULL,
                paid,
                tip_recipient_id=tip_recipient_id,
                payer_customer_id=order.table.principal_customer_id,
                actor_id=actor_id,
            )

            self._orders.mark_settled_if_complete(order, actor_id=actor_id)
            self._tables.clear_occupants(order.table)
            return self._to_output(settlement, order)

        return atomic(self._db, _settle, name="settle_full")

    def settle_occupant(
        self,
        order_id: int,
        occupant_id: int,
        tip_recipient_id: int | None = None,
        actor_id: int | None = None,
    ) -> SettlementOutput:
        """
        Pay the lines attributed to one occupant, who then leaves the table.

        Shared lines are never included. Kitchen preparation does not block
        this flow.
        """

        def _settle() -> SettlementOutput:
            order = self._open_order(order_id)
            self._validate_tip_recipient(tip_recipient_id)
            self._tables.require_seated(order.table, occupant_id, "occupant_id")

            payable = [
                line
                for line in order.lines
                if line.consumer_customer_id == occupant_id and line.quantity_remaining_to_settle > 0
            ]
            paid = [self._pay_all(line) for line in payable]
            settlement = self._record(
                order,
                SettlementKind.OCCUPANT,
                paid,
                tip_recipient_id=tip_recipient_id,
                payer_customer_id=occupant_id,
                actor_id=actor_id,
            )

            self._tables.detach_occupant(order.table, occupant_id)
            if self._orders.mark_settled_if_complete(order, actor_id=actor_id):
                self._tables.clear_occupants(order.table)
            return self._to_output(settlement, order)

        return atomic(self._db, _settle, name="settle_occupant")

    def settle_partial(
        self,
        order_id: int,
        line_id: int,
        quantity: int,
        paying_occupant_id: int,
        tip_recipient_id: int | None = None,
        actor_id: int | None = None,
    ) -> SettlementOutput:
        """
        Pay ``quantity`` units of one shared line on behalf of a seated occupant.
        """

        def _settle() -> SettlementOutput:
            order = self._open_order(order_id)
            self._validate_tip_recipient(tip_recipient_id)
            line = self._orders.get_line(line_id)
            if line.order_id != order.id:
                raise ValidationError(
                    "Item não pertence a este pedido",
                    field="line_id",
                    line_id=line_id,
                    order_id=order.id,
                )
            if not line.is_shared:
                raise ValidationError(
                    "Pagamento parcial só é permitido para itens da mesa",
                    field="line_id",
                    line_id=line_id,
                )
            self._tables.require_seated(order.table, paying_occupant_id, "paying_occupant_id")

            item = shared_group(self._groups(order)).item_for_line(line.id)
            if item is not None and item.is_merged:
                raise AmbiguousPartialSettlementError(line.id, item.line_ids)

            remaining = line.quantity_remaining_to_settle
            if quantity <= 0 or quantity > remaining:
                raise ValidationError(
                    f"Quantidade deve estar entre 1 e {remaining}",
                    field="quantity",
                    value=quantity,
                    remaining=remaining,
                )

            amount = settled_amount_cents(line.unit_price_cents, remaining, quantity, line.discount_percent)
            line.quantity_remaining_to_settle = remaining - quantity
            settlement = self._record(
                order,
                SettlementKind.PARTIAL,
                [(line, quantity, amount)],
                tip_recipient_id=tip_recipient_id,
                payer_customer_id=paying_occupant_id,
                actor_id=actor_id,
            )

            if self._orders.mark_settled_if_complete(order, actor_id=actor_id):
                self._tables.clear_occupants(order.table)
            return self._to_output(settlement, order)

        return atomic(self._db, _settle, name="settle_partial")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _open_order(self, order_id: int) -> Order:
        order = self._orders.get_order(order_id)
        self._orders.require_open(order)
        return order

    def _validate_tip_recipient(self, tip_recipient_id: int | None) -> None:
        if tip_recipient_id is None:
            return
        if self._db.get(StaffMember, tip_recipient_id) is None:
            raise StaffNotFoundError(tip_recipient_id)

    @staticmethod
    def _pay_all(line: OrderLine) -> tuple[OrderLine, int, int]:
        """Zero the line's remaining quantity; returns (line, quantity paid, amount paid)."""
        quantity = line.quantity_remaining_to_settle
        amount = discounted_amount_cents(line.unit_price_cents, quantity, line.discount_percent)
        line.quantity_remaining_to_settle = 0
        return line, quantity, amount

    def _record(
        self,
        order: Order,
        kind: str,
        paid: Sequence[tuple[OrderLine, int, int]],
        *,
        tip_recipient_id: int | None,
        payer_customer_id: int | None,
        actor_id: int | None,
    ) -> Settlement:
        """Persist the settlement record, credit the tip and emit settlement.completed."""
        subtotal = sum(amount for _, _, amount in paid)
        tip = compute_tip(subtotal, tip_enabled=tip_recipient_id is not None)

        settlement = Settlement(
            order_id=order.id,
            kind=kind,
            payer_customer_id=payer_customer_id,
            subtotal_cents=subtotal,
            tip_cents=tip,
            total_cents=subtotal + tip,
            tip_recipient_id=tip_recipient_id,
            settled_by_id=actor_id,
            items=[
                SettlementItem(line_id=line.id, quantity=quantity, amount_cents=amount)
                for line, quantity, amount in paid
            ],
        )
        self._db.add(settlement)

        order.settlement_count += 1
        if tip_recipient_id is not None:
            order.tip_cents += tip
            order.tip_recipient_id = tip_recipient_id
        self._db.flush()

        write_order_outbox_event(
            self._db,
            EventType.SETTLEMENT_COMPLETED,
            order,
            extra_data={
                "settlement_id": settlement.id,
                "kind": kind,
                "payer_customer_id": payer_customer_id,
                "subtotal_cents": subtotal,
                "tip_cents": tip,
                "total_cents": subtotal + tip,
                "tip_recipient_id": tip_recipient_id,
                "line_ids": [line.id for line, _, _ in paid],
            },
            actor_id=actor_id,
        )
        logger.info(
            "Settlement recorded",
            settlement_id=settlement.id,
            order_id=order.id,
            kind=kind,
            subtotal_cents=subtotal,
            tip_cents=tip,
            tip_recipient_id=tip_recipient_id,
        )
        return settlement

    @staticmethod
    def _to_output(settlement: Settlement, order: Order) -> SettlementOutput:
        return SettlementOutput(
            settlement_id=settlement.id,
            kind=settlement.kind,
            order_id=order.id,
            payer_customer_id=settlement.payer_customer_id,
            subtotal_cents=settlement.subtotal_cents,
            tip_cents=settlement.tip_cents,
            total_cents=settlement.total_cents,
            tip_recipient_id=settlement.tip_recipient_id,
            order_status=order.status,
            items=[
                SettlementItemOutput(line_id=i.line_id, quantity=i.quantity, amount_cents=i.amount_cents)
                for i in settlement.items
            ],
        )
