"""
Order Domain Service.

Handles the open tab of a table: lazy creation, adding lines, kitchen
preparation status and line discounts.

Methods documented as steps run inside the caller's unit of work and do not
commit; the others are complete units of work.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from salon_api.models import Order, OrderLine, Product, Table, TableOccupant
from salon_api.services.domain.catalog_service import CatalogService
from salon_api.services.events import EventType, write_order_outbox_event
from salon_api.services.billing.grouping import consumer_output
from shared.config.constants import PREP_TRANSITIONS, LinePrepStatus, Limits, OrderStatus
from shared.config.logging import get_logger
from shared.infrastructure.db import atomic
from shared.utils.exceptions import (
    InvalidTransitionError,
    OrderLineNotFoundError,
    OrderNotFoundError,
    TableNotFoundError,
    ValidationError,
)
from shared.utils.schemas import OrderLineOutput, OrderOutput

logger = get_logger(__name__)


class OrderService:
    """Domain service for Order and OrderLine operations."""

    def __init__(self, db: Session):
        self._db = db
        self._catalog = CatalogService(db)

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_order(self, order_id: int) -> Order:
        order = self._db.get(Order, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def get_line(self, line_id: int) -> OrderLine:
        line = self._db.get(OrderLine, line_id)
        if line is None:
            raise OrderLineNotFoundError(line_id)
        return line

    def get_open_order(self, table_id: int) -> Order | None:
        return self._db.scalar(
            select(Order).where(
                Order.table_id == table_id,
                Order.status == OrderStatus.OPEN,
            )
        )

    def require_open(self, order: Order) -> None:
        if not order.is_open:
            raise ValidationError(
                f"Pedido {order.id} não está aberto",
                field="order_id",
                order_id=order.id,
                status=order.status,
            )

    def seated_table_id(self, customer_id: int) -> int | None:
        """Table the customer is currently seated at, if any."""
        return self._db.scalar(
            select(TableOccupant.table_id).where(TableOccupant.customer_id == customer_id)
        )

    @staticmethod
    def preparing_line_ids(order: Order) -> list[int]:
        return [
            line.id
            for line in order.lines
            if line.prep_status in LinePrepStatus.BLOCKS_CLOSEOUT
        ]

    # =========================================================================
    # Steps
    # =========================================================================

    def get_or_create_open_order(self, table_id: int) -> Order:
        """
        Step: the table's open order, created on first use.
        """
        order = self.get_open_order(table_id)
        if order is not None:
            return order

        if self._db.get(Table, table_id) is None:
            raise TableNotFoundError(table_id)

        order = Order(table_id=table_id, status=OrderStatus.OPEN, tip_cents=0, settlement_count=0)
        self._db.add(order)
        self._db.flush()
        logger.info("Order opened", order_id=order.id, table_id=table_id)
        return order

    def create_line(
        self,
        order: Order,
        product: Product,
        quantity: int,
        consumer_id: int | None = None,
        *,
        name: str | None = None,
        discount_percent: int = 0,
        discount_reason: str | None = None,
    ) -> OrderLine:
        """
        Step: append a line snapshotting the product's name and price.

        Lines that need no preparation are delivered on creation.
        """
        line = OrderLine(
            product_id=product.id,
            product_name=name or product.name,
            unit_price_cents=product.price_cents,
            quantity=quantity,
            quantity_remaining_to_settle=quantity,
            consumer_customer_id=consumer_id,
            discount_percent=discount_percent,
            discount_reason=discount_reason,
            requires_preparation=product.requires_preparation,
            prep_status=LinePrepStatus.PENDING if product.requires_preparation else LinePrepStatus.DELIVERED,
        )
        order.lines.append(line)
        self._db.flush()
        return line

    def validate_discount(self, line_id: int, discount_percent: int, reason: str | None) -> OrderLine:
        """
        Check a discount request without applying it.

        The percent must be an integer in [0, 100] and the line must be
        unpaid on an open order.
        """
        if (
            isinstance(discount_percent, bool)
            or not isinstance(discount_percent, int)
            or not Limits.MIN_DISCOUNT_PERCENT <= discount_percent <= Limits.MAX_DISCOUNT_PERCENT
        ):
            raise ValidationError(
                "O desconto deve estar entre 0 e 100",
                field="discount_percent",
                value=discount_percent,
            )
        if reason is not None and len(reason) > Limits.MAX_REASON_LENGTH:
            raise ValidationError("Motivo do desconto muito longo", field="reason")

        line = self.get_line(line_id)
        self.require_open(line.order)
        if line.is_settled:
            raise ValidationError(
                "Item já foi pago",
                field="line_id",
                line_id=line_id,
            )
        return line

    def apply_discount(
        self,
        line_id: int,
        discount_percent: int,
        reason: str | None = None,
        actor_id: int | None = None,
    ) -> OrderLine:
        """
        Step: set the discount of a line and emit discount.applied.
        """
        line = self.validate_discount(line_id, discount_percent, reason)
        previous = line.discount_percent
        line.discount_percent = discount_percent
        line.discount_reason = reason
        self._db.flush()

        write_order_outbox_event(
            self._db,
            EventType.DISCOUNT_APPLIED,
            line.order,
            extra_data={
                "line_id": line.id,
                "discount_percent": discount_percent,
                "previous_discount_percent": previous,
                "reason": reason,
            },
            actor_id=actor_id,
        )
        logger.info(
            "Discount applied",
            line_id=line.id,
            order_id=line.order_id,
            discount_percent=discount_percent,
            actor_id=actor_id,
        )
        return line

    def mark_settled_if_complete(self, order: Order, actor_id: int | None = None) -> bool:
        """
        Step: move the order to SETTLED once every line is fully paid.

        Returns True when the order was settled by this call.
        """
        if not order.is_open or not order.lines:
            return False
        if any(line.quantity_remaining_to_settle > 0 for line in order.lines):
            return False

        order.status = OrderStatus.SETTLED
        self._db.flush()
        write_order_outbox_event(
            self._db,
            EventType.ORDER_SETTLED,
            order,
            extra_data={"tip_cents": order.tip_cents, "tip_recipient_id": order.tip_recipient_id},
            actor_id=actor_id,
        )
        logger.info("Order settled", order_id=order.id, table_id=order.table_id)
        return True

    # =========================================================================
    # Units of work
    # =========================================================================

    def add_line(
        self,
        table_id: int,
        product_id: int,
        quantity: int = 1,
        consumer_id: int | None = None,
    ) -> OrderLineOutput:
        """
        Add a catalog product to the table's tab.

        ``consumer_id`` attributes the line to a seated occupant; None shares
        it with the whole table. The order is created on the first line.
        """

        def _add() -> OrderLineOutput:
            if not Limits.MIN_QUANTITY <= quantity <= Limits.MAX_QUANTITY:
                raise ValidationError(
                    f"Quantidade deve estar entre {Limits.MIN_QUANTITY} e {Limits.MAX_QUANTITY}",
                    field="quantity",
                    value=quantity,
                )
            if self._db.get(Table, table_id) is None:
                raise TableNotFoundError(table_id)
            if consumer_id is not None and self.seated_table_id(consumer_id) != table_id:
                raise ValidationError(
                    "Cliente não está sentado nesta mesa",
                    field="consumer_id",
                    customer_id=consumer_id,
                    table_id=table_id,
                )

            product = self._catalog.get_available(product_id)
            order = self.get_or_create_open_order(table_id)
            line = self.create_line(order, product, quantity, consumer_id)
            logger.info(
                "Line added",
                order_id=order.id,
                line_id=line.id,
                product_id=product.id,
                quantity=quantity,
                consumer_id=consumer_id,
            )
            return self.line_to_output(line)

        return atomic(self._db, _add, name="add_line")

    def advance_preparation(self, line_id: int, status: str) -> OrderLineOutput:
        """Move a line along PENDING -> PREPARING -> DELIVERED."""

        def _advance() -> OrderLineOutput:
            line = self.get_line(line_id)
            allowed = PREP_TRANSITIONS.get(line.prep_status, [])
            if status not in allowed:
                raise InvalidTransitionError("item do pedido", line.prep_status, status, line_id=line_id)
            line.prep_status = status
            self._db.flush()
            logger.info("Preparation advanced", line_id=line_id, status=status)
            return self.line_to_output(line)

        return atomic(self._db, _advance, name="advance_preparation")

    def get_order_output(self, order_id: int) -> OrderOutput:
        return self.order_to_output(self.get_order(order_id))

    # =========================================================================
    # Output builders
    # =========================================================================

    @staticmethod
    def line_to_output(line: OrderLine) -> OrderLineOutput:
        return OrderLineOutput(
            id=line.id,
            order_id=line.order_id,
            product_id=line.product_id,
            product_name=line.product_name,
            unit_price_cents=line.unit_price_cents,
            quantity=line.quantity,
            quantity_remaining=line.quantity_remaining_to_settle,
            consumer=consumer_output(line.consumer),
            discount_percent=line.discount_percent,
            discount_reason=line.discount_reason,
            requires_preparation=line.requires_preparation,
            prep_status=line.prep_status,
            created_at=line.created_at,
        )

    def order_to_output(self, order: Order) -> OrderOutput:
        return OrderOutput(
            id=order.id,
            table_id=order.table_id,
            status=order.status,
            tip_cents=order.tip_cents,
            tip_recipient_id=order.tip_recipient_id,
            lines=[self.line_to_output(line) for line in order.lines],
        )
