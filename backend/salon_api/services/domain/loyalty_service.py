"""
Loyalty Domain Service.

Redeeming points adds a fully discounted line to the table's open order,
attributed to the redeeming occupant. The points debit, the line and the
event are one unit of work: either all happen or none.
"""

from sqlalchemy.orm import Session

from salon_api.models import Customer
from salon_api.services.domain.catalog_service import CatalogService
from salon_api.services.domain.order_service import OrderService
from salon_api.services.events import EventType, write_order_outbox_event
from shared.config.constants import (
    REDEMPTION_NAME_PREFIX,
    REDEMPTION_REASON_TEMPLATE,
    Limits,
)
from shared.config.logging import loyalty_logger as logger, mask_customer_id
from shared.infrastructure.db import atomic
from shared.utils.exceptions import (
    CustomerNotFoundError,
    InsufficientPointsError,
    ValidationError,
)
from shared.utils.schemas import RedemptionOutput


class LoyaltyService:
    def __init__(self, db: Session):
        self._db = db
        self._orders = OrderService(db)
        self._catalog = CatalogService(db)

    def get_customer(self, customer_id: int) -> Customer:
        customer = self._db.get(Customer, customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return customer

    def balance(self, customer_id: int) -> int:
        return self.get_customer(customer_id).points

    def redeem(
        self,
        occupant_id: int,
        product_id: int,
        quantity: int = 1,
        actor_id: int | None = None,
    ) -> RedemptionOutput:
        """
        Exchange points for a product served at the occupant's table.

        Costs ``points_cost * quantity``. The line is named with the
        redemption prefix and carries a 100% discount.
        """

        def _redeem() -> RedemptionOutput:
            if not Limits.MIN_QUANTITY <= quantity <= Limits.MAX_QUANTITY:
                raise ValidationError(
                    f"Quantidade deve estar entre {Limits.MIN_QUANTITY} e {Limits.MAX_QUANTITY}",
                    field="quantity",
                    value=quantity,
                )
            customer = self.get_customer(occupant_id)
            product = self._catalog.get_available(product_id)
            if not product.is_redeemable:
                raise ValidationError(
                    f"Produto '{product.name}' não pode ser resgatado com pontos",
                    field="product_id",
                    product_id=product.id,
                )

            table_id = self._orders.seated_table_id(customer.id)
            if table_id is None:
                raise ValidationError(
                    "Cliente não está sentado em nenhuma mesa",
                    field="occupant_id",
                    customer_id=customer.id,
                )

            cost = product.points_cost * quantity
            if customer.points < cost:
                raise InsufficientPointsError(customer.id, required=cost, available=customer.points)

            order = self._orders.get_or_create_open_order(table_id)
            line = self._orders.create_line(
                order,
                product,
                quantity,
                customer.id,
                name=f"{REDEMPTION_NAME_PREFIX} {product.name}",
                discount_percent=Limits.MAX_DISCOUNT_PERCENT,
                discount_reason=REDEMPTION_REASON_TEMPLATE.format(points=cost),
            )
            customer.points -= cost
            self._db.flush()

            write_order_outbox_event(
                self._db,
                EventType.LOYALTY_REDEEMED,
                order,
                extra_data={
                    "customer_id": customer.id,
                    "line_id": line.id,
                    "product_id": product.id,
                    "quantity": quantity,
                    "points_debited": cost,
                },
                actor_id=actor_id,
            )
            logger.info(
                "Points redeemed",
                customer=mask_customer_id(customer.id),
                product_id=product.id,
                points=cost,
                order_id=order.id,
            )
            return RedemptionOutput(
                order_id=order.id,
                line_id=line.id,
                customer_id=customer.id,
                points_debited=cost,
                points_remaining=customer.points,
            )

        return atomic(self._db, _redeem, name="redeem")
