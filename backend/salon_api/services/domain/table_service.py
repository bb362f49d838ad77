"""
Table Domain Service.

Seating, occupant transfer and force-release of tables. A table is
OCCUPIED while it has an open order; otherwise FREE.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from salon_api.models import Customer, Table, TableOccupant
from salon_api.services.domain.order_service import OrderService
from salon_api.services.events import EventType, write_outbox_event
from salon_api.services.identity import IdentityService
from shared.config.constants import OrderStatus, TableStatus
from shared.config.logging import get_logger
from shared.infrastructure.db import atomic
from shared.utils.exceptions import (
    CustomerNotFoundError,
    IncompleteOrderStateError,
    TableNotFoundError,
    ValidationError,
)
from shared.utils.schemas import OccupantOutput, TableStatusOutput, TransferOutput

logger = get_logger(__name__)


class TableService:
    """Domain service for seating and releasing tables."""

    def __init__(self, db: Session):
        self._db = db
        self._orders = OrderService(db)

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_table(self, table_id: int) -> Table:
        table = self._db.get(Table, table_id)
        if table is None:
            raise TableNotFoundError(table_id)
        return table

    def get_customer(self, customer_id: int) -> Customer:
        customer = self._db.get(Customer, customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return customer

    @staticmethod
    def occupant_ids(table: Table) -> list[int]:
        """Seated customers in seating order."""
        return [occupant.customer_id for occupant in table.occupants]

    def require_seated(self, table: Table, customer_id: int, field: str) -> TableOccupant:
        for occupant in table.occupants:
            if occupant.customer_id == customer_id:
                return occupant
        raise ValidationError(
            "Cliente não está sentado nesta mesa",
            field=field,
            customer_id=customer_id,
            table_id=table.id,
        )

    def table_status(self, table_id: int) -> TableStatusOutput:
        table = self.get_table(table_id)
        order = self._orders.get_open_order(table_id)
        return TableStatusOutput(
            table_id=table.id,
            code=table.code,
            capacity=table.capacity,
            status=TableStatus.OCCUPIED if order else TableStatus.FREE,
            open_order_id=order.id if order else None,
            principal_customer_id=table.principal_customer_id,
            occupants=[self._occupant_output(table, o) for o in table.occupants],
        )

    # =========================================================================
    # Steps
    # =========================================================================

    def detach_occupant(self, table: Table, customer_id: int) -> None:
        """
        Step: unseat one customer.

        When the principal leaves, the earliest-seated remaining occupant
        becomes principal.
        """
        occupant = self.require_seated(table, customer_id, "customer_id")
        table.occupants.remove(occupant)
        if table.principal_customer_id == customer_id:
            table.principal_customer_id = table.occupants[0].customer_id if table.occupants else None
        self._db.flush()
        logger.info(
            "Occupant detached",
            table_id=table.id,
            customer_id=customer_id,
            principal_customer_id=table.principal_customer_id,
        )

    def clear_occupants(self, table: Table) -> list[int]:
        """Step: unseat everyone and drop the principal."""
        removed = self.occupant_ids(table)
        table.occupants.clear()
        table.principal_customer_id = None
        self._db.flush()
        return removed

    def release_table(self, table_id: int, actor_id: int | None = None) -> TableStatusOutput:
        """
        Step: force-release a table.

        Cancels the open order, if any, and unseats everyone. Refused while
        any line of the open order is being prepared.
        """
        self.ensure_releasable(table_id)
        table = self.get_table(table_id)
        order = self._orders.get_open_order(table_id)

        removed = self.clear_occupants(table)
        cancelled_order_id = None
        if order is not None:
            order.status = OrderStatus.CANCELLED
            cancelled_order_id = order.id
            self._db.flush()

        write_outbox_event(
            self._db,
            EventType.TABLE_RELEASED,
            aggregate_type="table",
            aggregate_id=table.id,
            payload={
                "table_id": table.id,
                "cancelled_order_id": cancelled_order_id,
                "removed_customer_ids": removed,
                "actor_id": actor_id,
            },
        )
        logger.info(
            "Table released",
            table_id=table.id,
            cancelled_order_id=cancelled_order_id,
            actor_id=actor_id,
        )
        return self.table_status(table_id)

    def ensure_releasable(self, table_id: int) -> None:
        """Check a release would be accepted without performing it."""
        self.get_table(table_id)
        order = self._orders.get_open_order(table_id)
        if order is not None:
            preparing = self._orders.preparing_line_ids(order)
            if preparing:
                raise IncompleteOrderStateError(order.id, preparing)

    # =========================================================================
    # Units of work
    # =========================================================================

    def seat_occupant(self, table_id: int, customer_id: int) -> OccupantOutput:
        """
        Seat a customer. The first occupant becomes principal.
        """

        def _seat() -> OccupantOutput:
            table = self.get_table(table_id)
            self.get_customer(customer_id)
            self._seat(table, customer_id)
            write_outbox_event(
                self._db,
                EventType.OCCUPANT_SEATED,
                aggregate_type="table",
                aggregate_id=table.id,
                payload={
                    "table_id": table.id,
                    "customer_id": customer_id,
                    "is_principal": table.principal_customer_id == customer_id,
                },
            )
            occupant = self.require_seated(table, customer_id, "customer_id")
            return self._occupant_output(table, occupant)

        return atomic(self._db, _seat, name="seat_occupant")

    def identify_and_seat(
        self,
        table_id: int,
        sample: bytes,
        identity: IdentityService,
    ) -> OccupantOutput | None:
        """
        Seat whoever the Identity Service recognizes in ``sample``.

        Returns None, without touching the table, when nobody matched.
        """
        customer_id = identity.identify(sample)
        if customer_id is None:
            logger.info("No customer recognized", table_id=table_id)
            return None
        return self.seat_occupant(table_id, customer_id)

    def transfer_occupant(
        self,
        source_table_id: int,
        target_table_id: int,
        customer_id: int,
    ) -> TransferOutput:
        """
        Move a customer and their unpaid personal lines to a free table.

        The lines move to a new open order on the target. The source order is
        cancelled when left with no lines, and settled when everything left
        on it is already paid.
        """

        def _transfer() -> TransferOutput:
            if source_table_id == target_table_id:
                raise ValidationError(
                    "Mesa de destino igual à de origem",
                    field="target_table_id",
                    table_id=target_table_id,
                )
            source = self.get_table(source_table_id)
            target = self.get_table(target_table_id)
            self.require_seated(source, customer_id, "customer_id")
            if self._orders.get_open_order(target.id) is not None:
                raise ValidationError(
                    "Mesa de destino está ocupada",
                    field="target_table_id",
                    table_id=target.id,
                )

            self.detach_occupant(source, customer_id)
            self._seat(target, customer_id)

            moved_line_ids: list[int] = []
            target_order_id = None
            source_order = self._orders.get_open_order(source.id)
            source_status = None
            if source_order is not None:
                personal = [
                    line
                    for line in source_order.lines
                    if line.consumer_customer_id == customer_id and line.quantity_remaining_to_settle > 0
                ]
                if personal:
                    target_order = self._orders.get_or_create_open_order(target.id)
                    for line in personal:
                        line.order = target_order
                    self._db.flush()
                    target_order_id = target_order.id
                    moved_line_ids = [line.id for line in personal]

                if not source_order.lines:
                    source_order.status = OrderStatus.CANCELLED
                    self._db.flush()
                else:
                    self._orders.mark_settled_if_complete(source_order)
                source_status = source_order.status

            write_outbox_event(
                self._db,
                EventType.OCCUPANT_TRANSFERRED,
                aggregate_type="table",
                aggregate_id=source.id,
                payload={
                    "customer_id": customer_id,
                    "source_table_id": source.id,
                    "target_table_id": target.id,
                    "target_order_id": target_order_id,
                    "moved_line_ids": moved_line_ids,
                },
            )
            logger.info(
                "Occupant transferred",
                customer_id=customer_id,
                source_table_id=source.id,
                target_table_id=target.id,
                moved_lines=len(moved_line_ids),
            )
            return TransferOutput(
                customer_id=customer_id,
                source_table_id=source.id,
                target_table_id=target.id,
                target_order_id=target_order_id,
                moved_line_ids=moved_line_ids,
                source_order_status=source_status,
            )

        return atomic(self._db, _transfer, name="transfer_occupant")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _seat(self, table: Table, customer_id: int) -> None:
        seated_at = self._orders.seated_table_id(customer_id)
        if seated_at is not None:
            raise ValidationError(
                "Cliente já está sentado em uma mesa",
                field="customer_id",
                customer_id=customer_id,
                table_id=seated_at,
            )
        if len(table.occupants) >= table.capacity:
            raise ValidationError(
                f"Mesa {table.code} está na capacidade máxima ({table.capacity})",
                field="capacity",
                table_id=table.id,
                capacity=table.capacity,
            )

        table.occupants.append(TableOccupant(customer_id=customer_id))
        if table.principal_customer_id is None:
            table.principal_customer_id = customer_id
        self._db.flush()
        logger.info(
            "Occupant seated",
            table_id=table.id,
            customer_id=customer_id,
            principal=table.principal_customer_id == customer_id,
        )

    def _occupant_output(self, table: Table, occupant: TableOccupant) -> OccupantOutput:
        return OccupantOutput(
            table_id=table.id,
            customer_id=occupant.customer_id,
            customer_name=occupant.customer.name,
            is_principal=table.principal_customer_id == occupant.customer_id,
            seated_at=occupant.seated_at,
        )
