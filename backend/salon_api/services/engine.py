"""
SalonEngine: the invocation surface of the billing core.

Wraps the domain services so every operation returns an OperationResult
carrying either a typed value or a typed error (ErrorOutput). Callers never
catch domain exceptions or parse messages.

StoreUnavailableError is not converted: it propagates so the caller can
retry against a healthy store. Unexpected faults propagate as well.

Usage:
    engine = SalonEngine(db)
    result = engine.settle_full(order_id, tip_recipient_id=staff_id)
    if result.ok:
        print(result.value.total_cents)
    else:
        print(result.error.kind, result.error.context)
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from salon_api.services.billing import ConsumerGroup, OrderGroups, Totals, compute_totals
from salon_api.services.domain import (
    ApprovalService,
    CatalogService,
    LoyaltyService,
    OrderService,
    ReportService,
    SettlementService,
    TableService,
)
from shared.config.constants import Limits
from shared.config.logging import get_logger
from shared.utils.exceptions import AppException, StoreUnavailableError
from shared.utils.schemas import (
    ActionOutcome,
    ApprovalRequestOutput,
    ErrorOutput,
    GatedAction,
    OccupantOutput,
    OrderLineOutput,
    OrderOutput,
    ProductOutput,
    RedemptionOutput,
    SettlementOutput,
    TableStatusOutput,
    TipSummaryOutput,
    TransferOutput,
)

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class OperationResult(Generic[T]):
    """
    Outcome of one engine operation.

    Attributes:
        value: The typed result when the operation succeeded.
        error: The typed error when it failed.
        exception: The raised AppException, kept for HTTP status mapping.
    """

    value: T | None = None
    error: ErrorOutput | None = None
    exception: AppException | None = field(default=None, repr=False, compare=False)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, re-raising the original error on failure."""
        if self.exception is not None:
            raise self.exception
        return self.value

    @classmethod
    def success(cls, value: T) -> "OperationResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, exc: AppException) -> "OperationResult[T]":
        return cls(error=exc.to_output(), exception=exc)


class SalonEngine:
    """Facade over the domain services for one session."""

    def __init__(self, db: Session):
        self._db = db
        self.orders = OrderService(db)
        self.tables = TableService(db)
        self.settlements = SettlementService(db)
        self.approvals = ApprovalService(db)
        self.loyalty = LoyaltyService(db)
        self.reports = ReportService(db)
        self.catalog = CatalogService(db)

    def _run(self, name: str, operation: Callable[[], T]) -> OperationResult[T]:
        try:
            return OperationResult.success(operation())
        except StoreUnavailableError:
            raise
        except AppException as exc:
            logger.debug("Operation failed", operation=name, kind=exc.kind)
            return OperationResult.failure(exc)

    # =========================================================================
    # Grouping and totals
    # =========================================================================

    def group_lines(self, order_id: int) -> OperationResult[OrderGroups]:
        return self._run("group_lines", lambda: self.settlements.group_lines(order_id))

    def compute_totals(
        self,
        groups: OrderGroups | list[ConsumerGroup],
        tip_enabled: bool,
    ) -> OperationResult[Totals]:
        return self._run("compute_totals", lambda: compute_totals(groups, tip_enabled))

    # =========================================================================
    # Settlement
    # =========================================================================

    def settle_full(
        self,
        order_id: int,
        tip_recipient_id: int | None = None,
        actor_id: int | None = None,
    ) -> OperationResult[SettlementOutput]:
        return self._run(
            "settle_full",
            lambda: self.settlements.settle_full(order_id, tip_recipient_id, actor_id),
        )

    def settle_occupant(
        self,
        order_id: int,
        occupant_id: int,
        tip_recipient_id: int | None = None,
        actor_id: int | None = None,
    ) -> OperationResult[SettlementOutput]:
        return self._run(
            "settle_occupant",
            lambda: self.settlements.settle_occupant(order_id, occupant_id, tip_recipient_id, actor_id),
        )

    def settle_partial(
        self,
        order_id: int,
        line_id: int,
        quantity: int,
        paying_occupant_id: int,
        tip_recipient_id: int | None = None,
        actor_id: int | None = None,
    ) -> OperationResult[SettlementOutput]:
        return self._run(
            "settle_partial",
            lambda: self.settlements.settle_partial(
                order_id, line_id, quantity, paying_occupant_id, tip_recipient_id, actor_id
            ),
        )

    # =========================================================================
    # Approvals
    # =========================================================================

    def request_action(self, actor_id: int, action: GatedAction) -> OperationResult[ActionOutcome]:
        return self._run("request_action", lambda: self.approvals.request_action(actor_id, action))

    def resolve_request(
        self,
        approver_id: int,
        request_id: int,
        decision: str,
    ) -> OperationResult[ApprovalRequestOutput]:
        return self._run(
            "resolve_request",
            lambda: self.approvals.resolve_request(approver_id, request_id, decision),
        )

    def list_pending(self, limit: int = Limits.DEFAULT_PAGE_SIZE) -> OperationResult[list[ApprovalRequestOutput]]:
        return self._run("list_pending", lambda: self.approvals.list_pending(limit))

    def get_approval_request(self, request_id: int) -> OperationResult[ApprovalRequestOutput]:
        return self._run("get_approval_request", lambda: self.approvals.get_request(request_id))

    # =========================================================================
    # Loyalty
    # =========================================================================

    def redeem(
        self,
        occupant_id: int,
        product_id: int,
        quantity: int = 1,
        actor_id: int | None = None,
    ) -> OperationResult[RedemptionOutput]:
        return self._run(
            "redeem",
            lambda: self.loyalty.redeem(occupant_id, product_id, quantity, actor_id),
        )

    # =========================================================================
    # Catalog
    # =========================================================================

    def get_product(self, product_id: int) -> OperationResult[ProductOutput]:
        return self._run("get_product", lambda: self.catalog.get_product(product_id))

    def list_products(self, redeemable_only: bool = False) -> OperationResult[list[ProductOutput]]:
        return self._run(
            "list_products", lambda: self.catalog.list_products(redeemable_only=redeemable_only)
        )

    # =========================================================================
    # Tables and orders
    # =========================================================================

    def add_line(
        self,
        table_id: int,
        product_id: int,
        quantity: int = 1,
        consumer_id: int | None = None,
    ) -> OperationResult[OrderLineOutput]:
        return self._run(
            "add_line",
            lambda: self.orders.add_line(table_id, product_id, quantity, consumer_id),
        )

    def advance_preparation(self, line_id: int, status: str) -> OperationResult[OrderLineOutput]:
        return self._run("advance_preparation", lambda: self.orders.advance_preparation(line_id, status))

    def get_order(self, order_id: int) -> OperationResult[OrderOutput]:
        return self._run("get_order", lambda: self.orders.get_order_output(order_id))

    def seat_occupant(self, table_id: int, customer_id: int) -> OperationResult[OccupantOutput]:
        return self._run("seat_occupant", lambda: self.tables.seat_occupant(table_id, customer_id))

    def transfer_occupant(
        self,
        source_table_id: int,
        target_table_id: int,
        customer_id: int,
    ) -> OperationResult[TransferOutput]:
        return self._run(
            "transfer_occupant",
            lambda: self.tables.transfer_occupant(source_table_id, target_table_id, customer_id),
        )

    def table_status(self, table_id: int) -> OperationResult[TableStatusOutput]:
        return self._run("table_status", lambda: self.tables.table_status(table_id))

    # =========================================================================
    # Reports
    # =========================================================================

    def tip_summary(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> OperationResult[list[TipSummaryOutput]]:
        return self._run("tip_summary", lambda: self.reports.tip_summary(start, end))
