"""
Shared Pydantic schemas used across the application.
"""

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field


# =============================================================================
# Common Types
# =============================================================================

Role = Literal["SUPERADMIN", "ADMIN", "MANAGER", "CASHIER", "WAITER", "KITCHEN"]
TableStatus = Literal["FREE", "OCCUPIED"]
OrderStatus = Literal["OPEN", "SETTLED", "CANCELLED"]
PrepStatus = Literal["PENDING", "PREPARING", "DELIVERED"]
ApprovalStatus = Literal["pending", "approved", "rejected"]
ApprovalDecision = Literal["approved", "rejected"]
SettlementKind = Literal["FULL", "OCCUPANT", "PARTIAL"]


# =============================================================================
# Errors
# =============================================================================


class ErrorOutput(BaseModel):
    """Typed error returned by every failed operation."""

    kind: str
    detail: str
    context: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Consumer (who a line is attributed to)
# =============================================================================


class OccupantConsumerOutput(BaseModel):
    kind: Literal["occupant"] = "occupant"
    customer_id: int


class SharedConsumerOutput(BaseModel):
    kind: Literal["shared"] = "shared"


ConsumerOutput = Annotated[
    Union[OccupantConsumerOutput, SharedConsumerOutput],
    Field(discriminator="kind"),
]


# =============================================================================
# Catalog
# =============================================================================


class ProductOutput(BaseModel):
    """Catalog entry as seen by the billing engine."""

    id: int
    name: str
    price_cents: int
    requires_preparation: bool
    points_cost: int | None = None
    is_active: bool = True


# =============================================================================
# Tables and Occupants
# =============================================================================


class SeatOccupantRequest(BaseModel):
    customer_id: int


class TransferOccupantRequest(BaseModel):
    customer_id: int
    target_table_id: int


class OccupantOutput(BaseModel):
    table_id: int
    customer_id: int
    customer_name: str
    is_principal: bool
    seated_at: datetime


class TableStatusOutput(BaseModel):
    """Derived status of a table with its current occupants."""

    table_id: int
    code: str
    capacity: int
    status: TableStatus
    open_order_id: int | None = None
    principal_customer_id: int | None = None
    occupants: list[OccupantOutput] = Field(default_factory=list)


class TransferOutput(BaseModel):
    customer_id: int
    source_table_id: int
    target_table_id: int
    target_order_id: int | None = None
    moved_line_ids: list[int] = Field(default_factory=list)
    source_order_status: OrderStatus | None = None


# =============================================================================
# Orders and Lines
# =============================================================================


class AddLineRequest(BaseModel):
    product_id: int
    quantity: int = 1
    # None = shared by the whole table
    consumer_id: int | None = None


class AdvancePreparationRequest(BaseModel):
    status: PrepStatus


class OrderLineOutput(BaseModel):
    id: int
    order_id: int
    product_id: int | None = None
    product_name: str
    unit_price_cents: int
    quantity: int
    quantity_remaining: int
    consumer: ConsumerOutput
    discount_percent: int
    discount_reason: str | None = None
    requires_preparation: bool
    prep_status: PrepStatus
    created_at: datetime | None = None


class OrderOutput(BaseModel):
    id: int
    table_id: int
    status: OrderStatus
    tip_cents: int
    tip_recipient_id: int | None = None
    lines: list[OrderLineOutput] = Field(default_factory=list)


# =============================================================================
# Grouping and Totals
# =============================================================================


class GroupedItemOutput(BaseModel):
    """Lines of one consumer merged by product name."""

    product_name: str
    quantity: int
    unit_price_cents: int
    subtotal_cents: int
    # Representative (earliest-created) line metadata
    line_id: int
    discount_percent: int
    discount_reason: str | None = None
    line_ids: list[int]


class ConsumerGroupOutput(BaseModel):
    consumer: ConsumerOutput
    seated: bool
    items: list[GroupedItemOutput] = Field(default_factory=list)
    subtotal_cents: int


class GroupsOutput(BaseModel):
    order_id: int
    table_id: int
    groups: list[ConsumerGroupOutput]


class TotalsOutput(BaseModel):
    subtotal_cents: int
    tip_enabled: bool
    tip_rate_percent: int
    tip_cents: int
    grand_total_cents: int


# =============================================================================
# Settlement
# =============================================================================


class SettleFullRequest(BaseModel):
    # A tip is charged exactly when a recipient is given
    tip_recipient_id: int | None = None


class SettleOccupantRequest(BaseModel):
    occupant_id: int
    tip_recipient_id: int | None = None


class SettlePartialRequest(BaseModel):
    line_id: int
    quantity: int
    paying_occupant_id: int
    tip_recipient_id: int | None = None


class SettlementItemOutput(BaseModel):
    line_id: int
    quantity: int
    amount_cents: int


class SettlementOutput(BaseModel):
    """Receipt of a settlement operation."""

    settlement_id: int
    kind: SettlementKind
    order_id: int
    payer_customer_id: int | None = None
    subtotal_cents: int
    tip_cents: int
    total_cents: int
    tip_recipient_id: int | None = None
    order_status: OrderStatus
    items: list[SettlementItemOutput] = Field(default_factory=list)


# =============================================================================
# Approval Gateway
# =============================================================================


class ApplyDiscountAction(BaseModel):
    """Set a discount on one order line."""

    action_type: Literal["apply_discount"] = "apply_discount"
    line_id: int
    # Range is checked by the gateway so that errors share one format
    discount_percent: int
    reason: str | None = None


class FreeTableAction(BaseModel):
    """Force-release a table, cancelling its open order."""

    action_type: Literal["free_table"] = "free_table"
    table_id: int


GatedAction = Annotated[
    Union[ApplyDiscountAction, FreeTableAction],
    Field(discriminator="action_type"),
]


class ActionRequest(BaseModel):
    action: GatedAction


class ActionOutcome(BaseModel):
    """Either executed immediately or queued for approval."""

    action_type: str
    executed: bool
    queued: bool
    request_id: int | None = None


class ResolveRequest(BaseModel):
    decision: ApprovalDecision


class ApprovalRequestOutput(BaseModel):
    id: int
    action_type: str
    target_id: int
    requested_by_id: int
    requester_role: str
    payload: dict[str, Any] = Field(default_factory=dict)
    status: ApprovalStatus
    created_at: datetime | None = None
    resolved_at: datetime | None = None
    resolved_by_id: int | None = None


# =============================================================================
# Loyalty
# =============================================================================


class RedeemRequest(BaseModel):
    occupant_id: int
    product_id: int
    quantity: int = 1


class RedemptionOutput(BaseModel):
    order_id: int
    line_id: int
    customer_id: int
    points_debited: int
    points_remaining: int


# =============================================================================
# Reports
# =============================================================================


class TipSummaryOutput(BaseModel):
    staff_id: int
    staff_name: str
    tip_cents: int
    settlements: int
