"""
Order Models: Order, OrderLine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import LinePrepStatus, OrderStatus

from .base import AuditMixin, Base, BigIntPK
from .consumer import Consumer, consumer_from_id, consumer_to_id

if TYPE_CHECKING:
    from .table import Table
    from .customer import StaffMember


class Order(AuditMixin, Base):
    """
    The open tab of a table.

    Created lazily on the first line or redemption. At most one OPEN order
    exists per table (partial unique index). ``version`` guards concurrent
    status changes and settlements.
    """

    # "order" is a reserved SQL keyword
    __tablename__ = "salon_order"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    table_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("restaurant_table.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        Text, default=OrderStatus.OPEN, nullable=False, index=True
    )  # OPEN, SETTLED, CANCELLED
    # Tips accumulated across settlements of this order
    tip_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    tip_recipient_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("staff_member.id"), nullable=True
    )
    # Bumped by every settlement so concurrent settlements of one order conflict
    settlement_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("tip_cents >= 0", name="chk_order_tip_non_negative"),
        Index(
            "uq_order_open_per_table",
            "table_id",
            unique=True,
            postgresql_where=text("status = 'OPEN'"),
            sqlite_where=text("status = 'OPEN'"),
        ),
    )
    __mapper_args__ = {"version_id_col": version}

    # Relationships
    table: Mapped["Table"] = relationship(back_populates="orders")
    tip_recipient: Mapped[Optional["StaffMember"]] = relationship()
    lines: Mapped[list["OrderLine"]] = relationship(
        back_populates="order",
        order_by="OrderLine.id",
    )

    @property
    def is_open(self) -> bool:
        return self.status == OrderStatus.OPEN

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, table_id={self.table_id}, status={self.status})>"


class OrderLine(AuditMixin, Base):
    """
    One entry of an order: a product snapshot, a quantity and a consumer.

    ``quantity_remaining_to_settle`` starts at ``quantity`` and is
    decremented by settlements; a line at zero is fully paid and drops out
    of every total. Ids are assigned in creation order, so the lowest id of
    a set of lines is the earliest created.
    """

    __tablename__ = "order_line"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("salon_order.id"), nullable=False, index=True
    )
    product_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("product.id"), nullable=True
    )
    # Snapshots taken from the catalog when the line is added
    product_name: Mapped[str] = mapped_column(Text, nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    # NULL = shared by the whole table
    consumer_customer_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("customer.id"), nullable=True, index=True
    )
    discount_percent: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    discount_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    quantity_remaining_to_settle: Mapped[int] = mapped_column(Integer, nullable=False)
    requires_preparation: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    prep_status: Mapped[str] = mapped_column(
        Text, default=LinePrepStatus.PENDING, nullable=False, index=True
    )  # PENDING, PREPARING, DELIVERED
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_line_quantity_positive"),
        CheckConstraint(
            "quantity_remaining_to_settle >= 0 AND quantity_remaining_to_settle <= quantity",
            name="chk_line_remaining_within_quantity",
        ),
        CheckConstraint("unit_price_cents >= 0", name="chk_line_price_non_negative"),
        CheckConstraint(
            "discount_percent >= 0 AND discount_percent <= 100",
            name="chk_line_discount_range",
        ),
    )
    __mapper_args__ = {"version_id_col": version}

    # Relationships
    order: Mapped["Order"] = relationship(back_populates="lines")

    @property
    def consumer(self) -> Consumer:
        return consumer_from_id(self.consumer_customer_id)

    @consumer.setter
    def consumer(self, value: Consumer) -> None:
        self.consumer_customer_id = consumer_to_id(value)

    @property
    def is_shared(self) -> bool:
        return self.consumer_customer_id is None

    @property
    def is_settled(self) -> bool:
        return self.quantity_remaining_to_settle == 0

    def __repr__(self) -> str:
        return (
            f"<OrderLine(id={self.id}, order_id={self.order_id}, product={self.product_name}, "
            f"qty={self.quantity_remaining_to_settle}/{self.quantity})>"
        )
