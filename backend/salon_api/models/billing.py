"""
Billing Models: Settlement, SettlementItem.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .order import Order
    from .customer import StaffMember


class Settlement(AuditMixin, Base):
    """
    Audit record of one payment against an order.

    ``kind`` is FULL, OCCUPANT or PARTIAL. The tip portion is credited to
    ``tip_recipient_id`` and summed by the tips report.
    """

    __tablename__ = "settlement"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("salon_order.id"), nullable=False, index=True
    )
    kind: Mapped[str] = mapped_column(Text, nullable=False)  # FULL, OCCUPANT, PARTIAL
    payer_customer_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("customer.id"), nullable=True
    )
    subtotal_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    tip_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    tip_recipient_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("staff_member.id"), nullable=True, index=True
    )
    settled_by_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("staff_member.id"), nullable=True
    )

    __table_args__ = (
        CheckConstraint("subtotal_cents >= 0", name="chk_settlement_subtotal_non_negative"),
        CheckConstraint("tip_cents >= 0", name="chk_settlement_tip_non_negative"),
        CheckConstraint("total_cents = subtotal_cents + tip_cents", name="chk_settlement_total"),
        Index("ix_settlement_recipient_created", "tip_recipient_id", "created_at"),
    )

    # Relationships
    order: Mapped["Order"] = relationship()
    tip_recipient: Mapped[Optional["StaffMember"]] = relationship(foreign_keys=[tip_recipient_id])
    items: Mapped[list["SettlementItem"]] = relationship(
        back_populates="settlement",
        order_by="SettlementItem.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Settlement(id={self.id}, order={self.order_id}, kind={self.kind}, total={self.total_cents})>"


class SettlementItem(Base):
    """Quantity of one order line paid by a settlement."""

    __tablename__ = "settlement_item"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    settlement_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("settlement.id"), nullable=False, index=True
    )
    line_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("order_line.id"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_settlement_item_quantity_positive"),
    )

    settlement: Mapped["Settlement"] = relationship(back_populates="items")
