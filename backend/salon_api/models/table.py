"""
Table Models: Table, TableOccupant.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .customer import Customer
    from .order import Order


class Table(AuditMixin, Base):
    """
    Physical table in the salon.

    Status is not stored: a table is OCCUPIED while it has an open order.
    """

    # "table" is a reserved SQL keyword
    __tablename__ = "restaurant_table"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)  # "M-07", "Varanda-3"
    capacity: Mapped[int] = mapped_column(Integer, default=4, nullable=False)
    # Responsible party for the table's tab
    principal_customer_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("customer.id"), nullable=True
    )

    __table_args__ = (
        CheckConstraint("capacity > 0", name="chk_table_capacity_positive"),
    )

    # Relationships
    principal: Mapped[Optional["Customer"]] = relationship(foreign_keys=[principal_customer_id])
    occupants: Mapped[list["TableOccupant"]] = relationship(
        back_populates="table",
        order_by="TableOccupant.id",
        cascade="all, delete-orphan",
    )
    orders: Mapped[list["Order"]] = relationship(back_populates="table")

    def __repr__(self) -> str:
        return f"<Table(id={self.id}, code={self.code}, principal={self.principal_customer_id})>"


class TableOccupant(Base):
    """
    A customer seated at a table for the duration of a visit.

    A customer is seated at one table at a time. Rows are inserted in
    seating order, so the lowest id is the earliest-seated occupant.
    """

    __tablename__ = "table_occupant"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    table_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("restaurant_table.id"), nullable=False, index=True
    )
    customer_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("customer.id"), nullable=False, unique=True
    )
    seated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    table: Mapped["Table"] = relationship(back_populates="occupants")
    customer: Mapped["Customer"] = relationship()

    def __repr__(self) -> str:
        return f"<TableOccupant(table_id={self.table_id}, customer_id={self.customer_id})>"
