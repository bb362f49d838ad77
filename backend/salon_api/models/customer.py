"""
Customer Models: Customer, StaffMember.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from shared.config.constants import PRIVILEGED_ROLES

from .base import AuditMixin, Base, BigIntPK


class Customer(AuditMixin, Base):
    """
    Persistent identity of a guest, recognized across visits.

    Holds the loyalty points balance. ``version`` guards concurrent
    debits: a stale write raises StaleDataError on flush.
    """

    __tablename__ = "customer"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("points >= 0", name="chk_customer_points_non_negative"),
    )
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, name={self.name}, points={self.points})>"


class StaffMember(AuditMixin, Base):
    """
    Salon staff: actors of gated actions and tip recipients.
    """

    __tablename__ = "staff_member"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(Text, nullable=False)  # SUPERADMIN, ADMIN, MANAGER, CASHIER, WAITER, KITCHEN
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    def __repr__(self) -> str:
        return f"<StaffMember(id={self.id}, name={self.name}, role={self.role})>"
