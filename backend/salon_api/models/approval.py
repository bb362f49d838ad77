"""
Approval Models: ApprovalRequest.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import JSON, BigInteger, DateTime, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import ApprovalStatus

from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .customer import StaffMember


class ApprovalRequest(AuditMixin, Base):
    """
    A gated action queued by a non-privileged staff member.

    Leaves ``pending`` exactly once: the resolver flips the status with a
    conditional UPDATE, so a second resolution finds no pending row.
    """

    __tablename__ = "approval_request"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    action_type: Mapped[str] = mapped_column(Text, nullable=False)  # apply_discount, free_table
    # Order line id (apply_discount) or table id (free_table)
    target_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    requested_by_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("staff_member.id"), nullable=False
    )
    requester_role: Mapped[str] = mapped_column(Text, nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, default=lambda: {}, nullable=False)
    status: Mapped[str] = mapped_column(
        Text, default=ApprovalStatus.PENDING, nullable=False
    )  # pending, approved, rejected
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_by_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("staff_member.id"), nullable=True
    )

    __table_args__ = (
        Index("ix_approval_request_status_created", "status", "created_at"),
    )

    requested_by: Mapped["StaffMember"] = relationship(foreign_keys=[requested_by_id])
    resolved_by: Mapped[Optional["StaffMember"]] = relationship(foreign_keys=[resolved_by_id])

    def __repr__(self) -> str:
        return f"<ApprovalRequest(id={self.id}, action={self.action_type}, target={self.target_id}, status={self.status})>"
