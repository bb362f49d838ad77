"""
Report Domain Service.

Read-only aggregates over Settlement records.
"""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from salon_api.models import Settlement, StaffMember
from shared.utils.exceptions import ValidationError
from shared.utils.schemas import TipSummaryOutput


class ReportService:
    def __init__(self, db: Session):
        self._db = db

    def tip_summary(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[TipSummaryOutput]:
        """
        Tips credited to each staff member in [start, end).

        Only settlements that named a recipient are counted. Highest total
        first.
        """
        if start is not None and end is not None and start >= end:
            raise ValidationError("Início deve ser anterior ao fim", field="start")

        total = func.coalesce(func.sum(Settlement.tip_cents), 0)
        query = (
            select(
                StaffMember.id,
                StaffMember.name,
                total.label("tip_cents"),
                func.count(Settlement.id).label("settlements"),
            )
            .join(Settlement, Settlement.tip_recipient_id == StaffMember.id)
            .group_by(StaffMember.id, StaffMember.name)
            .order_by(total.desc(), StaffMember.id)
        )
        if start is not None:
            query = query.where(Settlement.created_at >= start)
        if end is not None:
            query = query.where(Settlement.created_at < end)

        return [
            TipSummaryOutput(
                staff_id=row.id,
                staff_name=row.name,
                tip_cents=int(row.tip_cents),
                settlements=row.settlements,
            )
            for row in self._db.execute(query)
        ]
