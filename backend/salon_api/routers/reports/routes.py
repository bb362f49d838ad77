"""
Reports endpoints for tip distribution.
"""

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query

from salon_api.routers._common import get_engine, unwrap
from salon_api.services.engine import SalonEngine
from shared.utils.schemas import TipSummaryOutput


router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/tips", response_model=list[TipSummaryOutput])
def tip_summary(
    start: datetime | None = None,
    end: datetime | None = None,
    days: int = Query(default=30, ge=1, le=366),
    engine: SalonEngine = Depends(get_engine),
) -> list[TipSummaryOutput]:
    """
    Tips per staff member.

    Without ``start`` the window covers the last ``days`` days.
    """
    if start is None:
        start = (end or datetime.now(timezone.utc)) - timedelta(days=days)
    return unwrap(engine.tip_summary(start, end))
