"""
Loyalty router: redeem points for products served at the table.
"""

from fastapi import APIRouter, Depends, status

from salon_api.routers._common import get_engine, optional_staff_id, unwrap
from salon_api.services.engine import SalonEngine
from shared.utils.schemas import RedeemRequest, RedemptionOutput


router = APIRouter(prefix="/api/loyalty", tags=["loyalty"])


@router.post("/redeem", response_model=RedemptionOutput, status_code=status.HTTP_201_CREATED)
def redeem(
    body: RedeemRequest,
    engine: SalonEngine = Depends(get_engine),
    staff_id: int | None = Depends(optional_staff_id),
) -> RedemptionOutput:
    return unwrap(engine.redeem(body.occupant_id, body.product_id, body.quantity, actor_id=staff_id))
