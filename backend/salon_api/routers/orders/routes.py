"""
Order router.

Read the tab grouped by consumer, price it, and settle it through one of the
three settlement flows.
"""

from fastapi import APIRouter, Depends, Query

from salon_api.routers._common import get_engine, optional_staff_id, unwrap
from salon_api.services.engine import SalonEngine
from shared.utils.schemas import (
    AdvancePreparationRequest,
    GroupsOutput,
    OrderLineOutput,
    OrderOutput,
    SettleFullRequest,
    SettleOccupantRequest,
    SettlePartialRequest,
    SettlementOutput,
    TotalsOutput,
)


router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("/{order_id}", response_model=OrderOutput)
def get_order(order_id: int, engine: SalonEngine = Depends(get_engine)) -> OrderOutput:
    return unwrap(engine.get_order(order_id))


@router.get("/{order_id}/groups", response_model=GroupsOutput)
def get_groups(order_id: int, engine: SalonEngine = Depends(get_engine)) -> GroupsOutput:
    """Lines merged by product within each consumer group, shared group last."""
    return unwrap(engine.group_lines(order_id)).to_output()


@router.get("/{order_id}/totals", response_model=TotalsOutput)
def get_totals(
    order_id: int,
    tip_enabled: bool = Query(default=False),
    engine: SalonEngine = Depends(get_engine),
) -> TotalsOutput:
    """Subtotal of what is still unpaid, with the optional service tip."""
    groups = unwrap(engine.group_lines(order_id))
    return unwrap(engine.compute_totals(groups, tip_enabled)).to_output()


@router.post("/{order_id}/settle/full", response_model=SettlementOutput)
def settle_full(
    order_id: int,
    body: SettleFullRequest,
    engine: SalonEngine = Depends(get_engine),
    staff_id: int | None = Depends(optional_staff_id),
) -> SettlementOutput:
    return unwrap(engine.settle_full(order_id, body.tip_recipient_id, actor_id=staff_id))


@router.post("/{order_id}/settle/occupant", response_model=SettlementOutput)
def settle_occupant(
    order_id: int,
    body: SettleOccupantRequest,
    engine: SalonEngine = Depends(get_engine),
    staff_id: int | None = Depends(optional_staff_id),
) -> SettlementOutput:
    return unwrap(
        engine.settle_occupant(order_id, body.occupant_id, body.tip_recipient_id, actor_id=staff_id)
    )


@router.post("/{order_id}/settle/partial", response_model=SettlementOutput)
def settle_partial(
    order_id: int,
    body: SettlePartialRequest,
    engine: SalonEngine = Depends(get_engine),
    staff_id: int | None = Depends(optional_staff_id),
) -> SettlementOutput:
    return unwrap(
        engine.settle_partial(
            order_id,
            body.line_id,
            body.quantity,
            body.paying_occupant_id,
            body.tip_recipient_id,
            actor_id=staff_id,
        )
    )


@router.patch("/lines/{line_id}/preparation", response_model=OrderLineOutput)
def advance_preparation(
    line_id: int,
    body: AdvancePreparationRequest,
    engine: SalonEngine = Depends(get_engine),
) -> OrderLineOutput:
    """Kitchen moves a line PENDING -> PREPARING -> DELIVERED."""
    return unwrap(engine.advance_preparation(line_id, body.status))
