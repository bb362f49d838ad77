"""
Table router.

Seat customers, move them between tables and add lines to the open tab.
The tab is opened with the first line.
"""

from fastapi import APIRouter, Depends, status

from salon_api.routers._common import get_engine, unwrap
from salon_api.services.engine import SalonEngine
from shared.utils.schemas import (
    AddLineRequest,
    OccupantOutput,
    OrderLineOutput,
    SeatOccupantRequest,
    TableStatusOutput,
    TransferOccupantRequest,
    TransferOutput,
)


router = APIRouter(prefix="/api/tables", tags=["tables"])


@router.get("/{table_id}", response_model=TableStatusOutput)
def get_table(table_id: int, engine: SalonEngine = Depends(get_engine)) -> TableStatusOutput:
    return unwrap(engine.table_status(table_id))


@router.post("/{table_id}/occupants", response_model=OccupantOutput, status_code=status.HTTP_201_CREATED)
def seat_occupant(
    table_id: int,
    body: SeatOccupantRequest,
    engine: SalonEngine = Depends(get_engine),
) -> OccupantOutput:
    """Seat a customer. The first one seated becomes the principal."""
    return unwrap(engine.seat_occupant(table_id, body.customer_id))


@router.post("/{table_id}/transfer", response_model=TransferOutput)
def transfer_occupant(
    table_id: int,
    body: TransferOccupantRequest,
    engine: SalonEngine = Depends(get_engine),
) -> TransferOutput:
    """Move an occupant and their unpaid personal lines to a free table."""
    return unwrap(engine.transfer_occupant(table_id, body.target_table_id, body.customer_id))


@router.post("/{table_id}/lines", response_model=OrderLineOutput, status_code=status.HTTP_201_CREATED)
def add_line(
    table_id: int,
    body: AddLineRequest,
    engine: SalonEngine = Depends(get_engine),
) -> OrderLineOutput:
    """Add a product to the tab, for one occupant or shared by the table."""
    return unwrap(engine.add_line(table_id, body.product_id, body.quantity, body.consumer_id))
