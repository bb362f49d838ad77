"""
Catalog router: read-only product lookups for the floor staff.
"""

from fastapi import APIRouter, Depends, Query

from salon_api.routers._common import get_engine, unwrap
from salon_api.services.engine import SalonEngine
from shared.utils.schemas import ProductOutput


router = APIRouter(prefix="/api/products", tags=["catalog"])


@router.get("", response_model=list[ProductOutput])
def list_products(
    redeemable_only: bool = Query(default=False, description="Only products with a points cost"),
    engine: SalonEngine = Depends(get_engine),
) -> list[ProductOutput]:
    return unwrap(engine.list_products(redeemable_only))


@router.get("/{product_id}", response_model=ProductOutput)
def get_product(product_id: int, engine: SalonEngine = Depends(get_engine)) -> ProductOutput:
    return unwrap(engine.get_product(product_id))
