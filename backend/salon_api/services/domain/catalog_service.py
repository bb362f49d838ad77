"""
Catalog Domain Service.

Product lookups used when lines are added or points are redeemed.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from salon_api.models import Product
from shared.utils.exceptions import ProductNotFoundError, ValidationError
from shared.utils.schemas import ProductOutput


class CatalogService:
    """Domain service for Product lookups."""

    def __init__(self, db: Session):
        self._db = db

    def get_entity(self, product_id: int) -> Product:
        product = self._db.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def get_available(self, product_id: int) -> Product:
        """Get a product that can still be ordered."""
        product = self.get_entity(product_id)
        if not product.is_active:
            raise ValidationError(
                f"Produto '{product.name}' não está disponível",
                field="product_id",
                product_id=product_id,
            )
        return product

    def get_product(self, product_id: int) -> ProductOutput:
        return self.to_output(self.get_entity(product_id))

    def list_products(self, *, redeemable_only: bool = False) -> list[ProductOutput]:
        query = select(Product).where(Product.is_active.is_(True)).order_by(Product.name)
        if redeemable_only:
            query = query.where(Product.points_cost > 0)
        return [self.to_output(p) for p in self._db.scalars(query).all()]

    @staticmethod
    def to_output(product: Product) -> ProductOutput:
        return ProductOutput(
            id=product.id,
            name=product.name,
            price_cents=product.price_cents,
            requires_preparation=product.requires_preparation,
            points_cost=product.points_cost,
            is_active=product.is_active,
        )
