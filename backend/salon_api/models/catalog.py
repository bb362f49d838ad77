"""
Catalog Models: Product.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import AuditMixin, Base, BigIntPK


class Product(AuditMixin, Base):
    """
    Menu item. Order lines snapshot its name and price when added.

    A product is redeemable with loyalty points when ``points_cost`` > 0.
    """

    __tablename__ = "product"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    requires_preparation: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    points_cost: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    __table_args__ = (
        CheckConstraint("price_cents >= 0", name="chk_product_price_non_negative"),
    )

    @property
    def is_redeemable(self) -> bool:
        return bool(self.points_cost) and self.points_cost > 0

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name={self.name}, price={self.price_cents})>"
