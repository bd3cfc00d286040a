"""
Catalog Module - Service Layer
================================
Read-only variant lookup used by the cart and checkout flows.
"""

from typing import Optional

from sqlalchemy.orm import Session

from common.exceptions import VariantNotFound
from modules.catalog.models import ProductVariant


class CatalogService:

    def find_variant(self, db: Session, variant_id: str) -> Optional[ProductVariant]:
        return db.query(ProductVariant).filter(
            ProductVariant.id == variant_id,
            ProductVariant.is_active.is_(True),
        ).first()

    def get_variant(self, db: Session, variant_id: str) -> ProductVariant:
        """Active variant by id (current price + stock). Raises VariantNotFound."""
        variant = self.find_variant(db, variant_id)
        if not variant:
            raise VariantNotFound(variant_id)
        return variant


# Singleton
catalog_service = CatalogService()
