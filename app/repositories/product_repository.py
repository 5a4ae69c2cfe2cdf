from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional

from app.models.product import Product
from app.repositories.base import storage_errors


class ProductRepository:
    """
    Persistence for product records.

    Missing records are reported as None (or False for delete), never as
    an exception, so callers can tell "not found" apart from a storage
    fault. Every write commits a single record.
    """

    def __init__(self, db: Session):
        self.db = db

    def insert(self, product: Product) -> Product:
        with storage_errors(self.db, "create product"):
            self.db.add(product)
            self.db.commit()
            self.db.refresh(product)
        return product

    def find_by_id(self, product_id: str) -> Optional[Product]:
        with storage_errors(self.db, "load product"):
            return self.db.query(Product).filter(Product.id == product_id).first()

    def find_all(self) -> List[Product]:
        """Return every product, most recent first."""
        with storage_errors(self.db, "list products"):
            return (
                self.db.query(Product)
                .order_by(Product.created_at.desc(), Product.id.desc())
                .all()
            )

    def find_by_owner(self, owner_id: str) -> List[Product]:
        """Return the products owned by owner_id, most recent first."""
        with storage_errors(self.db, "list products"):
            return (
                self.db.query(Product)
                .filter(Product.owner_id == owner_id)
                .order_by(Product.created_at.desc(), Product.id.desc())
                .all()
            )

    def update(self, product_id: str, fields: Dict[str, Any]) -> Optional[Product]:
        """
        Apply fields to an existing product.

        Args:
            product_id: ID of product to update
            fields: Column names mapped to their new values

        Returns:
            Updated product or None if not found
        """
        with storage_errors(self.db, "update product"):
            product = self.db.query(Product).filter(Product.id == product_id).first()
            if not product:
                return None

            for field, value in fields.items():
                setattr(product, field, value)

            self.db.commit()
            self.db.refresh(product)
        return product

    def delete(self, product_id: str) -> bool:
        """
        Delete a product.

        Returns:
            True if deleted, False if not found
        """
        with storage_errors(self.db, "delete product"):
            product = self.db.query(Product).filter(Product.id == product_id).first()
            if not product:
                return False

            self.db.delete(product)
            self.db.commit()
        return True
