from datetime import datetime, timezone
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse
import logging

from app.models.product import Product
from app.repositories.product_repository import ProductRepository
from app.repositories.user_repository import UserRepository
from app.schemas.product import ProductCreate, ProductUpdate, ProductDetail
from app.services.comment_service import CommentAggregator
from app.services.errors import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)

# Product fields a caller may set, mapped to their JSON names
EDITABLE_FIELDS = {
    "title": "title",
    "description": "description",
    "image_url": "imageUrl",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProductService:
    """
    Service class for Product operations.

    This service handles:
    - Listing and reading products, enriched with owner and comment data
    - Creating products owned by the calling user
    - Owner-only updates and deletes

    The service keeps no state between requests. Every operation receives
    the caller id resolved for the current request, or None when the
    request is unauthenticated.

    AUTHORIZATION:
    ==============
    A product may only be changed or deleted by its owner, meaning the
    caller id equals the product's owner_id. Mutations always run in the
    order load, authorize, mutate. owner_id is set once at creation and is
    not editable, so the check cannot race with an ownership change.
    """

    def __init__(self, db: Session, comments: Optional[CommentAggregator] = None):
        self.db = db
        self.products = ProductRepository(db)
        self.users = UserRepository(db)
        self.comments = comments or CommentAggregator(db)

    def list_all(self) -> List[ProductDetail]:
        """Get every product, most recent first. No authentication required."""
        return self._enrich_all(self.products.find_all())

    def list_mine(self, caller_id: Optional[str]) -> List[ProductDetail]:
        """
        Get the products owned by the caller.

        Raises:
            UnauthenticatedError: If there is no caller
        """
        caller_id = self._require_caller(caller_id)
        return self._enrich_all(self.products.find_by_owner(caller_id))

    def get_by_id(self, product_id: str) -> ProductDetail:
        """
        Get a product by ID with owner and comment summary.

        Raises:
            NotFoundError: If the product doesn't exist
        """
        product = self.products.find_by_id(product_id)
        if not product:
            raise NotFoundError(f"Product with ID {product_id} not found")
        return self._enrich(product)

    def create(self, caller_id: Optional[str], product_data: ProductCreate) -> Product:
        """
        Create a new product owned by the caller.

        Args:
            caller_id: Identity of the authenticated caller
            product_data: Product creation data

        Returns:
            Created product instance

        Raises:
            UnauthenticatedError: If there is no caller
            InvalidInputError: If any field is empty, listing every bad field
        """
        caller_id = self._require_caller(caller_id)
        fields = validate_fields(product_data.model_dump())

        # The owner row must exist before the product references it
        self.users.ensure(caller_id)

        now = utcnow()
        product = Product(
            owner_id=caller_id,
            created_at=now,
            updated_at=now,
            **fields,
        )
        product = self.products.insert(product)

        logger.info(f"Product {product.id} created by {caller_id}")
        return product

    def update(
        self,
        caller_id: Optional[str],
        product_id: str,
        product_data: ProductUpdate,
    ) -> Product:
        """
        Update an existing product. Only supplied fields are changed.

        Raises:
            UnauthenticatedError: If there is no caller
            NotFoundError: If the product doesn't exist
            ForbiddenError: If the caller does not own the product
            InvalidInputError: If a supplied field is empty
        """
        caller_id = self._require_caller(caller_id)
        self._load_owned(caller_id, product_id)

        fields = validate_fields(product_data.model_dump(exclude_unset=True))
        fields["updated_at"] = utcnow()

        product = self.products.update(product_id, fields)
        if not product:
            # Deleted between the ownership check and the write
            raise NotFoundError(f"Product with ID {product_id} not found")

        logger.info(f"Product {product_id} updated by {caller_id}")
        return product

    def delete(self, caller_id: Optional[str], product_id: str) -> None:
        """
        Delete a product.

        The image file and the comments of the product are left in place.

        Raises:
            UnauthenticatedError: If there is no caller
            NotFoundError: If the product doesn't exist
            ForbiddenError: If the caller does not own the product
        """
        caller_id = self._require_caller(caller_id)
        self._load_owned(caller_id, product_id)

        if not self.products.delete(product_id):
            raise NotFoundError(f"Product with ID {product_id} not found")

        self.comments.invalidate(product_id)
        logger.info(f"Product {product_id} deleted by {caller_id}")

    def _require_caller(self, caller_id: Optional[str]) -> str:
        if not caller_id:
            raise UnauthenticatedError("Authentication required")
        return caller_id

    def _load_owned(self, caller_id: str, product_id: str) -> Product:
        """Load a product and check that caller_id owns it."""
        product = self.products.find_by_id(product_id)
        if not product:
            raise NotFoundError(f"Product with ID {product_id} not found")

        if product.owner_id != caller_id:
            logger.warning(
                f"User {caller_id} tried to modify product {product_id} owned by {product.owner_id}"
            )
            raise ForbiddenError("You can only modify your own products")

        return product

    def _enrich(self, product: Product) -> ProductDetail:
        return self._enrich_all([product])[0]

    def _enrich_all(self, products: List[Product]) -> List[ProductDetail]:
        """
        Build the read shapes of products and attach their comment summaries.

        Every product is copied into its read shape before any summary is
        computed, since a failed summary rolls back the session and expires
        the loaded rows. Summaries are best-effort: if one cannot be computed
        that product is returned with comments set to None.
        """
        details = [ProductDetail.model_validate(p) for p in products]
        for detail in details:
            try:
                detail.comments = self.comments.summarize(detail.id)
            except Exception as e:
                logger.warning(f"Comment summary unavailable for product {detail.id}: {e}")
        return details


def validate_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check editable product fields and return them with whitespace stripped.

    Every supplied field must be a non-empty string, and image_url must be
    an absolute http(s) URL.

    Raises:
        InvalidInputError: Listing the JSON names of all invalid fields
    """
    cleaned = {}
    invalid = []
    for field, value in fields.items():
        if field not in EDITABLE_FIELDS:
            raise InvalidInputError(f"Unknown field: {field}", fields=[field])
        if not isinstance(value, str) or not value.strip():
            invalid.append(EDITABLE_FIELDS[field])
            continue
        value = value.strip()
        if field == "image_url" and not _is_absolute_url(value):
            invalid.append(EDITABLE_FIELDS[field])
            continue
        cleaned[field] = value

    if invalid:
        raise InvalidInputError(
            f"Invalid or empty fields: {', '.join(invalid)}",
            fields=invalid,
        )
    return cleaned


def _is_absolute_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
