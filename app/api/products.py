from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.api.deps import require_caller_id
from app.config import Settings, get_settings
from app.database import get_db
from app.services.comment_service import CommentAggregator
from app.services.errors import InvalidInputError
from app.services.product_service import ProductService
from app.services.upload_service import ImageUploadService
from app.schemas.common import ErrorResponse
from app.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductDetail,
    UploadResponse,
)

router = APIRouter(prefix="/products", tags=["Products"])

ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


def get_product_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ProductService:
    comments = CommentAggregator(db, preview_limit=settings.COMMENT_PREVIEW_LIMIT)
    return ProductService(db, comments=comments)


@router.get(
    "",
    response_model=List[ProductDetail],
    summary="List all products",
    description="Get every product, most recent first, with owner and comment summary."
)
def list_products(service: ProductService = Depends(get_product_service)):
    """Get all products. No authentication required."""
    return service.list_all()


@router.get(
    "/my",
    response_model=List[ProductDetail],
    responses=ERRORS,
    summary="List my products",
    description="Get the products owned by the authenticated user."
)
def list_my_products(
    caller_id: str = Depends(require_caller_id),
    service: ProductService = Depends(get_product_service),
):
    """Get the caller's products, most recent first."""
    return service.list_mine(caller_id)


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**ERRORS, 413: {"model": ErrorResponse}},
    summary="Upload a product image",
    description="Upload a single image in the multipart field `image` and get back its public URL."
)
def upload_image(
    request: Request,
    image: Optional[UploadFile] = File(None, description="Image file (jpeg, png, gif or webp)"),
    caller_id: str = Depends(require_caller_id),
    settings: Settings = Depends(get_settings),
):
    """
    Upload a product image.

    - **image**: Image file, at most 5 MB by default

    The returned `imageUrl` is meant to be sent as the `imageUrl` of a
    product create or update request.
    """
    if image is None:
        raise InvalidInputError("No file uploaded", fields=["image"])

    service = ImageUploadService.from_settings(settings)
    image_url = service.ingest(
        image.file,
        image.content_type,
        image.size,
        scheme=request.url.scheme,
        headers=request.headers,
    )
    return UploadResponse(image_url=image_url)


@router.get(
    "/{product_id}",
    response_model=ProductDetail,
    responses=ERRORS,
    summary="Get product by ID",
    description="Get a product with its owner and comment summary."
)
def get_product(
    product_id: str,
    service: ProductService = Depends(get_product_service),
):
    """Get a product by ID. No authentication required."""
    return service.get_by_id(product_id)


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERRORS,
    summary="Create a new product",
    description="Create a product owned by the authenticated user."
)
def create_product(
    product_data: ProductCreate,
    caller_id: str = Depends(require_caller_id),
    service: ProductService = Depends(get_product_service),
):
    """
    Create a new product.

    - **title**: Product title (required, non-empty)
    - **description**: Product description (required, non-empty)
    - **imageUrl**: Absolute URL of the product image (required)
    """
    return service.create(caller_id, product_data)


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    responses=ERRORS,
    summary="Update a product",
    description="Update product details. Only the owner may update, and only provided fields change."
)
def update_product(
    product_id: str,
    product_data: ProductUpdate,
    caller_id: str = Depends(require_caller_id),
    service: ProductService = Depends(get_product_service),
):
    """
    Update a product.

    Partial updates are supported - only include fields you want to change.
    Unknown fields are rejected.
    """
    return service.update(caller_id, product_id, product_data)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=ERRORS,
    summary="Delete a product",
    description="Delete a product by ID. Only the owner may delete it."
)
def delete_product(
    product_id: str,
    caller_id: str = Depends(require_caller_id),
    service: ProductService = Depends(get_product_service),
):
    """Delete a product. The uploaded image file is kept."""
    service.delete(caller_id, product_id)
    return None
