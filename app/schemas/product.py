from pydantic import ConfigDict, Field
from datetime import datetime
from typing import Optional

from app.schemas.comment import CommentSummary
from app.schemas.common import CamelModel
from app.schemas.user import OwnerSummary


class ProductCreate(CamelModel):
    """
    Schema for creating a new product.

    Emptiness is checked by the service so the error can name every
    offending field at once.
    """
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., max_length=255, description="Product title")
    description: str = Field(..., description="Product description")
    image_url: str = Field(..., description="Absolute URL of the product image")


class ProductUpdate(CamelModel):
    """Schema for updating an existing product. Only supplied fields are applied."""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, max_length=255, description="Product title")
    description: Optional[str] = Field(None, description="Product description")
    image_url: Optional[str] = Field(None, description="Absolute URL of the product image")


class ProductResponse(CamelModel):
    """Schema for a product record as stored."""
    id: str
    title: str
    description: str
    image_url: str
    owner_id: str
    created_at: datetime
    updated_at: datetime


class ProductDetail(ProductResponse):
    """Product enriched with its owner profile and comment summary."""
    user: Optional[OwnerSummary] = None
    comments: Optional[CommentSummary] = None


class UploadResponse(CamelModel):
    """Schema for a stored image upload."""
    image_url: str
