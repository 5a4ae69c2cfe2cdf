from pydantic import ConfigDict, Field
from typing import Optional

from app.schemas.common import CamelModel


class OwnerSummary(CamelModel):
    """Public profile of a product owner."""
    id: str
    name: Optional[str] = None
    image_url: Optional[str] = None


class UserSync(CamelModel):
    """Schema for syncing the caller's profile from the auth provider."""
    model_config = ConfigDict(extra="forbid")

    email: Optional[str] = Field(None, max_length=255)
    name: Optional[str] = Field(None, max_length=255)
    image_url: Optional[str] = None


class UserResponse(OwnerSummary):
    email: Optional[str] = None
