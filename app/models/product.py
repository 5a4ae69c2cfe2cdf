import uuid

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base
from app.models.user import User


def generate_id() -> str:
    return str(uuid.uuid4())


class Product(Base):
    """
    Product model representing an item shared by a user.

    Attributes:
        id: Server-generated UUID, immutable
        title: Product title (non-empty)
        description: Product description (non-empty)
        image_url: Absolute URL of the product image
        owner_id: Identity of the user who created the product, immutable
        created_at: Timestamp when product was created
        updated_at: Timestamp of the last successful update
    """
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=generate_id)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(Text, nullable=False)
    owner_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Owner profile, used to enrich read responses
    user = relationship(User, lazy="selectin")

    __table_args__ = (
        CheckConstraint("length(title) > 0", name="check_title_not_empty"),
        CheckConstraint("length(description) > 0", name="check_description_not_empty"),
        CheckConstraint("length(image_url) > 0", name="check_image_url_not_empty"),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, title='{self.title}', owner_id='{self.owner_id}')>"
