from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from app.database import Base
from app.models.product import generate_id


class Comment(Base):
    """
    Comment attached to a product.

    Comments are written elsewhere; this service only reads them to build
    comment summaries for product responses.
    """
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=generate_id)
    content = Column(Text, nullable=False)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False)
    product_id = Column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Comment(id={self.id}, product_id={self.product_id})>"
