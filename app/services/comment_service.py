import logging
from typing import Optional
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.comment import Comment
from app.schemas.comment import CommentPreview, CommentSummary
from app.utils.cache import CacheService, cache_service

logger = logging.getLogger(__name__)


class CommentAggregator:
    """
    Read-only comment summaries for product responses.

    Summaries are cached in Redis for CACHE_TTL seconds when caching is
    configured. Comments are written by another service that does not
    invalidate this cache, so a new comment can be missing from the count
    and preview until the cached entry expires (up to CACHE_TTL seconds).
    Only deleting a product drops its cached summary here.

    Summaries are enrichment only: callers are expected to treat any
    exception from summarize() as "no summary available".
    """

    CACHE_PREFIX = "comment_summary"

    def __init__(self, db: Session, cache: Optional[CacheService] = None, preview_limit: int = 3):
        self.db = db
        self.cache = cache or cache_service
        self.preview_limit = preview_limit

    def summarize(self, product_id: str) -> CommentSummary:
        """
        Count the comments on a product and return the most recent few.

        Args:
            product_id: Product to summarize

        Returns:
            CommentSummary with the total count and a bounded preview list
        """
        cached = self.cache.get(self.CACHE_PREFIX, product_id)
        if cached is not None:
            return CommentSummary.model_validate(cached)

        try:
            count = (
                self.db.query(func.count(Comment.id))
                .filter(Comment.product_id == product_id)
                .scalar()
            )
            recent = (
                self.db.query(Comment)
                .filter(Comment.product_id == product_id)
                .order_by(Comment.created_at.desc(), Comment.id.desc())
                .limit(self.preview_limit)
                .all()
            )
        except SQLAlchemyError:
            # Keep the session usable for the rest of the request
            self.db.rollback()
            raise

        summary = CommentSummary(
            count=count or 0,
            preview=[CommentPreview.model_validate(c) for c in recent],
        )
        self.cache.set(self.CACHE_PREFIX, product_id, summary.model_dump(mode="json"))
        return summary

    def invalidate(self, product_id: str) -> None:
        """Drop the cached summary of a product."""
        self.cache.delete(self.CACHE_PREFIX, product_id)
