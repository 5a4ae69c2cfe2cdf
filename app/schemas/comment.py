from datetime import datetime

from app.schemas.common import CamelModel


class CommentPreview(CamelModel):
    id: str
    content: str
    user_id: str
    created_at: datetime


class CommentSummary(CamelModel):
    """Comment count plus a bounded list of the most recent comments."""
    count: int = 0
    preview: list[CommentPreview] = []
