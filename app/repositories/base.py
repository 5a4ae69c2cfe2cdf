import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.services.errors import StorageFailureError

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors(db: Session, action: str):
    """
    Translate database errors raised inside the block into StorageFailureError.

    The session is rolled back so it stays usable for the rest of the request.
    """
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error while trying to {action}: {e}")
        raise StorageFailureError(f"Failed to {action}") from e
