import logging
from sqlalchemy.orm import Session
from typing import Any, Dict, Optional

from app.models.user import User
from app.repositories.base import storage_errors

logger = logging.getLogger(__name__)


class UserRepository:
    """Persistence for user profiles mirrored from the auth provider."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[User]:
        with storage_errors(self.db, "load user"):
            return self.db.query(User).filter(User.id == user_id).first()

    def ensure(self, user_id: str) -> User:
        """
        Return the user row for user_id, creating a bare one if needed.

        Callers are verified by the auth provider before they reach us, so
        a missing row only means the profile has not been synced yet.
        """
        user = self.get(user_id)
        if user:
            return user

        with storage_errors(self.db, "provision user"):
            user = User(id=user_id)
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)

        logger.info(f"Provisioned user {user_id}")
        return user

    def upsert(self, user_id: str, fields: Dict[str, Any]) -> User:
        """Create or update the profile of user_id with the given fields."""
        user = self.get(user_id)

        with storage_errors(self.db, "save user"):
            if user is None:
                user = User(id=user_id, **fields)
                self.db.add(user)
            else:
                for field, value in fields.items():
                    setattr(user, field, value)
            self.db.commit()
            self.db.refresh(user)

        return user
