from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import require_caller_id
from app.database import get_db
from app.repositories.user_repository import UserRepository
from app.schemas.common import ErrorResponse
from app.schemas.user import UserSync, UserResponse

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "/sync",
    response_model=UserResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="Sync my profile",
    description="Create or update the authenticated user's profile with data from the auth provider."
)
def sync_user(
    user_data: UserSync,
    caller_id: str = Depends(require_caller_id),
    db: Session = Depends(get_db),
):
    """
    Sync the caller's profile.

    Only the fields present in the request are written.
    """
    repository = UserRepository(db)
    return repository.upsert(caller_id, user_data.model_dump(exclude_unset=True))
