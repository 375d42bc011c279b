"""
User endpoints.
"""
from fastapi import APIRouter, Depends

from fict.core.dependencies import get_current_user
from fict.domain.schemas.auth import UserProfile
from fict.infrastructure.database.models import User

router = APIRouter()


@router.get("/me", response_model=UserProfile)
async def read_current_user(
    current_user: User = Depends(get_current_user),
) -> UserProfile:
    """Return the user owning the request's bearer session."""
    return UserProfile.model_validate(current_user)
