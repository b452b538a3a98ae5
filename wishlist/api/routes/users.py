"""
User API Routes

Directory of registered users, for picking whose wishlist to open.
"""

from fastapi import APIRouter, Depends

from wishlist.api.dependencies import get_current_user_id, get_user_directory
from wishlist.api.schemas import UserListResponse
from wishlist.storage import UserDirectory


router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=UserListResponse)
async def list_users(
    _: int = Depends(get_current_user_id),
    users: UserDirectory = Depends(get_user_directory),
):
    """All users' public identities, ordered by id."""
    return {"users": [user.to_dict() for user in await users.list_public()]}
