"""
Comment API Routes

Comments are left by other users on a wishlist entry and are never shown to
the entry's owner.
"""

from fastapi import APIRouter, Depends

from wishlist.api.dependencies import get_comment_store, get_current_user_id
from wishlist.api.schemas import (
    CommentCreate,
    CommentDelete,
    ErrorResponse,
    IdResponse,
    StatusResponse,
)
from wishlist.storage import CommentStore


router = APIRouter(prefix="/comments", tags=["comments"])


@router.post(
    "",
    response_model=IdResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Commenting on your own entry"},
        404: {"model": ErrorResponse, "description": "Entry not found"},
    },
)
async def post_comment(
    body: CommentCreate,
    user_id: int = Depends(get_current_user_id),
    comments: CommentStore = Depends(get_comment_store),
):
    comment_id = await comments.post(body.wishlist_id, user_id, body.comment)
    return {"id": comment_id}


@router.delete(
    "",
    response_model=StatusResponse,
    responses={401: {"model": ErrorResponse, "description": "Not the author, or no such comment"}},
)
async def delete_comment(
    body: CommentDelete,
    user_id: int = Depends(get_current_user_id),
    comments: CommentStore = Depends(get_comment_store),
):
    """Delete one of the caller's own comments."""
    await comments.delete(body.id, user_id)
    return {"status": "deleted"}
