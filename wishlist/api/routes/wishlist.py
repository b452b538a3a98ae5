"""
Wishlist API Routes

Read, add, optimistically update and bulk delete wishlist entries.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from loguru import logger

from wishlist.api.dependencies import (
    get_comment_store,
    get_current_user_id,
    get_user_directory,
    get_wishlist_store,
)
from wishlist.api.schemas import (
    DeleteResponse,
    EntryCreate,
    EntryDelete,
    EntryPatch,
    EntryPatchResponse,
    ErrorResponse,
    IdResponse,
    MAX_ID,
    WishlistResponse,
)
from wishlist.exceptions import NotFoundError
from wishlist.storage import (
    CommentStore,
    EntryView,
    PublicUser,
    UserDirectory,
    WishlistStore,
    visible_columns,
)


router = APIRouter(prefix="/wishlist", tags=["wishlist"])


@router.get(
    "",
    response_model=WishlistResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
)
async def get_wishlist(
    user_id: Optional[int] = Query(None, alias="userId", gt=0, le=MAX_ID),
    viewer_id: int = Depends(get_current_user_id),
    users: UserDirectory = Depends(get_user_directory),
    wishlists: WishlistStore = Depends(get_wishlist_store),
    comments: CommentStore = Depends(get_comment_store),
):
    """
    A user's wishlist as the caller is allowed to see it.

    Defaults to the caller's own list. The owner never sees buyer notes or
    comments on their own entries.
    """
    owner_id = viewer_id if user_id is None else user_id

    owner = await users.get(owner_id)
    if owner is None:
        raise NotFoundError("user", owner_id)

    viewer_is_owner = owner_id == viewer_id
    entries = await wishlists.list_for_user(owner_id)
    views = [EntryView.for_viewer(entry, viewer_is_owner) for entry in entries]

    if not viewer_is_owner:
        by_entry = await comments.for_entries([view.id for view in views])
        for view in views:
            view.comments = by_entry.get(view.id, [])

    logger.debug(f"User {viewer_id} read wishlist of user {owner_id} ({len(views)} entries)")

    return WishlistResponse(
        user=PublicUser.from_model(owner).to_dict(),
        headers=visible_columns(viewer_is_owner),
        entries=[view.to_dict() for view in views],
    )


@router.post("", response_model=IdResponse)
async def add_entry(
    body: EntryCreate,
    user_id: int = Depends(get_current_user_id),
    wishlists: WishlistStore = Depends(get_wishlist_store),
):
    """Add an entry to the caller's own wishlist."""
    entry_id = await wishlists.add(
        user_id=user_id,
        description=body.description,
        source=body.source,
        cost=body.cost,
        owner_notes=body.owner_notes,
    )
    return {"id": entry_id}


@router.patch(
    "",
    response_model=EntryPatchResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Field not writable by this user"},
        404: {"model": ErrorResponse, "description": "Entry not found"},
        409: {"model": ErrorResponse, "description": "Stale sequence number"},
    },
)
async def update_entry(
    body: EntryPatch,
    user_id: int = Depends(get_current_user_id),
    wishlists: WishlistStore = Depends(get_wishlist_store),
):
    """
    Update the fields present in the body.

    ``seq`` must match the entry's current sequence number. On success the
    response carries the new one.
    """
    new_seq = await wishlists.apply_update(
        entry_id=body.id,
        seq=body.seq,
        requester_id=user_id,
        changes=body.to_changes(),
    )
    return {"id": body.id, "seq": new_seq}


@router.delete(
    "",
    response_model=DeleteResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Entry owned by another user"},
        404: {"model": ErrorResponse, "description": "No matching entries"},
    },
)
async def delete_entries(
    body: EntryDelete,
    user_id: int = Depends(get_current_user_id),
    wishlists: WishlistStore = Depends(get_wishlist_store),
):
    """Delete entries from the caller's wishlist, all or nothing."""
    deleted = await wishlists.delete_many(user_id, body.ids)
    return {"deleted": deleted}
