"""
Comment store.

Comments hang off wishlist rows. Only users other than the row's owner may
post them and only the author may delete one.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import NotFoundError, UnauthorizedError
from .models import Comment, User, WishlistEntry
from .transactions import transaction


@dataclass
class CommentView:
    id: int
    user_id: int
    first: str
    last: str
    comment: str
    creation_time: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "first": self.first,
            "last": self.last,
            "comment": self.comment,
            "creation_time": self.creation_time,
        }


class CommentStore:
    """Post, delete and list comments."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def post(self, wishlist_id: int, user_id: int, text: str) -> int:
        """
        Attach a comment from ``user_id`` to a wishlist row.

        Raises:
            NotFoundError: No such row.
            UnauthorizedError: ``user_id`` owns the row.
        """
        async with transaction(self.db):
            owner_id = (
                await self.db.execute(
                    select(WishlistEntry.user_id).where(WishlistEntry.id == wishlist_id)
                )
            ).scalar_one_or_none()

            if owner_id is None:
                raise NotFoundError("wishlist entry", wishlist_id)
            if owner_id == user_id:
                raise UnauthorizedError("cannot comment on your own wishlist")

            comment = Comment(wishlist_id=wishlist_id, user_id=user_id, comment=text)
            self.db.add(comment)
            await self.db.flush()

        logger.info(f"User {user_id} commented on wishlist entry {wishlist_id}")
        return comment.id

    async def delete(self, comment_id: int, user_id: int) -> None:
        """
        Delete a comment authored by ``user_id``.

        A missing comment and someone else's comment are reported the same way.
        """
        async with transaction(self.db):
            result = await self.db.execute(
                delete(Comment)
                .where(Comment.id == comment_id, Comment.user_id == user_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise UnauthorizedError("cannot delete comment")

        logger.info(f"User {user_id} deleted comment {comment_id}")

    async def for_entries(self, entry_ids: list[int]) -> dict[int, list[CommentView]]:
        """Comments grouped by wishlist row, oldest first."""
        if not entry_ids:
            return {}

        rows = await self.db.execute(
            select(Comment, User.first_name, User.last_name)
            .join(User, User.id == Comment.user_id)
            .where(Comment.wishlist_id.in_(entry_ids))
            .order_by(Comment.creation_time, Comment.id)
        )

        grouped: dict[int, list[CommentView]] = defaultdict(list)
        for comment, first, last in rows:
            grouped[comment.wishlist_id].append(
                CommentView(
                    id=comment.id,
                    user_id=comment.user_id,
                    first=first,
                    last=last,
                    comment=comment.comment,
                    creation_time=comment.creation_time,
                )
            )
        return grouped
