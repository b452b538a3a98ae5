"""
User directory.

Identity records plus the signup transaction, which consumes an invite code
and inserts the user atomically.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import BadRequestError
from ..security import get_password_hash
from .invites import InviteStore
from .models import User
from .transactions import transaction


def normalize_email(email: str) -> str:
    """Canonical stored form of an email address; lookups are case-insensitive."""
    return email.strip().lower()


@dataclass
class PublicUser:
    """The identity other users are allowed to see."""

    id: int
    first: str
    last: str

    @classmethod
    def from_model(cls, user: User) -> "PublicUser":
        return cls(id=user.id, first=user.first_name, last=user.last_name)

    def to_dict(self) -> dict:
        return {"id": self.id, "first": self.first, "last": self.last}


class UserDirectory:
    """Lookups and registration over the users table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        return (
            await self.db.execute(select(User).where(User.email == normalize_email(email)))
        ).scalar_one_or_none()

    async def list_public(self) -> list[PublicUser]:
        users = (await self.db.execute(select(User).order_by(User.id))).scalars().all()
        return [PublicUser.from_model(u) for u in users]

    async def register(
        self,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        invite_code: bytes,
    ) -> User:
        """
        Consume ``invite_code`` and create the user in one transaction.

        Raises:
            BadRequestError: The code is unknown, used or expired, or the
                email is already registered. Either way nothing is written
                and the code stays usable.
        """
        # Hash outside the transaction to keep the write lock short
        password_hash = await asyncio.to_thread(get_password_hash, password)

        try:
            async with transaction(self.db):
                if not await InviteStore(self.db).consume(invite_code):
                    raise BadRequestError("invalid invite code")

                user = User(
                    first_name=first_name,
                    last_name=last_name,
                    email=normalize_email(email),
                    password_hash=password_hash,
                )
                self.db.add(user)
                await self.db.flush()
        except IntegrityError:
            raise BadRequestError("email already registered")

        logger.info(f"Added user '{first_name} {last_name}' ({email}) {user.id}")
        return user
