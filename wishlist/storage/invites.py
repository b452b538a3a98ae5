"""
Invite code store.

Codes are issued out of band by an administrator and consumed exactly once
at signup. Consumption is a delete, so a code that has been used is gone and
can never authorise a second signup.
"""

from datetime import timedelta
from typing import Optional

from loguru import logger
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from ..security import INVITE_CODE_TTL, generate_token
from .models import InviteCode, utcnow
from .transactions import transaction


class InviteStore:
    """Issue and consume invite codes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def issue(
        self,
        user_id: Optional[int] = None,
        ttl: timedelta = INVITE_CODE_TTL,
    ) -> bytes:
        """Create a new invite code and return its raw bytes."""
        code = generate_token()
        now = utcnow()

        async with transaction(self.db):
            self.db.add(
                InviteCode(
                    code=code,
                    user_id=user_id,
                    creation_time=now,
                    expiry_time=now + ttl,
                )
            )

        logger.info(f"Issued invite code expiring at {now + ttl}")
        return code

    async def consume(self, code: bytes) -> bool:
        """
        Delete an unexpired code inside the caller's transaction.

        Does not commit. Returns False when nothing matched, which covers
        unknown, already used and expired codes alike.
        """
        result = await self.db.execute(
            delete(InviteCode)
            .where(InviteCode.code == code, InviteCode.expiry_time > utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0
