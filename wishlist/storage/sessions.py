"""
Session store.

Maps an opaque cookie token to the user it authenticates. Rows are created by
login and signup, read on every protected request and removed by logout.
Expired rows are deleted when a lookup runs into them, and in bulk by
``purge_expired``.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..security import SESSION_TTL, generate_token
from .models import LoginSession, utcnow
from .transactions import transaction


@dataclass
class IssuedSession:
    """A freshly created session, ready to be sent as a cookie."""

    token: bytes
    user_id: int
    expiry_time: datetime


class SessionStore:
    """CRUD over the sessions table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        user_id: int,
        user_agent: Optional[str],
        ttl: timedelta = SESSION_TTL,
    ) -> IssuedSession:
        """Insert a new session for ``user_id`` expiring ``ttl`` from now."""
        token = generate_token()
        now = utcnow()
        expiry_time = now + ttl

        async with transaction(self.db):
            self.db.add(
                LoginSession(
                    session_cookie=token,
                    user_id=user_id,
                    creation_time=now,
                    expiry_time=expiry_time,
                    user_agent=user_agent,
                )
            )

        logger.info(
            f"Created session for user id {user_id} agent '{user_agent}' expires at {expiry_time}"
        )
        return IssuedSession(token=token, user_id=user_id, expiry_time=expiry_time)

    async def resolve(self, token: bytes) -> Optional[int]:
        """
        Return the user id for a live session, or None.

        A session found past its expiry is deleted before returning None.
        """
        row = (
            await self.db.execute(
                select(LoginSession.user_id, LoginSession.expiry_time).where(
                    LoginSession.session_cookie == token
                )
            )
        ).first()

        if row is None:
            return None

        user_id, expiry_time = row
        if expiry_time < utcnow():
            logger.info(f"Reaping expired session for user id {user_id}")
            await self.delete(token)
            return None

        return user_id

    async def delete(self, token: bytes) -> int:
        """Delete one session. Returns the number of rows removed."""
        async with transaction(self.db):
            result = await self.db.execute(
                delete(LoginSession)
                .where(LoginSession.session_cookie == token)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Delete every session whose expiry has passed."""
        now = now or utcnow()
        async with transaction(self.db):
            result = await self.db.execute(
                delete(LoginSession)
                .where(LoginSession.expiry_time < now)
                .execution_options(synchronize_session=False)
            )
        logger.info(f"Purged {result.rowcount} expired sessions")
        return result.rowcount
