"""
Transaction scoping for store operations.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession


@asynccontextmanager
async def transaction(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Commit on clean exit, roll back on any exception.

    Usage:
        async with transaction(db):
            await db.execute(...)
    """
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise
