"""
Dependency injection for FastAPI routes.

Provides injectable dependencies for:
- Configuration
- Database sessions
- Store instances
- Authentication (the session cookie gate)
"""

import os
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from ..exceptions import BadRequestError, UnauthorizedError
from ..security import SESSION_COOKIE_NAME, decode_token
from ..storage import (
    Base,
    CommentStore,
    SessionStore,
    UserDirectory,
    WishlistStore,
    enable_sqlite_foreign_keys,
)


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class Settings:
    """Application settings loaded from environment."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./wishlist.db"
    database_echo: bool = False

    # Server
    host: str = "localhost"
    port: int = 8080
    shutdown_timeout: int = 10

    # Lifetimes
    session_ttl_hours: int = 7 * 24
    invite_ttl_hours: int = 7 * 24

    # Environment
    environment: str = "development"
    debug: bool = True

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(hours=self.session_ttl_hours)

    @property
    def invite_ttl(self) -> timedelta:
        return timedelta(hours=self.invite_ttl_hours)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            database_echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
            host=os.getenv("WISHLIST_HOST", cls.host),
            port=int(os.getenv("WISHLIST_PORT", cls.port)),
            shutdown_timeout=int(os.getenv("SHUTDOWN_TIMEOUT", cls.shutdown_timeout)),
            session_ttl_hours=int(os.getenv("SESSION_TTL_HOURS", cls.session_ttl_hours)),
            invite_ttl_hours=int(os.getenv("INVITE_TTL_HOURS", cls.invite_ttl_hours)),
            environment=os.getenv("WISHLIST_ENV", cls.environment),
            debug=os.getenv("DEBUG", "true").lower() == "true",
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()


def get_app_settings(request: Request) -> Settings:
    """Settings the running application was built with."""
    return request.app.state.settings


# =============================================================================
# Database
# =============================================================================

# Global engine and session factory (initialized in lifespan)
_engine = None
_async_session_factory = None


def init_database(settings: Settings) -> None:
    """Initialize database engine and session factory."""
    global _engine, _async_session_factory

    _engine = create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )

    if _engine.dialect.name == "sqlite":
        event.listen(_engine.sync_engine, "connect", enable_sqlite_foreign_keys)

    _async_session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


def get_session_factory() -> async_sessionmaker:
    """Session factory for code running outside a request (CLI, tests)."""
    if _async_session_factory is None:
        raise RuntimeError("Database not initialized. Call init_database first.")
    return _async_session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    Stores commit their own transactions; anything left uncommitted when the
    request ends is rolled back by closing the session.

    Yields:
        AsyncSession for database operations.
    """
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def create_tables() -> None:
    """Create database tables."""
    if _engine is None:
        raise RuntimeError("Database not initialized.")

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_database() -> None:
    """Close all pooled connections."""
    global _engine, _async_session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _async_session_factory = None


# =============================================================================
# Store Dependencies
# =============================================================================

def get_session_store(db: AsyncSession = Depends(get_db)) -> SessionStore:
    """Dependency for the session store."""
    return SessionStore(db)


def get_user_directory(db: AsyncSession = Depends(get_db)) -> UserDirectory:
    """Dependency for the user directory."""
    return UserDirectory(db)


def get_wishlist_store(db: AsyncSession = Depends(get_db)) -> WishlistStore:
    """Dependency for the wishlist store."""
    return WishlistStore(db)


def get_comment_store(db: AsyncSession = Depends(get_db)) -> CommentStore:
    """Dependency for the comment store."""
    return CommentStore(db)


# =============================================================================
# Authentication Dependencies
# =============================================================================

async def get_current_user_id(
    request: Request,
    sessions: SessionStore = Depends(get_session_store),
) -> int:
    """
    Resolve the session cookie to the authenticated user id.

    Raises:
        BadRequestError: Cookie missing or undecodable.
        UnauthorizedError: No live session for the token.
    """
    cookie = request.cookies.get(SESSION_COOKIE_NAME)
    if cookie is None:
        raise BadRequestError("missing session cookie")

    token = decode_token(cookie)
    if token is None:
        raise BadRequestError("undecodable session cookie")

    user_id = await sessions.resolve(token)
    if user_id is None:
        raise UnauthorizedError("invalid or expired session")

    return user_id


# =============================================================================
# Request Context Dependencies
# =============================================================================

async def get_user_agent(request: Request) -> Optional[str]:
    """Extract user agent from request."""
    return request.headers.get("User-Agent")
