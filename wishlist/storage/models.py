"""
Database models for the wishlist service.

Five tables: users, sessions, invite_codes, wishlist, comments. Every foreign
key cascades on delete so removing a user or a wishlist row removes its
dependents at the storage layer.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Current time as naive UTC, the form every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """Identity record."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(200), nullable=False)
    last_name = Column(String(200), nullable=False)
    email = Column(String(254), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    registration_date = Column(DateTime, default=utcnow, nullable=False)


class LoginSession(Base):
    """Server-side session keyed by the raw cookie token."""
    __tablename__ = "sessions"

    session_cookie = Column(LargeBinary(32), primary_key=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    creation_time = Column(DateTime, default=utcnow, nullable=False)
    expiry_time = Column(DateTime, nullable=False)
    user_agent = Column(Text)


class InviteCode(Base):
    """Single-use signup token."""
    __tablename__ = "invite_codes"

    code = Column(LargeBinary(32), primary_key=True)
    # User the code was issued on behalf of, if any
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    creation_time = Column(DateTime, default=utcnow, nullable=False)
    expiry_time = Column(DateTime, nullable=False)


class WishlistEntry(Base):
    """One desired item on a user's list."""
    __tablename__ = "wishlist"

    id = Column(Integer, primary_key=True, autoincrement=True)
    seq = Column(Integer, nullable=False, default=1)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    description = Column(Text, nullable=False)
    source = Column(Text, nullable=False, default="")
    cost = Column(Text, nullable=False, default="")
    owner_notes = Column(Text)
    buyer_notes = Column(Text)
    creation_time = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_wishlist_user", "user_id"),
    )


class Comment(Base):
    """Short comment left on someone else's wishlist row."""
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    wishlist_id = Column(
        Integer, ForeignKey("wishlist.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    comment = Column(Text, nullable=False)
    creation_time = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_comments_wishlist", "wishlist_id"),
    )


def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """Connect hook: SQLite ignores foreign keys (and so cascades) unless asked per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
