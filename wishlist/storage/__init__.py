"""
Storage Module for the wishlist service

Relational persistence through SQLAlchemy's asyncio extension:
- Table models (users, sessions, invite codes, wishlist rows, comments)
- One store class per table, each bound to a request-scoped AsyncSession
- Commit-or-rollback transaction scoping
"""

from wishlist.storage.models import (
    Base,
    User,
    LoginSession,
    InviteCode,
    WishlistEntry,
    Comment,
    utcnow,
    enable_sqlite_foreign_keys,
)
from wishlist.storage.transactions import transaction
from wishlist.storage.sessions import SessionStore, IssuedSession
from wishlist.storage.invites import InviteStore
from wishlist.storage.users import UserDirectory, PublicUser, normalize_email
from wishlist.storage.wishlist import (
    WishlistStore,
    EntryChanges,
    EntryView,
    UNSET,
    visible_columns,
)
from wishlist.storage.comments import CommentStore, CommentView

__all__ = [
    # Models
    "Base",
    "User",
    "LoginSession",
    "InviteCode",
    "WishlistEntry",
    "Comment",
    "utcnow",
    "enable_sqlite_foreign_keys",
    # Transactions
    "transaction",
    # Stores
    "SessionStore",
    "IssuedSession",
    "InviteStore",
    "UserDirectory",
    "PublicUser",
    "normalize_email",
    "WishlistStore",
    "EntryChanges",
    "EntryView",
    "UNSET",
    "visible_columns",
    "CommentStore",
    "CommentView",
]
