"""
Wishlist - FastAPI Backend.

HTTP surface for invite-only shared wishlists.
"""

from .main import app, create_app, main
from .dependencies import (
    Settings,
    get_app_settings,
    get_settings,
    get_db,
    get_current_user_id,
)
from .schemas import (
    LoginRequest,
    SignupRequest,
    PublicUserResponse,
    EntryCreate,
    EntryPatch,
    EntryDelete,
    WishlistResponse,
    CommentCreate,
    CommentDelete,
    HealthResponse,
    ErrorResponse,
)

__all__ = [
    # Application
    "app",
    "create_app",
    "main",
    # Dependencies
    "Settings",
    "get_app_settings",
    "get_settings",
    "get_db",
    "get_current_user_id",
    # Schemas
    "LoginRequest",
    "SignupRequest",
    "PublicUserResponse",
    "EntryCreate",
    "EntryPatch",
    "EntryDelete",
    "WishlistResponse",
    "CommentCreate",
    "CommentDelete",
    "HealthResponse",
    "ErrorResponse",
]
