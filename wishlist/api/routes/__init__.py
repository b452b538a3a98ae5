"""
API Routes for the wishlist service

Route modules:
- auth: Signup, login, logout and the current session
- wishlist: Wishlist entries with optimistic updates
- users: User directory
- comments: Comments on other users' entries
"""

from wishlist.api.routes.auth import router as auth_router
from wishlist.api.routes.wishlist import router as wishlist_router
from wishlist.api.routes.users import router as users_router
from wishlist.api.routes.comments import router as comments_router

__all__ = [
    "auth_router",
    "wishlist_router",
    "users_router",
    "comments_router",
]
