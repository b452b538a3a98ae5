"""Invite-only shared wishlists."""

__version__ = "1.0.0"
