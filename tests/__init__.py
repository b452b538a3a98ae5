"""
Wishlist Test Suite

Tests are organized into:
- unit/: Unit tests for security helpers, middleware helpers and stores
- integration/: Integration tests for the HTTP API
"""
