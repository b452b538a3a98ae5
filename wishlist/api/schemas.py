"""
API Schemas for the wishlist service

Pydantic models for request validation and response serialization:
- Session and signup models
- Wishlist models
- Comment models

Design Decisions:
1. Strict requests: unknown keys are rejected (``extra="forbid"``)
2. Length limits on every client-controlled string
3. Separate Request/Response: clear distinction between inputs and outputs
4. Patch bodies keep track of which keys were sent, not just their values
"""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..storage import UNSET, EntryChanges


# Field size limits
NAME_MAX = 200
PASSWORD_MAX = 1024
INVITE_CODE_MAX = 128
TEXT_MAX = 2000
COST_MAX = 100
COMMENT_MAX = 1000

# Row ids and sequence numbers are SQLite INTEGERs (signed 64-bit)
MAX_ID = 2**63 - 1

RowId = Annotated[int, Field(gt=0, le=MAX_ID)]


class StrictModel(BaseModel):
    """Request body that rejects unknown keys."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# Session / Signup Schemas
# =============================================================================

class LoginRequest(StrictModel):
    """Login request."""

    email: str = Field(..., min_length=1, max_length=254)
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX)


class SignupRequest(StrictModel):
    """Signup request, gated by a single-use invite code."""

    first: str = Field(..., min_length=1, max_length=NAME_MAX)
    last: str = Field(..., min_length=1, max_length=NAME_MAX)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX)
    invite_code: str = Field(..., min_length=1, max_length=INVITE_CODE_MAX)

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "first": "Jane",
                "last": "Doe",
                "email": "jane@example.com",
                "password": "correct horse battery staple",
                "invite_code": "q0k3gQ1bVZ8m2b4m7bqvQfXr2Yy4Uu9cJb0gP0g5oXw",
            }
        },
    )


class PublicUserResponse(BaseModel):
    """Identity visible to other users."""

    id: int
    first: str
    last: str


class UserListResponse(BaseModel):
    users: list[PublicUserResponse]


# =============================================================================
# Wishlist Schemas
# =============================================================================

class EntryCreate(StrictModel):
    """New wishlist row, written by its owner."""

    description: str = Field(..., min_length=1, max_length=TEXT_MAX)
    source: str = Field("", max_length=TEXT_MAX)
    cost: str = Field("", max_length=COST_MAX)
    owner_notes: Optional[str] = Field(None, max_length=TEXT_MAX)


class EntryPatch(StrictModel):
    """
    Optimistic update of one wishlist row.

    ``id`` and ``seq`` must be set (zero is treated as unset). Every other key
    is optional; a key that is present is applied, including an explicit null
    on the note columns.
    """

    id: RowId
    seq: RowId
    description: Optional[str] = Field(None, min_length=1, max_length=TEXT_MAX)
    source: Optional[str] = Field(None, max_length=TEXT_MAX)
    cost: Optional[str] = Field(None, max_length=COST_MAX)
    owner_notes: Optional[str] = Field(None, max_length=TEXT_MAX)
    buyer_notes: Optional[str] = Field(None, max_length=TEXT_MAX)

    def to_changes(self) -> EntryChanges:
        sent = self.model_fields_set
        return EntryChanges(
            description=self.description if "description" in sent else UNSET,
            source=self.source if "source" in sent else UNSET,
            cost=self.cost if "cost" in sent else UNSET,
            owner_notes=self.owner_notes if "owner_notes" in sent else UNSET,
            buyer_notes=self.buyer_notes if "buyer_notes" in sent else UNSET,
        )


class EntryDelete(StrictModel):
    """Bulk delete request."""

    ids: list[RowId] = Field(..., min_length=1, max_length=1000)


class CommentResponse(BaseModel):
    id: int
    user_id: int
    first: str
    last: str
    comment: str
    creation_time: datetime


class EntryResponse(BaseModel):
    """Wishlist row as seen by the requesting viewer."""

    id: int
    seq: int
    description: str
    source: str
    cost: str
    owner_notes: Optional[str] = None
    buyer_notes: Optional[str] = None
    creation_time: datetime
    comments: list[CommentResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class WishlistResponse(BaseModel):
    """One user's list."""

    user: PublicUserResponse
    headers: list[str]
    entries: list[EntryResponse]


class IdResponse(BaseModel):
    id: int


class EntryPatchResponse(BaseModel):
    id: int
    seq: int


class DeleteResponse(BaseModel):
    deleted: int


# =============================================================================
# Comment Schemas
# =============================================================================

class CommentCreate(StrictModel):
    wishlist_id: RowId
    comment: str = Field(..., min_length=1, max_length=COMMENT_MAX)


class CommentDelete(StrictModel):
    id: RowId


# =============================================================================
# System Schemas
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class StatusResponse(BaseModel):
    status: str


class ErrorResponse(BaseModel):
    """Error response."""

    error: str
    code: str
    detail: Optional[str] = None
    timestamp: str
