"""
Wishlist store.

Per-user item rows guarded by an optimistic-concurrency sequence number.

Update protocol:
1. Read the row's owner and current seq.
2. Reject a stale seq with a conflict carrying the current value.
3. Check the requester's role against the fields being changed. The owner
   edits description/source/cost/owner_notes; everybody else edits only
   buyer_notes.
4. UPDATE the provided columns plus ``seq = seq + 1`` with ``seq`` in the
   WHERE clause, so two patches racing from the same seq cannot both land.
5. Commit. Any failure rolls the whole thing back.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from loguru import logger
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from .models import WishlistEntry
from .transactions import transaction


class _Unset:
    """Marker for a field the client did not send."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass
class EntryChanges:
    """
    One optional slot per mutable column.

    ``UNSET`` means "leave alone"; ``None`` on a note column means "clear it".
    """

    description: Any = UNSET
    source: Any = UNSET
    cost: Any = UNSET
    owner_notes: Any = UNSET
    buyer_notes: Any = UNSET

    def owner_columns(self) -> dict[str, Optional[str]]:
        """Owner-writable columns that were provided."""
        columns = {}
        if self.description is not UNSET:
            columns["description"] = self.description
        if self.source is not UNSET:
            columns["source"] = self.source
        if self.cost is not UNSET:
            columns["cost"] = self.cost
        if self.owner_notes is not UNSET:
            columns["owner_notes"] = self.owner_notes
        return columns

    def buyer_columns(self) -> dict[str, Optional[str]]:
        """Buyer-writable columns that were provided."""
        columns = {}
        if self.buyer_notes is not UNSET:
            columns["buyer_notes"] = self.buyer_notes
        return columns


@dataclass
class EntryView:
    """A wishlist row as one particular viewer may see it."""

    id: int
    seq: int
    description: str
    source: str
    cost: str
    owner_notes: Optional[str]
    buyer_notes: Optional[str]
    creation_time: Any
    comments: list = field(default_factory=list)

    @classmethod
    def for_viewer(cls, entry: WishlistEntry, viewer_is_owner: bool) -> "EntryView":
        return cls(
            id=entry.id,
            seq=entry.seq,
            description=entry.description,
            source=entry.source,
            cost=entry.cost,
            owner_notes=entry.owner_notes,
            # Buyer notes never reach the owner
            buyer_notes=None if viewer_is_owner else entry.buyer_notes,
            creation_time=entry.creation_time,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "seq": self.seq,
            "description": self.description,
            "source": self.source,
            "cost": self.cost,
            "owner_notes": self.owner_notes,
            "buyer_notes": self.buyer_notes,
            "creation_time": self.creation_time,
            "comments": [c.to_dict() for c in self.comments],
        }


class WishlistStore:
    """Reads, inserts, optimistic updates and bulk deletes of wishlist rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for_user(self, user_id: int) -> list[WishlistEntry]:
        result = await self.db.execute(
            select(WishlistEntry)
            .where(WishlistEntry.user_id == user_id)
            .order_by(WishlistEntry.id)
        )
        return list(result.scalars().all())

    async def add(
        self,
        user_id: int,
        description: str,
        source: str = "",
        cost: str = "",
        owner_notes: Optional[str] = None,
    ) -> int:
        """Insert a row owned by ``user_id`` at seq 1 and return its id."""
        entry = WishlistEntry(
            seq=1,
            user_id=user_id,
            description=description,
            source=source,
            cost=cost,
            owner_notes=owner_notes,
        )
        async with transaction(self.db):
            self.db.add(entry)
            await self.db.flush()

        logger.info(f"User {user_id} added wishlist entry {entry.id}")
        return entry.id

    async def owner_and_seq(self, entry_id: int) -> Optional[tuple[int, int]]:
        row = (
            await self.db.execute(
                select(WishlistEntry.user_id, WishlistEntry.seq).where(
                    WishlistEntry.id == entry_id
                )
            )
        ).first()
        if row is None:
            return None
        return row[0], row[1]

    async def apply_update(
        self,
        entry_id: int,
        seq: int,
        requester_id: int,
        changes: EntryChanges,
    ) -> int:
        """
        Run the optimistic update protocol and return the new seq.

        Raises:
            NotFoundError: No such row.
            ConflictError: ``seq`` is not the row's current seq.
            BadRequestError: The requester's role does not allow the change.
        """
        async with transaction(self.db):
            current = await self.owner_and_seq(entry_id)
            if current is None:
                raise NotFoundError("wishlist entry", entry_id)

            owner_id, current_seq = current
            if seq != current_seq:
                raise ConflictError(entry_id, seq, current_seq)

            owner_columns = changes.owner_columns()
            buyer_columns = changes.buyer_columns()

            if requester_id == owner_id:
                if buyer_columns:
                    raise BadRequestError("owner cannot edit buyer notes")
                if not owner_columns:
                    raise BadRequestError("no fields to update")
                for column in ("description", "source", "cost"):
                    if column in owner_columns and owner_columns[column] is None:
                        raise BadRequestError(f"{column} cannot be null")
                values = owner_columns
            else:
                if owner_columns:
                    raise BadRequestError("non-owner can only edit buyer notes")
                if not buyer_columns:
                    raise BadRequestError("no fields to update")
                values = buyer_columns

            result = await self.db.execute(
                update(WishlistEntry)
                .where(WishlistEntry.id == entry_id, WishlistEntry.seq == seq)
                .values(seq=WishlistEntry.seq + 1, **values)
                .execution_options(synchronize_session=False)
            )

            if result.rowcount == 0:
                # Lost the race between the read and the write
                current = await self.owner_and_seq(entry_id)
                if current is None:
                    raise NotFoundError("wishlist entry", entry_id)
                raise ConflictError(entry_id, seq, current[1])

        logger.info(
            f"User {requester_id} updated wishlist entry {entry_id} "
            f"({', '.join(sorted(values))}) seq {seq} -> {seq + 1}"
        )
        return seq + 1

    async def delete_many(self, requester_id: int, entry_ids: list[int]) -> int:
        """
        Delete rows by id, all or nothing.

        Raises:
            UnauthorizedError: Any id belongs to another user; nothing is deleted.
            NotFoundError: None of the ids matched.
        """
        async with transaction(self.db):
            foreign = (
                await self.db.execute(
                    select(func.count())
                    .select_from(WishlistEntry)
                    .where(
                        WishlistEntry.id.in_(entry_ids),
                        WishlistEntry.user_id != requester_id,
                    )
                )
            ).scalar_one()
            if foreign > 0:
                raise UnauthorizedError(
                    "cannot delete another user's entries",
                    detail=f"{foreign} of the requested entries belong to other users",
                )

            result = await self.db.execute(
                delete(WishlistEntry)
                .where(
                    WishlistEntry.id.in_(entry_ids),
                    WishlistEntry.user_id == requester_id,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError("wishlist entry", ",".join(str(i) for i in entry_ids))

        logger.info(f"User {requester_id} deleted {result.rowcount} wishlist entries")
        return result.rowcount


# Columns each kind of viewer gets to see, in display order
OWNER_VISIBLE_COLUMNS = ["description", "source", "cost", "owner_notes"]
BUYER_VISIBLE_COLUMNS = OWNER_VISIBLE_COLUMNS + ["buyer_notes"]


def visible_columns(viewer_is_owner: bool) -> list[str]:
    return list(OWNER_VISIBLE_COLUMNS if viewer_is_owner else BUYER_VISIBLE_COLUMNS)
