"""
Unit tests for the stores, run against a real SQLite file.
"""

from datetime import timedelta

import pytest
import pytest_asyncio
from sqlalchemy import delete, func, select

from wishlist.exceptions import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from wishlist.storage import (
    Comment,
    CommentStore,
    EntryChanges,
    EntryView,
    InviteCode,
    InviteStore,
    LoginSession,
    SessionStore,
    User,
    UserDirectory,
    WishlistEntry,
    WishlistStore,
    transaction,
    visible_columns,
)

pytestmark = pytest.mark.asyncio


async def _register(db, first, email, password="pw"):
    code = await InviteStore(db).issue()
    return await UserDirectory(db).register(first, "Test", email, password, code)


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def _count_where(db, model, condition) -> int:
    return (
        await db.execute(select(func.count()).select_from(model).where(condition))
    ).scalar_one()


class TestInviteStore:
    async def test_consume_is_single_use(self, db_session):
        store = InviteStore(db_session)
        code = await store.issue()

        assert await store.consume(code) is True
        assert await store.consume(code) is False

    async def test_expired_code_is_not_consumed(self, db_session):
        store = InviteStore(db_session)
        code = await store.issue(ttl=timedelta(seconds=-1))

        assert await store.consume(code) is False

    async def test_issue_on_behalf_of_user(self, db_session):
        user = await _register(db_session, "Ann", "ann@example.com")
        code = await InviteStore(db_session).issue(user_id=user.id)

        row = await db_session.get(InviteCode, code)
        assert row.user_id == user.id


class TestUserDirectory:
    """Tests for signup and lookups."""

    async def test_register_consumes_invite(self, db_session):
        code = await InviteStore(db_session).issue()
        user = await UserDirectory(db_session).register("Jane", "Doe", "jane@example.com", "pw", code)

        assert user.id > 0
        assert user.password_hash.startswith("$argon2")
        assert await _count(db_session, InviteCode) == 0

    async def test_register_with_used_code_fails(self, db_session):
        directory = UserDirectory(db_session)
        code = await InviteStore(db_session).issue()
        await directory.register("Jane", "Doe", "jane@example.com", "pw", code)

        with pytest.raises(BadRequestError, match="invalid invite code"):
            await directory.register("John", "Doe", "john@example.com", "pw", code)

        assert await directory.get_by_email("john@example.com") is None

    async def test_duplicate_email_keeps_the_invite(self, db_session):
        directory = UserDirectory(db_session)
        await _register(db_session, "Jane", "jane@example.com")
        code = await InviteStore(db_session).issue()

        with pytest.raises(BadRequestError, match="email already registered"):
            await directory.register("Other", "Jane", "jane@example.com", "pw", code)

        # Rolled back: the code can still be used
        assert await InviteStore(db_session).consume(code) is True

    async def test_email_is_stored_lower_case(self, db_session):
        user = await _register(db_session, "Ann", " Ann@Example.COM")
        directory = UserDirectory(db_session)

        assert user.email == "ann@example.com"
        assert (await directory.get_by_email("ANN@example.com")).id == user.id

    async def test_list_public_is_ordered(self, db_session):
        await _register(db_session, "Ann", "ann@example.com")
        await _register(db_session, "Ben", "ben@example.com")

        users = await UserDirectory(db_session).list_public()

        assert [u.first for u in users] == ["Ann", "Ben"]
        assert users[0].id < users[1].id


class TestSessionStore:
    """Tests for session creation, lookup and reaping."""

    async def test_create_and_resolve(self, db_session):
        user = await _register(db_session, "Ann", "ann@example.com")
        store = SessionStore(db_session)

        issued = await store.create(user.id, "pytest")

        assert len(issued.token) == 32
        assert await store.resolve(issued.token) == user.id

    async def test_expired_session_is_reaped_on_lookup(self, db_session):
        user = await _register(db_session, "Ann", "ann@example.com")
        store = SessionStore(db_session)
        issued = await store.create(user.id, "pytest", ttl=timedelta(seconds=-1))

        assert await store.resolve(issued.token) is None
        assert await db_session.get(LoginSession, issued.token, populate_existing=True) is None

    async def test_unknown_token(self, db_session):
        assert await SessionStore(db_session).resolve(b"\x00" * 32) is None

    async def test_delete(self, db_session):
        user = await _register(db_session, "Ann", "ann@example.com")
        store = SessionStore(db_session)
        issued = await store.create(user.id, None)

        assert await store.delete(issued.token) == 1
        assert await store.delete(issued.token) == 0

    async def test_purge_expired(self, db_session):
        user = await _register(db_session, "Ann", "ann@example.com")
        store = SessionStore(db_session)
        live = await store.create(user.id, None)
        await store.create(user.id, None, ttl=timedelta(seconds=-1))
        await store.create(user.id, None, ttl=timedelta(seconds=-1))

        assert await store.purge_expired() == 2
        assert await store.resolve(live.token) == user.id


class TestWishlistStore:
    """Tests for the optimistic update protocol and bulk delete."""

    @pytest_asyncio.fixture
    async def owner_and_buyer(self, db_session):
        owner = await _register(db_session, "Owner", "owner@example.com")
        buyer = await _register(db_session, "Buyer", "buyer@example.com")
        return owner.id, buyer.id

    async def test_add_starts_at_seq_one(self, db_session, owner_and_buyer):
        owner_id, _ = owner_and_buyer
        store = WishlistStore(db_session)

        entry_id = await store.add(owner_id, "Bike")

        assert await store.owner_and_seq(entry_id) == (owner_id, 1)

    async def test_owner_update_increments_seq(self, db_session, owner_and_buyer):
        owner_id, _ = owner_and_buyer
        store = WishlistStore(db_session)
        entry_id = await store.add(owner_id, "Bike")

        new_seq = await store.apply_update(
            entry_id, 1, owner_id, EntryChanges(description="Red bike", owner_notes="size M")
        )

        assert new_seq == 2
        entry = await db_session.get(WishlistEntry, entry_id, populate_existing=True)
        assert entry.description == "Red bike"
        assert entry.owner_notes == "size M"
        assert entry.seq == 2

    async def test_stale_seq_conflicts(self, db_session, owner_and_buyer):
        owner_id, buyer_id = owner_and_buyer
        store = WishlistStore(db_session)
        entry_id = await store.add(owner_id, "Bike")
        await store.apply_update(entry_id, 1, owner_id, EntryChanges(description="Red bike"))

        with pytest.raises(ConflictError) as excinfo:
            await store.apply_update(entry_id, 1, buyer_id, EntryChanges(buyer_notes="got it"))

        assert excinfo.value.extra["current_seq"] == 2

    async def test_missing_entry(self, db_session, owner_and_buyer):
        owner_id, _ = owner_and_buyer

        with pytest.raises(NotFoundError):
            await WishlistStore(db_session).apply_update(999, 1, owner_id, EntryChanges(cost="1"))

    @pytest.mark.parametrize(
        "as_owner,changes,message",
        [
            (True, EntryChanges(buyer_notes="x"), "owner cannot edit buyer notes"),
            (True, EntryChanges(), "no fields to update"),
            (True, EntryChanges(description=None), "description cannot be null"),
            (False, EntryChanges(owner_notes="x"), "non-owner can only edit buyer notes"),
            (False, EntryChanges(description="x", buyer_notes="y"), "non-owner can only edit buyer notes"),
            (False, EntryChanges(), "no fields to update"),
        ],
    )
    async def test_role_rules(self, db_session, owner_and_buyer, as_owner, changes, message):
        owner_id, buyer_id = owner_and_buyer
        store = WishlistStore(db_session)
        entry_id = await store.add(owner_id, "Bike")

        with pytest.raises(BadRequestError, match=message):
            await store.apply_update(entry_id, 1, owner_id if as_owner else buyer_id, changes)

        # Rejected updates leave seq untouched
        assert await store.owner_and_seq(entry_id) == (owner_id, 1)

    async def test_owner_may_clear_owner_notes(self, db_session, owner_and_buyer):
        owner_id, _ = owner_and_buyer
        store = WishlistStore(db_session)
        entry_id = await store.add(owner_id, "Bike", owner_notes="old")

        await store.apply_update(entry_id, 1, owner_id, EntryChanges(owner_notes=None))

        entry = await db_session.get(WishlistEntry, entry_id, populate_existing=True)
        assert entry.owner_notes is None

    async def test_buyer_notes_hidden_from_owner_view(self, db_session, owner_and_buyer):
        owner_id, buyer_id = owner_and_buyer
        store = WishlistStore(db_session)
        entry_id = await store.add(owner_id, "Bike")
        await store.apply_update(entry_id, 1, buyer_id, EntryChanges(buyer_notes="bought"))

        [entry] = await store.list_for_user(owner_id)
        await db_session.refresh(entry)

        assert EntryView.for_viewer(entry, viewer_is_owner=True).buyer_notes is None
        assert EntryView.for_viewer(entry, viewer_is_owner=False).buyer_notes == "bought"
        assert "buyer_notes" not in visible_columns(True)
        assert "buyer_notes" in visible_columns(False)

    async def test_delete_many_is_all_or_nothing(self, db_session, owner_and_buyer):
        owner_id, buyer_id = owner_and_buyer
        store = WishlistStore(db_session)
        mine = await store.add(owner_id, "Bike")
        theirs = await store.add(buyer_id, "Kite")

        with pytest.raises(UnauthorizedError):
            await store.delete_many(owner_id, [mine, theirs])

        assert await _count(db_session, WishlistEntry) == 2

    async def test_delete_many(self, db_session, owner_and_buyer):
        owner_id, _ = owner_and_buyer
        store = WishlistStore(db_session)
        ids = [await store.add(owner_id, f"Item {n}") for n in range(3)]

        assert await store.delete_many(owner_id, ids[:2]) == 2
        assert [e.id for e in await store.list_for_user(owner_id)] == ids[2:]

    async def test_delete_many_nothing_matched(self, db_session, owner_and_buyer):
        owner_id, _ = owner_and_buyer

        with pytest.raises(NotFoundError):
            await WishlistStore(db_session).delete_many(owner_id, [12345])


class TestCommentStore:
    """Tests for posting, deleting and listing comments."""

    async def test_post_and_list(self, db_session):
        owner = await _register(db_session, "Owner", "owner@example.com")
        buyer = await _register(db_session, "Buyer", "buyer@example.com")
        entry_id = await WishlistStore(db_session).add(owner.id, "Bike")
        comments = CommentStore(db_session)

        comment_id = await comments.post(entry_id, buyer.id, "I'll get this")
        grouped = await comments.for_entries([entry_id])

        [view] = grouped[entry_id]
        assert view.id == comment_id
        assert view.first == "Buyer"
        assert view.comment == "I'll get this"

    async def test_self_comment_is_unauthorized(self, db_session):
        owner = await _register(db_session, "Owner", "owner@example.com")
        entry_id = await WishlistStore(db_session).add(owner.id, "Bike")

        with pytest.raises(UnauthorizedError):
            await CommentStore(db_session).post(entry_id, owner.id, "mine")

    async def test_comment_on_missing_entry(self, db_session):
        buyer = await _register(db_session, "Buyer", "buyer@example.com")

        with pytest.raises(NotFoundError):
            await CommentStore(db_session).post(999, buyer.id, "hello")

    async def test_only_author_deletes(self, db_session):
        owner = await _register(db_session, "Owner", "owner@example.com")
        buyer = await _register(db_session, "Buyer", "buyer@example.com")
        # The failed delete rolls back and expires loaded instances
        owner_id, buyer_id = owner.id, buyer.id
        entry_id = await WishlistStore(db_session).add(owner_id, "Bike")
        comments = CommentStore(db_session)
        comment_id = await comments.post(entry_id, buyer_id, "hello")

        with pytest.raises(UnauthorizedError):
            await comments.delete(comment_id, owner_id)

        await comments.delete(comment_id, buyer_id)
        assert await comments.for_entries([entry_id]) == {}

    async def test_entry_delete_cascades_to_comments(self, db_session):
        owner = await _register(db_session, "Owner", "owner@example.com")
        buyer = await _register(db_session, "Buyer", "buyer@example.com")
        store = WishlistStore(db_session)
        entry_id = await store.add(owner.id, "Bike")
        await CommentStore(db_session).post(entry_id, buyer.id, "hello")

        await store.delete_many(owner.id, [entry_id])

        assert await CommentStore(db_session).for_entries([entry_id]) == {}


class TestUserCascade:
    """Deleting a user removes everything that hangs off them."""

    async def test_user_delete_cascades(self, db_session):
        owner = await _register(db_session, "Owner", "owner@example.com")
        buyer = await _register(db_session, "Buyer", "buyer@example.com")
        owner_id, buyer_id = owner.id, buyer.id

        wishlists = WishlistStore(db_session)
        comments = CommentStore(db_session)
        own_entry = await wishlists.add(owner_id, "Bike")
        buyer_entry = await wishlists.add(buyer_id, "Kite")
        await comments.post(own_entry, buyer_id, "on my list")
        await comments.post(buyer_entry, owner_id, "nice kite")
        await SessionStore(db_session).create(owner_id, "pytest")
        await InviteStore(db_session).issue(user_id=owner_id)

        async with transaction(db_session):
            await db_session.execute(delete(User).where(User.id == owner_id))

        assert await _count_where(db_session, LoginSession, LoginSession.user_id == owner_id) == 0
        assert await _count_where(db_session, InviteCode, InviteCode.user_id == owner_id) == 0
        assert [e.id for e in await wishlists.list_for_user(owner_id)] == []
        assert await _count(db_session, Comment) == 0
        assert [e.id for e in await wishlists.list_for_user(buyer_id)] == [buyer_entry]
