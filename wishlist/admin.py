"""
Wishlist administration command line.

Out-of-band operations that have no HTTP surface:
- issue an invite code
- purge expired sessions
- create the database tables
"""

import argparse
import asyncio
import sys
from dataclasses import replace
from datetime import timedelta
from typing import Optional

from dotenv import load_dotenv
from loguru import logger

from wishlist.api.dependencies import (
    Settings,
    create_tables,
    dispose_database,
    get_session_factory,
    get_settings,
    init_database,
)
from wishlist.security import encode_token
from wishlist.storage import InviteStore, SessionStore


async def issue_invite(settings: Settings, user_id: Optional[int], ttl: timedelta) -> str:
    """Insert an invite code and return it base64url encoded."""
    init_database(settings)
    try:
        await create_tables()
        async with get_session_factory()() as db:
            code = await InviteStore(db).issue(user_id=user_id, ttl=ttl)
    finally:
        await dispose_database()
    return encode_token(code)


async def purge_sessions(settings: Settings) -> int:
    init_database(settings)
    try:
        async with get_session_factory()() as db:
            return await SessionStore(db).purge_expired()
    finally:
        await dispose_database()


async def init_db(settings: Settings) -> None:
    init_database(settings)
    try:
        await create_tables()
    finally:
        await dispose_database()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wishlist-admin",
        description="Administer a wishlist database",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL; defaults to DATABASE_URL or the server default",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    invite = subparsers.add_parser("invite", help="Issue a single-use invite code")
    invite.add_argument("--user-id", type=int, default=None, help="User the code is issued on behalf of")
    invite.add_argument("--ttl-hours", type=int, default=None, help="Hours until the code expires")

    subparsers.add_parser("purge-sessions", help="Delete expired sessions")
    subparsers.add_parser("init-db", help="Create missing tables")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    settings = get_settings()
    if args.database_url:
        settings = replace(settings, database_url=args.database_url)

    if args.command == "invite":
        ttl = timedelta(hours=args.ttl_hours) if args.ttl_hours else settings.invite_ttl
        print(asyncio.run(issue_invite(settings, args.user_id, ttl)))
    elif args.command == "purge-sessions":
        count = asyncio.run(purge_sessions(settings))
        print(f"Purged {count} expired sessions")
    elif args.command == "init-db":
        asyncio.run(init_db(settings))
        logger.info(f"Created tables in {settings.database_url}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
