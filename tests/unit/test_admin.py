"""
Unit tests for the administration command line.
"""

import pytest

from wishlist.admin import build_parser, main
from wishlist.security import TOKEN_BYTES, decode_token


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'admin.db'}"


class TestAdminCli:
    def test_invite_prints_a_code(self, database_url, capsys):
        assert main(["--database-url", database_url, "invite"]) == 0

        code = capsys.readouterr().out.strip()
        token = decode_token(code)
        assert token is not None
        assert len(token) == TOKEN_BYTES

    def test_invites_are_distinct(self, database_url, capsys):
        main(["--database-url", database_url, "invite", "--ttl-hours", "1"])
        main(["--database-url", database_url, "invite", "--ttl-hours", "1"])

        first, second = capsys.readouterr().out.split()
        assert first != second

    def test_purge_sessions(self, database_url, capsys):
        main(["--database-url", database_url, "init-db"])
        main(["--database-url", database_url, "purge-sessions"])

        assert "Purged 0 expired sessions" in capsys.readouterr().out

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_invite_options(self):
        args = build_parser().parse_args(["invite", "--user-id", "3", "--ttl-hours", "48"])

        assert args.command == "invite"
        assert args.user_id == 3
        assert args.ttl_hours == 48
