"""
gatekeeperctl commands: exit codes and engine cleanup.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from gatekeeper.cli import app
from gatekeeper.repositories.role import RoleRepository
from gatekeeper.repositories.user import UserRepository

runner = CliRunner()


@pytest.fixture
def fake_engine():
    engine = MagicMock()
    engine.dispose = AsyncMock()
    with patch("gatekeeper.db.session.engine", engine), patch("gatekeeper.db.session.SessionLocal", MagicMock()):
        yield engine


@pytest.mark.unit
class TestGrantRole:

    def test_unknown_user_exits_1_and_still_disposes_the_engine(self, fake_engine):
        with patch.object(UserRepository, "get_by_login", AsyncMock(return_value=None)), \
                patch.object(RoleRepository, "get_by_name", AsyncMock(return_value=None)):
            result = runner.invoke(app, ["users", "grant-role", "ghost", "Editors"])

        assert result.exit_code == 1
        fake_engine.dispose.assert_awaited_once()


@pytest.mark.unit
class TestCheck:

    def test_denied_check_exits_1(self, fake_engine):
        with patch.object(UserRepository, "get_by_login", AsyncMock(return_value=None)):
            result = runner.invoke(app, ["check", "ghost", "manage_users"])

        assert result.exit_code == 1
        assert "lacks 'manage_users'" in result.output
        fake_engine.dispose.assert_awaited_once()
