"""Test cli — entry points, notification and logging setup."""

import json
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from telegram.error import TelegramError

from anyrouter_checkin import cli
from anyrouter_checkin.core.log import ColorFormatter, setup_logging
from anyrouter_checkin.models.results import CheckinOutcome, RotationResult
from anyrouter_checkin.services.notification import NotificationService

from fakes import FakeLedger


@pytest.fixture
def cli_env(settings):
    ledger = FakeLedger()
    with patch.object(cli, "get_settings", return_value=settings), \
            patch.object(cli, "setup_logging"), \
            patch.object(cli, "create_ledger", new=AsyncMock(return_value=ledger)):
        yield ledger


class TestCheckinCommand:

    def test_success(self, cli_env):
        with patch.object(cli.CheckinService, "run", new=AsyncMock(return_value=[])) as run:
            assert cli.main(["checkin", "--limit", "5", "--no-notify"]) == 0

        run.assert_awaited_once_with(5)
        assert cli_env.closed

    def test_ledger_write_errors_fail_the_run(self, cli_env):
        outcome = CheckinOutcome("a1", "alice", session_ok=True, checkin_ok=True, errors=["余额不足"])
        with patch.object(cli.CheckinService, "run", new=AsyncMock(return_value=[outcome])):
            assert cli.main(["checkin", "--no-notify"]) == 1

    def test_no_processed_account_succeeded(self, cli_env):
        outcomes = [
            CheckinOutcome("a1", "alice", message="未获取到会话"),
            CheckinOutcome("a2", "bob", skipped=True, message="今日已签到"),
        ]
        with patch.object(cli.CheckinService, "run", new=AsyncMock(return_value=outcomes)):
            assert cli.main(["checkin", "--no-notify"]) == 1

    def test_all_skipped_is_not_a_failure(self, cli_env):
        outcomes = [CheckinOutcome("a1", "alice", skipped=True, message="今日已签到")]
        with patch.object(cli.CheckinService, "run", new=AsyncMock(return_value=outcomes)):
            assert cli.main(["checkin", "--no-notify"]) == 0

    def test_partial_success(self, cli_env):
        outcomes = [
            CheckinOutcome("a1", "alice", session_ok=True, checkin_ok=True),
            CheckinOutcome("a2", "bob", message="未获取到会话"),
        ]
        with patch.object(cli.CheckinService, "run", new=AsyncMock(return_value=outcomes)):
            assert cli.main(["checkin", "--no-notify"]) == 0

    def test_invalid_limit(self, cli_env):
        assert cli.main(["checkin", "--limit", "0", "--no-notify"]) == 1


class TestChangePasswordCommand:

    def test_success(self, cli_env):
        payload = {"record_id": "r1", "old_username": "alice", "old_password": "secret", "new_username": "bob"}
        result = RotationResult(success=True, message="账密修改成功", user_info={"username": "bob"})

        with patch.object(cli.PasswordChangeService, "execute", new=AsyncMock(return_value=result)) as execute:
            assert cli.main(["change-password", json.dumps(payload)]) == 0

        request = execute.await_args.args[0]
        assert request.new_username == "bob"

    def test_failure(self, cli_env):
        payload = {"record_id": "r1", "old_username": "alice", "old_password": "secret", "new_password": "x"}
        result = RotationResult(success=False, message="登录失败", is_api_error=True)

        with patch.object(cli.PasswordChangeService, "execute", new=AsyncMock(return_value=result)):
            assert cli.main(["change-password", json.dumps(payload)]) == 1

    def test_completed_request_rejected(self, cli_env):
        payload = {"record_id": "r1", "old_username": "alice", "old_password": "secret", "new_username": "bob", "status": 2}

        assert cli.main(["change-password", json.dumps(payload)]) == 1
        assert cli_env.password_changes == []

    @pytest.mark.parametrize("raw", ["not json", json.dumps({"record_id": "r1"})])
    def test_invalid_request_has_no_side_effects(self, cli_env, raw):
        with patch.object(cli.PasswordChangeService, "execute", new=AsyncMock()) as execute:
            assert cli.main(["change-password", raw]) == 1

        execute.assert_not_called()
        assert cli_env.password_changes == []


class TestNotificationService:

    async def test_disabled_without_token(self, settings):
        assert await NotificationService(settings).send("hi") == 0

    async def test_sends_to_every_admin(self, settings):
        settings.bot_token = "123:abc"
        settings.admin_ids_str = "1, 2"
        bot = MagicMock()
        bot.send_message = AsyncMock(side_effect=[None, TelegramError("chat not found")])

        sent = await NotificationService(settings, bot=bot).send("summary")

        assert sent == 1
        assert [c.kwargs["chat_id"] for c in bot.send_message.await_args_list] == [1, 2]


class TestLogging:

    def test_setup_logging(self, settings):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(settings)

            assert root.level == logging.INFO
            assert isinstance(root.handlers[0].formatter, ColorFormatter)
            assert logging.getLogger("asyncpg").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_formatter_uses_reference_timezone(self):
        formatter = ColorFormatter(fmt="%(asctime)s %(levelname)s %(message)s", tz_name="Asia/Shanghai", use_color=False)
        record = logging.LogRecord("x", logging.WARNING, __file__, 1, "hello", None, None)
        record.created = 0  # 1970-01-01 08:00 in Shanghai

        assert formatter.format(record) == "1970-01-01 08:00:00 WARN  hello"
