"""Test password_change — request state machine and conflict retry."""

import re

import pytest

from anyrouter_checkin.config.constants import PasswordChangeStatus
from anyrouter_checkin.core.exceptions import LedgerError, ValidationError
from anyrouter_checkin.models.password_change import PasswordChangeRequest
from anyrouter_checkin.services.password_change import PasswordChangeService
from anyrouter_checkin.services.password_rotator import PasswordRotator

from fakes import FakeBrowser, FakeLedger, FakeSite, api_rejected


def make_request(**overrides):
    payload = {
        "record_id": "r1",
        "old_username": "alice",
        "old_password": "secret",
        "new_username": "bob",
        "new_password": "n3w",
        "error_count": 0,
    }
    payload.update(overrides)
    return PasswordChangeRequest.from_payload(payload)


@pytest.fixture
def service(settings, ledger, browser_factory, adapter_factory):
    def rotator_factory(settings=None):
        return PasswordRotator(settings, browser_factory=browser_factory, adapter_factory=adapter_factory)

    return PasswordChangeService(ledger, rotator_factory=rotator_factory, settings=settings)


def update_attempts(site):
    return [call[1] for call in site.calls if call[0] == "update_self"]


class TestStateMachine:

    async def test_success_reports_in_progress_then_completed(self, service, ledger, browser):
        result = await service.execute(make_request())

        assert result.success is True
        statuses = [c["status"] for c in ledger.password_changes]
        assert statuses == [PasswordChangeStatus.IN_PROGRESS, PasswordChangeStatus.COMPLETED]

        completed = ledger.password_changes[-1]
        assert completed["new_username"] == "bob"
        assert completed["account_info"]["username"] == "bob"
        assert browser.closed

    async def test_api_rejection_increments_error_count(self, service, ledger):
        result = await service.execute(make_request(old_password="wrong"))

        assert result.success is False
        final = ledger.password_changes[-1]
        assert final["status"] == PasswordChangeStatus.ERROR
        assert final["increment_error_count"] is True
        assert "用户名或密码错误" in final["error_reason"]

    async def test_browser_init_failure_does_not_increment(self, settings, ledger, adapter_factory):
        def rotator_factory(settings=None):
            return PasswordRotator(
                settings,
                browser_factory=lambda settings=None: FakeBrowser(fail_start=True),
                adapter_factory=adapter_factory,
            )

        service = PasswordChangeService(ledger, rotator_factory=rotator_factory, settings=settings)
        result = await service.execute(make_request())

        assert result.success is False
        final = ledger.password_changes[-1]
        assert final["status"] == PasswordChangeStatus.ERROR
        assert final["error_reason"].startswith("浏览器初始化失败: ")
        assert final["increment_error_count"] is False

    async def test_unexpected_exception_reported_and_cleaned_up(self, settings, ledger, browser):
        class BrokenRotator(PasswordRotator):
            async def change_password(self, *args, **kwargs):
                raise RuntimeError("target closed")

        def rotator_factory(settings=None):
            return BrokenRotator(
                settings,
                browser_factory=lambda settings=None: browser,
                adapter_factory=lambda page, settings=None: FakeSite(),
            )

        service = PasswordChangeService(ledger, rotator_factory=rotator_factory, settings=settings)
        result = await service.execute(make_request())

        assert result.success is False
        final = ledger.password_changes[-1]
        assert final["error_reason"] == "执行异常: target closed"
        assert final["increment_error_count"] is False
        assert browser.closed

    async def test_in_progress_report_failure_is_not_fatal(self, service, ledger):
        ledger.fail_statuses = {PasswordChangeStatus.IN_PROGRESS}

        result = await service.execute(make_request())

        assert result.success is True
        assert ledger.password_changes[-1]["status"] == PasswordChangeStatus.COMPLETED

    async def test_completed_request_is_not_rerun(self, service, ledger, site, browser):
        with pytest.raises(ValidationError):
            await service.execute(make_request(status=int(PasswordChangeStatus.COMPLETED)))

        assert ledger.password_changes == []
        assert site.calls == []
        assert not browser.started

    async def test_errored_request_is_executed_again(self, service, ledger):
        result = await service.execute(make_request(status=int(PasswordChangeStatus.ERROR), error_count=1))

        assert result.success is True
        statuses = [c["status"] for c in ledger.password_changes]
        assert statuses == [PasswordChangeStatus.IN_PROGRESS, PasswordChangeStatus.COMPLETED]

    async def test_final_report_failure_surfaces(self, service, ledger, browser):
        ledger.fail_statuses = {PasswordChangeStatus.COMPLETED}

        with pytest.raises(LedgerError):
            await service.execute(make_request())
        assert browser.closed


class TestConflictRetry:

    async def test_retry_with_suffix_at_threshold(self, service, ledger, site):
        site.taken = {"bob"}

        result = await service.execute(make_request(error_count=2))

        assert result.success is True
        attempts = update_attempts(site)
        assert len(attempts) == 2
        assert attempts[0]["username"] == "bob"
        assert re.fullmatch(r"bob[a-z0-9]{2}", attempts[1]["username"])

        completed = ledger.password_changes[-1]
        assert completed["status"] == PasswordChangeStatus.COMPLETED
        # uploaded name is the one the site reports after the change
        assert completed["new_username"] == site.user["username"]
        assert completed["new_username"] == attempts[1]["username"]

    async def test_no_retry_below_threshold(self, service, ledger, site):
        site.taken = {"bob"}

        result = await service.execute(make_request(error_count=1))

        assert result.success is False
        assert len(update_attempts(site)) == 1
        final = ledger.password_changes[-1]
        assert final["status"] == PasswordChangeStatus.ERROR
        assert final["increment_error_count"] is True

    async def test_no_retry_above_threshold(self, service, site):
        site.taken = {"bob"}

        await service.execute(make_request(error_count=3))

        assert len(update_attempts(site)) == 1

    async def test_second_conflict_is_terminal(self, service, ledger, site):
        class AlwaysTaken(set):
            def __contains__(self, item):
                return True

        site.taken = AlwaysTaken()

        result = await service.execute(make_request(error_count=2))

        assert result.success is False
        assert len(update_attempts(site)) == 2
        final = ledger.password_changes[-1]
        assert final["status"] == PasswordChangeStatus.ERROR
        assert "用户名已存在" in final["error_reason"]

    async def test_no_retry_for_other_errors(self, service, site):
        result = await service.execute(make_request(error_count=2, old_password="wrong"))

        assert result.success is False
        assert update_attempts(site) == []
        assert [c for c in site.calls if c[0] == "login"] == [("login", "alice")]

    async def test_no_retry_without_new_username(self, service, site):
        site.update_response = api_rejected("用户名已存在")

        result = await service.execute(make_request(error_count=2, new_username=None))

        assert result.success is False
        assert len(update_attempts(site)) == 1

    async def test_threshold_is_configurable(self, settings, browser_factory, adapter_factory, site):
        settings.conflict_retry_error_count = 5
        site.taken = {"bob"}

        def rotator_factory(settings=None):
            return PasswordRotator(settings, browser_factory=browser_factory, adapter_factory=adapter_factory)

        service = PasswordChangeService(FakeLedger(), rotator_factory=rotator_factory, settings=settings)

        await service.execute(make_request(error_count=5))

        assert len(update_attempts(site)) == 2
