"""Test models — request validation and response helpers."""

import pytest

from anyrouter_checkin.config.constants import AccountType, PasswordChangeStatus
from anyrouter_checkin.core.exceptions import ValidationError
from anyrouter_checkin.models.account import Account
from anyrouter_checkin.models.password_change import PasswordChangeRequest
from anyrouter_checkin.models.results import SiteResponse, UserSnapshot


class TestPasswordChangeRequest:

    def test_valid_payload(self):
        request = PasswordChangeRequest.from_payload({
            "record_id": 12,
            "old_username": "alice",
            "old_password": "secret",
            "new_username": "bob",
            "error_count": 2,
        })

        assert request.record_id == "12"
        assert request.new_password is None
        assert request.error_count == 2
        assert request.status == PasswordChangeStatus.NOT_STARTED

    @pytest.mark.parametrize("missing", ["record_id", "old_username", "old_password"])
    def test_required_fields(self, missing):
        payload = {"record_id": "r1", "old_username": "alice", "old_password": "secret", "new_password": "x"}
        del payload[missing]

        with pytest.raises(ValidationError):
            PasswordChangeRequest.from_payload(payload)

    def test_needs_new_username_or_password(self):
        with pytest.raises(ValidationError):
            PasswordChangeRequest.from_payload({"record_id": "r1", "old_username": "a", "old_password": "b"})

    @pytest.mark.parametrize("error_count", [-1, "2", 1.0])
    def test_bad_error_count(self, error_count):
        with pytest.raises(ValidationError):
            PasswordChangeRequest.from_payload({
                "record_id": "r1", "old_username": "a", "old_password": "b",
                "new_password": "c", "error_count": error_count,
            })

    def test_bad_status(self):
        with pytest.raises(ValidationError):
            PasswordChangeRequest.from_payload({
                "record_id": "r1", "old_username": "a", "old_password": "b",
                "new_password": "c", "status": 9,
            })

    def test_not_a_dict(self):
        with pytest.raises(ValidationError):
            PasswordChangeRequest.from_payload(["r1"])


class TestAccount:

    def test_from_ledger_record(self):
        account = Account.from_record({
            "_id": "abc",
            "anyrouter_user_id": "u9",
            "username": "alice",
            "password": "secret",
            "account_type": 1,
            "balance": 12,
            "session": "s",
            "session_expire_time": 1000,
        })

        assert account.id == "abc"
        assert account.user_id == "u9"
        assert account.account_type == AccountType.LINUXDO
        assert account.balance == 12

    def test_session_expired(self):
        account = Account(id="a", user_id="u", username="n", password="p", session="s", session_expire_time=1000)

        assert not account.session_expired(999)
        assert account.session_expired(1001)
        assert Account(id="a", user_id="u", username="n", password="p").session_expired(0)


class TestSiteResponse:

    def test_from_evaluate_success(self):
        response = SiteResponse.from_evaluate({"ok": True, "status": 200, "data": {"success": True, "data": {"id": 1}}})

        assert response.api_success
        assert response.payload == {"id": 1}
        assert response.reached_server

    def test_network_failure(self):
        response = SiteResponse.from_evaluate({"ok": False, "status": None, "error": "Failed to fetch"})

        assert not response.api_success
        assert not response.reached_server
        assert response.message == "Failed to fetch"

    def test_http_error_message(self):
        response = SiteResponse.from_evaluate({"ok": False, "status": 502, "data": None})

        assert response.reached_server
        assert response.message == "HTTP 502"

    def test_application_rejection(self):
        response = SiteResponse.from_evaluate({"ok": True, "status": 200, "data": {"success": False, "message": "已签到"}})

        assert not response.api_success
        assert response.message == "已签到"
        assert response.payload == {}


def test_snapshot_balance_in_whole_dollars():
    snapshot = UserSnapshot(raw={"quota": 75_250_000, "used_quota": 999_999})

    assert snapshot.balance == 150
    assert snapshot.used == 1


def test_snapshot_without_site_quota():
    assert UserSnapshot(raw={"quota": 0}).has_quota
    assert not UserSnapshot(raw={"id": 42, "username": "alice"}).has_quota
    # login bodies may carry a zero-value quota that means nothing
    assert not UserSnapshot(raw={"id": 42, "quota": 0}, from_login=True).has_quota
