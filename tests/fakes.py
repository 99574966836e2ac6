"""
Test doubles shared by the test suite.

FakeSite behaves like the new-api site (login, sign-in, self info, account
update) without a browser; FakeBrowser stands in for BrowserSession and
FakeLedger is an in-memory ledger with the same atomic balance semantics.
"""

from dataclasses import replace

from anyrouter_checkin.config.constants import QUOTA_PER_DOLLAR
from anyrouter_checkin.core.exceptions import InsufficientBalanceError, LedgerError
from anyrouter_checkin.ledger.base import AccountLedger
from anyrouter_checkin.models.results import (
    AcquisitionResult,
    BalanceChange,
    CheckinableAccounts,
    SiteResponse,
    UserSnapshot,
)
from anyrouter_checkin.sites.base import SiteAdapter

SESSION_COOKIE = {"name": "session", "value": "sess-token", "expires": 1_900_000_000}


def api_ok(data=None, message=""):
    return SiteResponse(ok=True, status=200, data={"success": True, "message": message, "data": data})


def api_rejected(message):
    return SiteResponse(ok=True, status=200, data={"success": False, "message": message})


def network_error(error="net::ERR_CONNECTION_RESET"):
    return SiteResponse(ok=False, status=None, error=error)


def site_user(username="alice", balance=0, used=0, user_id=42):
    return {
        "id": user_id,
        "username": username,
        "quota": balance * QUOTA_PER_DOLLAR,
        "used_quota": used * QUOTA_PER_DOLLAR,
        "aff_code": "AFF1",
    }


def acquisition(balance=0, used=0, checkin_success=True, message="签到成功", username="alice"):
    return AcquisitionResult(
        session="sess-token",
        api_user="42",
        snapshot=UserSnapshot(raw=site_user(username, balance, used)),
        session_expire_time=1_900_000_000_000,
        checkin_success=checkin_success,
        checkin_message=message,
    )


class FakeSite(SiteAdapter):
    """Scripted new-api site: one user, optional taken usernames"""

    def __init__(
        self,
        user=None,
        password="secret",
        cookie=SESSION_COOKIE,
        checkin_response=None,
        self_response=None,
        update_response=None,
        taken=(),
        fail_on=None,
    ):
        self.user = dict(user or site_user())
        self.password = password
        self.cookie = cookie
        self.checkin_response = checkin_response
        self.self_response = self_response
        self.update_response = update_response
        self.taken = set(taken)
        self.fail_on = fail_on
        self.logged_in = False
        self.calls = []

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if self.fail_on == name:
            raise RuntimeError(f"{name} crashed")

    async def open_home(self):
        self._record("open_home")

    async def login(self, username, password):
        self._record("login", username)
        if username != self.user["username"] or password != self.password:
            return api_rejected("用户名或密码错误，或用户已被封禁")
        self.logged_in = True
        return api_ok(dict(self.user))

    async def get_session_cookie(self):
        self._record("get_session_cookie")
        return self.cookie if self.logged_in else None

    async def checkin(self, api_user):
        self._record("checkin", api_user)
        return self.checkin_response or api_ok(message="签到成功")

    async def get_self(self, api_user):
        self._record("get_self", api_user)
        return self.self_response or api_ok(dict(self.user))

    async def update_self(self, api_user, fields):
        self._record("update_self", dict(fields))
        if self.update_response is not None:
            return self.update_response
        username = fields.get("username")
        if username and username in self.taken:
            return api_rejected(f"用户名已存在: {username}")
        if username:
            self.user["username"] = username
        if "password" in fields:
            self.password = fields["password"]
        return api_ok({})


class FakeBrowser:
    """Stands in for BrowserSession"""

    def __init__(self, fail_start=False):
        self.page = object()
        self.fail_start = fail_start
        self.started = False
        self.closed = False

    async def start(self):
        if self.fail_start:
            raise RuntimeError("Executable doesn't exist")
        self.started = True
        return self

    async def close(self):
        self.closed = True

    async def __aenter__(self):
        return await self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class FakeLedger(AccountLedger):
    """In-memory ledger; balance changes are check-and-apply in one step"""

    def __init__(self, accounts=(), reference_date="2024-01-02", query_time=1_704_124_800_000):
        self.accounts = {a.id: a for a in accounts}
        self.balances = {a.id: a.balance for a in accounts}
        self.reference_date = reference_date
        self.query_time = query_time
        self.field_updates = []
        self.increments = []
        self.error_count_increments = []
        self.password_changes = []
        self.fail_field_updates = False
        self.fail_statuses = set()
        self.closed = False

    async def _get_checkinable_accounts(self, limit):
        # listing is a snapshot; balances holds the authoritative value
        accounts = [replace(a) for a in self.accounts.values()]
        if limit:
            accounts = accounts[:limit]
        return CheckinableAccounts(
            accounts=accounts,
            total=len(self.accounts),
            query_time=self.query_time,
            reference_date=self.reference_date,
        )

    async def _increment_balance(self, account_id, amount):
        self.increments.append((account_id, amount))
        if account_id not in self.balances:
            raise LedgerError(f"账号不存在: {account_id}")
        balance = self.balances[account_id]
        if balance + amount < 0:
            raise InsufficientBalanceError(account_id, balance, amount)
        self.balances[account_id] = balance + amount
        return BalanceChange(account_id, balance, amount, balance + amount)

    async def _update_account_info(self, account_id, fields, increment_checkin_error_count):
        if self.fail_field_updates:
            raise LedgerError("账本服务不可用")
        self.field_updates.append((account_id, dict(fields)))
        if increment_checkin_error_count:
            self.error_count_increments.append(account_id)
        return 1

    async def _update_password_change(
        self, record_id, status, error_reason, new_username, account_info, increment_error_count
    ):
        if status in self.fail_statuses:
            raise LedgerError("账本服务不可用")
        self.password_changes.append({
            "record_id": record_id,
            "status": status,
            "error_reason": error_reason,
            "new_username": new_username,
            "account_info": account_info,
            "increment_error_count": increment_error_count,
        })

    async def close(self):
        self.closed = True
