"""远程账本服务客户端"""

import logging

from curl_cffi.requests import AsyncSession, errors

from anyrouter_checkin.config.constants import LEDGER_API_PREFIX
from anyrouter_checkin.config.settings import Settings, get_settings
from anyrouter_checkin.core.exceptions import InsufficientBalanceError, LedgerError
from anyrouter_checkin.core.timezone import now_ms, reference_date
from anyrouter_checkin.ledger.base import AccountLedger
from anyrouter_checkin.models.account import Account
from anyrouter_checkin.models.results import BalanceChange, CheckinableAccounts

logger = logging.getLogger(__name__)

INSUFFICIENT_BALANCE_SIGNATURES = ("余额不足", "insufficient")


class RemoteLedger(AccountLedger):
    """远程账本服务（POST {api}/anyrouter2/<接口名>，响应 {success, data, error}）"""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        if not self.settings.ledger_api_url:
            raise LedgerError("未配置账本服务地址 LEDGER_API_URL")
        self.base_url = self.settings.ledger_api_url.rstrip("/")

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.ledger_api_key:
            headers["Authorization"] = f"Bearer {self.settings.ledger_api_key}"
        return headers

    async def _post(self, name: str, body: dict) -> dict:
        """调用账本接口，返回 data 字段"""
        url = f"{self.base_url}{LEDGER_API_PREFIX}/{name}"

        async with AsyncSession() as session:
            try:
                response = await session.post(
                    url,
                    json=body,
                    headers=self._headers(),
                    timeout=self.settings.ledger_timeout,
                )
            except errors.RequestsError as e:
                logger.error(f"账本请求失败: {name} - {e}")
                raise LedgerError(f"账本请求失败: {e}") from e

        if response.status_code != 200:
            logger.error(f"账本请求失败: {name} - HTTP {response.status_code}")
            raise LedgerError(f"账本请求失败: HTTP {response.status_code}")

        try:
            result = response.json()
        except ValueError as e:
            raise LedgerError(f"账本响应非 JSON 格式: {response.text[:100]}") from e

        if not isinstance(result, dict) or not result.get("success"):
            error = (result.get("error") if isinstance(result, dict) else None) or "未知错误"
            raise LedgerError(str(error), result if isinstance(result, dict) else None)

        return result.get("data") or {}

    async def _get_checkinable_accounts(self, limit: int | None) -> CheckinableAccounts:
        body = {"limit": limit} if limit else {}
        data = await self._post("getCheckinableAccounts", body)

        accounts = [Account.from_record(record) for record in data.get("accounts") or []]
        query_time = data.get("query_time") or now_ms()
        return CheckinableAccounts(
            accounts=accounts,
            total=int(data.get("total", len(accounts))),
            query_time=query_time,
            reference_date=data.get("beijing_date") or reference_date(query_time),
        )

    async def _increment_balance(self, account_id: str, amount: int) -> BalanceChange:
        try:
            data = await self._post("incrementBalance", {"_id": account_id, "amount": amount})
        except LedgerError as e:
            if any(s in e.message.lower() for s in INSUFFICIENT_BALANCE_SIGNATURES):
                detail = e.response.get("data") or {}
                raise InsufficientBalanceError(
                    account_id,
                    detail.get("balance", detail.get("old_balance")),
                    amount,
                    e.response,
                ) from e
            raise

        return BalanceChange(
            account_id=str(data.get("_id", account_id)),
            old_balance=data["old_balance"],
            amount=data.get("amount", amount),
            new_balance=data["new_balance"],
        )

    async def _update_account_info(
        self, account_id: str, fields: dict, increment_checkin_error_count: bool
    ) -> int:
        # updateAccountInfo 只接受绝对值，checkin_error_count 按调用方给出的值写入
        data = await self._post("updateAccountInfo", {"_id": account_id, "updateData": fields})
        return int(data.get("updated", 0))

    async def _update_password_change(
        self,
        record_id: str,
        status: int | None,
        error_reason: str | None,
        new_username: str | None,
        account_info: dict | None,
        increment_error_count: bool | None,
    ) -> None:
        body = {"record_id": record_id}
        if status is not None:
            body["status"] = int(status)
        if error_reason is not None:
            body["error_reason"] = error_reason
        if new_username is not None:
            body["new_username"] = new_username
        if account_info is not None:
            body["account_info"] = account_info
        if increment_error_count is not None:
            body["increment_error_count"] = increment_error_count

        await self._post("updatePasswordChange", body)
