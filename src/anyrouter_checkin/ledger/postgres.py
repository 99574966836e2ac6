"""自建账本（PostgreSQL）"""

import logging

from anyrouter_checkin.config.settings import Settings, get_settings
from anyrouter_checkin.core.database import check_and_init_database, close_pool
from anyrouter_checkin.core.exceptions import InsufficientBalanceError, LedgerError, ValidationError
from anyrouter_checkin.core.timezone import day_start_ms, get_timezone, now_ms, reference_date
from anyrouter_checkin.ledger.base import AccountLedger
from anyrouter_checkin.models.results import BalanceChange, CheckinableAccounts
from anyrouter_checkin.repositories.account_repository import AccountRepository
from anyrouter_checkin.repositories.password_change_repository import PasswordChangeRepository

logger = logging.getLogger(__name__)


def _record_id(value: str, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name}必须为数字: {value}") from e


class PostgresLedger(AccountLedger):
    """PostgreSQL 账本，与远程账本提供相同的原子语义"""

    def __init__(
        self,
        settings: Settings | None = None,
        account_repo: AccountRepository | None = None,
        password_change_repo: PasswordChangeRepository | None = None,
    ):
        self.settings = settings or get_settings()
        if not self.settings.database_url and account_repo is None:
            raise LedgerError("未配置数据库连接 DATABASE_URL")
        self.account_repo = account_repo or AccountRepository()
        self.password_change_repo = password_change_repo or PasswordChangeRepository()

    async def init(self) -> None:
        """检查并初始化数据库表"""
        await check_and_init_database()

    async def close(self) -> None:
        await close_pool()

    async def _get_checkinable_accounts(self, limit: int | None) -> CheckinableAccounts:
        tz = get_timezone(self.settings.timezone)
        current = now_ms()
        accounts, total = await self.account_repo.get_checkinable(
            current_ms=current,
            day_start=day_start_ms(current, tz),
            limit=limit,
        )
        return CheckinableAccounts(
            accounts=accounts,
            total=total,
            query_time=current,
            reference_date=reference_date(current, tz),
        )

    async def _increment_balance(self, account_id: str, amount: int) -> BalanceChange:
        record_id = _record_id(account_id, "账号ID")
        result = await self.account_repo.increment_balance(record_id, amount, now_ms())

        if result is None:
            balance = await self.account_repo.get_balance(record_id)
            if balance is None:
                raise LedgerError(f"账号不存在: {account_id}")
            logger.warning(f"余额不足: 账号 {account_id} 余额={balance} 变动={amount}")
            raise InsufficientBalanceError(account_id, balance, amount)

        old_balance, new_balance = result
        logger.debug(f"余额变动: 账号 {account_id} {old_balance} → {new_balance}")
        return BalanceChange(
            account_id=account_id,
            old_balance=old_balance,
            amount=amount,
            new_balance=new_balance,
        )

    async def _update_account_info(
        self, account_id: str, fields: dict, increment_checkin_error_count: bool
    ) -> int:
        return await self.account_repo.update_fields(
            _record_id(account_id, "账号ID"),
            fields,
            now_ms(),
            increment_checkin_error_count=increment_checkin_error_count,
        )

    async def _update_password_change(
        self,
        record_id: str,
        status: int | None,
        error_reason: str | None,
        new_username: str | None,
        account_info: dict | None,
        increment_error_count: bool | None,
    ) -> None:
        updated = await self.password_change_repo.update(
            _record_id(record_id, "申请记录ID"),
            now_ms(),
            status=status,
            error_reason=error_reason,
            new_username=new_username,
            account_info=account_info,
            increment_error_count=bool(increment_error_count),
        )
        if not updated:
            raise LedgerError(f"改账密申请不存在: {record_id}")
