"""账本接口基类

账本是账号字段和余额的权威记录。余额只能通过 increment_balance 原子增减，
调用方从不计算绝对余额后回写。
"""

import logging
from abc import ABC, abstractmethod

from anyrouter_checkin.models.results import BalanceChange, CheckinableAccounts
from anyrouter_checkin.utils.validator import (
    clean_update_fields,
    validate_amount,
    validate_limit,
    validate_password_change_update,
)

logger = logging.getLogger(__name__)


class AccountLedger(ABC):
    """账本基类：公共方法负责参数校验，子类实现具体存储"""

    async def get_checkinable_accounts(self, limit: int | None = None) -> CheckinableAccounts:
        """
        获取可签到的账号

        条件：未售出；session 不存在或已过期；所属用户已激活且会员未过期；
        参考时区的今天尚未签到。

        Args:
            limit: 返回数量限制（正整数，None 表示不限制）

        Raises:
            ValidationError: limit 不是正整数
            LedgerError: 账本调用失败
        """
        return await self._get_checkinable_accounts(validate_limit(limit))

    async def increment_balance(self, account_id: str, amount: int) -> BalanceChange:
        """
        原子增减余额

        Args:
            account_id: 账号记录 ID
            amount: 整数变动额度，正数增加，负数扣减

        Raises:
            ValidationError: 参数无效
            InsufficientBalanceError: 扣减额度超过当前余额（余额不变）
            LedgerError: 账本调用失败
        """
        return await self._increment_balance(account_id, validate_amount(account_id, amount))

    async def update_account_info(
        self,
        account_id: str,
        fields: dict,
        increment_checkin_error_count: bool = False,
    ) -> int:
        """
        部分更新账号字段，返回更新的记录数

        balance 字段会被剔除，余额只能走 increment_balance。
        increment_checkin_error_count 为真时，能原地自增的账本忽略 fields 中的
        checkin_error_count 并在当前值上加一；只接受绝对值的账本按 fields 写入。
        """
        return await self._update_account_info(
            account_id,
            clean_update_fields(account_id, fields),
            increment_checkin_error_count,
        )

    async def update_password_change(
        self,
        record_id: str,
        status: int | None = None,
        error_reason: str | None = None,
        new_username: str | None = None,
        account_info: dict | None = None,
        increment_error_count: bool | None = None,
    ) -> None:
        """
        更新改账密申请

        status=2 时账本记录完成时间；status=3 且 increment_error_count 为真时错误次数加一。
        """
        error_reason = validate_password_change_update(record_id, status, error_reason)
        await self._update_password_change(
            record_id,
            status=status,
            error_reason=error_reason,
            new_username=new_username,
            account_info=account_info,
            increment_error_count=increment_error_count,
        )

    async def close(self) -> None:
        """释放资源"""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @abstractmethod
    async def _get_checkinable_accounts(self, limit: int | None) -> CheckinableAccounts:
        pass

    @abstractmethod
    async def _increment_balance(self, account_id: str, amount: int) -> BalanceChange:
        pass

    @abstractmethod
    async def _update_account_info(
        self, account_id: str, fields: dict, increment_checkin_error_count: bool
    ) -> int:
        pass

    @abstractmethod
    async def _update_password_change(
        self,
        record_id: str,
        status: int | None,
        error_reason: str | None,
        new_username: str | None,
        account_info: dict | None,
        increment_error_count: bool | None,
    ) -> None:
        pass
