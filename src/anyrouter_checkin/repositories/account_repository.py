"""Account data access layer"""

import json
from typing import List

from anyrouter_checkin.config.constants import AccountType, CheckinMode
from anyrouter_checkin.core.encryption import PasswordCipher
from anyrouter_checkin.models.account import Account
from anyrouter_checkin.repositories.base import BaseRepository

# 允许通过字段更新写入的列（balance 不在其中，只能原子增减）
UPDATABLE_COLUMNS = (
    "username",
    "session",
    "session_expire_time",
    "checkin_date",
    "checkin_error_count",
    "checkin_mode",
    "account_type",
    "account_id",
    "aff_code",
    "used",
    "agentrouter_balance",
    "is_sold",
    "sell_date",
    "can_sell",
    "workflow_url",
    "cache_key",
    "notes",
)


class AccountRepository(BaseRepository):
    """Account Repository"""

    def __init__(self, cipher: PasswordCipher | None = None):
        super().__init__()
        self._cipher = cipher

    @property
    def cipher(self) -> PasswordCipher:
        if self._cipher is None:
            self._cipher = PasswordCipher()
        return self._cipher

    async def get_checkinable(
        self,
        current_ms: int,
        day_start: int,
        limit: int | None = None,
    ) -> tuple[List[Account], int]:
        """
        查询可签到账号

        Args:
            current_ms: 当前毫秒时间戳
            day_start: 参考时区今天 0 点的毫秒时间戳
            limit: 返回数量限制

        Returns:
            (账号列表, 符合条件的总数)
        """
        conn = await self._get_connection()
        try:
            records = await conn.fetch(
                """
                SELECT a.*,
                       u.username AS user_username,
                       u.notice_email,
                       u.member_expire_time,
                       COUNT(*) OVER () AS total_count
                FROM accounts a
                JOIN users u ON u.id = a.user_id
                WHERE a.is_sold = FALSE
                  AND (a.session IS NULL OR a.session = ''
                       OR a.session_expire_time IS NULL OR a.session_expire_time < $1)
                  AND u.is_active = TRUE
                  AND u.member_expire_time > $1
                  AND (a.checkin_date IS NULL OR a.checkin_date < $2)
                ORDER BY a.id
                LIMIT $3
                """,
                current_ms,
                day_start,
                limit,
            )
        finally:
            await self._release_connection(conn)

        total = records[0]["total_count"] if records else 0
        return [self._to_model(record) for record in records], total

    async def increment_balance(self, account_id: int, amount: int, current_ms: int):
        """
        原子增减余额

        单条条件 UPDATE 完成读-改-写，余额不足时不更新任何行。

        Returns:
            (old_balance, new_balance)，余额不足或账号不存在时返回 None
        """
        conn = await self._get_connection()
        try:
            record = await conn.fetchrow(
                """
                UPDATE accounts
                SET balance = balance + $2, update_date = $3
                WHERE id = $1 AND balance + $2 >= 0
                RETURNING balance - $2 AS old_balance, balance AS new_balance
                """,
                account_id,
                amount,
                current_ms,
            )
        finally:
            await self._release_connection(conn)

        if not record:
            return None
        return record["old_balance"], record["new_balance"]

    async def get_balance(self, account_id: int) -> int | None:
        """获取当前余额，账号不存在返回 None"""
        conn = await self._get_connection()
        try:
            return await conn.fetchval("SELECT balance FROM accounts WHERE id = $1", account_id)
        finally:
            await self._release_connection(conn)

    async def update_fields(
        self,
        account_id: int,
        fields: dict,
        current_ms: int,
        increment_checkin_error_count: bool = False,
    ) -> int:
        """部分更新账号字段，返回更新的记录数"""
        assignments = []
        values = []

        if increment_checkin_error_count:
            assignments.append("checkin_error_count = checkin_error_count + 1")

        for name, value in fields.items():
            if name == "checkin_error_count" and increment_checkin_error_count:
                continue
            if name == "password":
                assignments.append(f"encrypted_pass = ${len(values) + 1}")
                values.append(self.cipher.encrypt(value))
            elif name == "tokens":
                assignments.append(f"tokens = ${len(values) + 1}::jsonb")
                values.append(json.dumps(value))
            elif name in UPDATABLE_COLUMNS:
                assignments.append(f"{name} = ${len(values) + 1}")
                values.append(value)

        if not assignments:
            return 0

        assignments.append(f"update_date = ${len(values) + 1}")
        values.append(current_ms)
        values.append(account_id)

        conn = await self._get_connection()
        try:
            result = await conn.execute(
                f"UPDATE accounts SET {', '.join(assignments)} WHERE id = ${len(values)}",
                *values,
            )
        finally:
            await self._release_connection(conn)

        return int(result.split()[-1]) if result else 0

    def _to_model(self, record) -> Account:
        """数据库记录转换为模型"""
        tokens = record["tokens"]
        if isinstance(tokens, str):
            tokens = json.loads(tokens)

        return Account(
            id=str(record["id"]),
            user_id=str(record["user_id"]),
            username=record["username"],
            password=self.cipher.decrypt(record["encrypted_pass"]),
            account_type=AccountType(record["account_type"]),
            checkin_mode=CheckinMode(record["checkin_mode"]),
            session=record["session"] or "",
            session_expire_time=record["session_expire_time"],
            checkin_date=record["checkin_date"],
            account_id=record["account_id"] or "",
            aff_code=record["aff_code"] or "",
            balance=record["balance"],
            used=record["used"],
            is_sold=record["is_sold"],
            can_sell=record["can_sell"],
            checkin_error_count=record["checkin_error_count"],
            user_username=record["user_username"] or "",
            notice_email=record["notice_email"] or "",
            member_expire_time=record["member_expire_time"],
            tokens=tokens or [],
        )
