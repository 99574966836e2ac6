"""Password change request data access layer"""

import json

from anyrouter_checkin.config.constants import PasswordChangeStatus
from anyrouter_checkin.repositories.base import BaseRepository


class PasswordChangeRepository(BaseRepository):
    """Password change request Repository"""

    async def update(
        self,
        record_id: int,
        current_ms: int,
        status: int | None = None,
        error_reason: str | None = None,
        new_username: str | None = None,
        account_info: dict | None = None,
        increment_error_count: bool = False,
    ) -> int:
        """
        Update a password change request

        - status=COMPLETED stamps complete_date
        - status=ERROR with increment_error_count bumps error_count atomically

        Returns:
            Number of updated rows
        """
        conn = await self._get_connection()
        try:
            result = await conn.execute(
                """
                UPDATE password_changes
                SET status = COALESCE($2, status),
                    error_reason = COALESCE($3, error_reason),
                    new_username = COALESCE($4, new_username),
                    account_info = COALESCE($5::jsonb, account_info),
                    error_count = error_count + $6,
                    complete_date = CASE WHEN $2 = $8 THEN $7 ELSE complete_date END,
                    update_date = $7
                WHERE id = $1
                """,
                record_id,
                int(status) if status is not None else None,
                error_reason,
                new_username,
                json.dumps(account_info) if account_info is not None else None,
                1 if increment_error_count and status == PasswordChangeStatus.ERROR else 0,
                current_ms,
                int(PasswordChangeStatus.COMPLETED),
            )
        finally:
            await self._release_connection(conn)

        return int(result.split()[-1]) if result else 0
