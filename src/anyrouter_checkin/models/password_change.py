"""改账密申请数据模型"""

from dataclasses import dataclass

from anyrouter_checkin.config.constants import PasswordChangeStatus
from anyrouter_checkin.core.exceptions import ValidationError

REQUIRED_FIELDS = ("record_id", "old_username", "old_password")


@dataclass
class PasswordChangeRequest:
    """改账密申请模型"""

    record_id: str
    old_username: str
    old_password: str
    new_username: str | None = None
    new_password: str | None = None
    status: PasswordChangeStatus = PasswordChangeStatus.NOT_STARTED
    error_count: int = 0
    completed_at: int | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "PasswordChangeRequest":
        """
        从申请数据构建模型

        Raises:
            ValidationError: 缺少必需字段，或新用户名和新密码都未提供
        """
        if not isinstance(payload, dict):
            raise ValidationError("申请数据必须是 JSON 对象")

        for name in REQUIRED_FIELDS:
            if not payload.get(name):
                raise ValidationError(f"缺少必需字段: {name}")

        new_username = payload.get("new_username") or None
        new_password = payload.get("new_password") or None
        if not new_username and not new_password:
            raise ValidationError("new_username 和 new_password 至少需要提供一个")

        error_count = payload.get("error_count") or 0
        if isinstance(error_count, bool) or not isinstance(error_count, int) or error_count < 0:
            raise ValidationError("error_count 必须为非负整数")

        try:
            status = PasswordChangeStatus(payload.get("status") or 0)
        except ValueError as e:
            raise ValidationError(f"无效的申请状态: {payload.get('status')}") from e

        return cls(
            record_id=str(payload["record_id"]),
            old_username=payload["old_username"],
            old_password=payload["old_password"],
            new_username=new_username,
            new_password=new_password,
            status=status,
            error_count=error_count,
            completed_at=payload.get("complete_date"),
        )

