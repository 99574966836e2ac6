"""验证工具"""

import random

from anyrouter_checkin.config.constants import (
    DUPLICATE_USERNAME_SIGNATURES,
    ERROR_REASON_MAX_LENGTH,
    PROTECTED_ACCOUNT_FIELDS,
    USERNAME_SUFFIX_ALPHABET,
    PasswordChangeStatus,
)
from anyrouter_checkin.core.exceptions import ValidationError


def validate_limit(limit) -> int | None:
    """返回数量限制必须为正整数或 None"""
    if limit is None:
        return None
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationError("返回数量限制必须为正整数")
    return limit


def validate_amount(account_id: str, amount) -> int:
    """余额变动额度必须为整数"""
    if not account_id:
        raise ValidationError("账号ID不能为空")
    if amount is None:
        raise ValidationError("变动额度不能为空")
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError("变动额度必须为整数")
    return amount


def clean_update_fields(account_id: str, fields: dict) -> dict:
    """
    清理账号字段更新数据

    余额只能通过原子增减修改，因此 balance 不允许直接写入。

    Raises:
        ValidationError: 账号 ID 或更新数据为空
    """
    if not account_id:
        raise ValidationError("账号ID不能为空")
    if not fields:
        raise ValidationError("更新数据不能为空")

    cleaned = {k: v for k, v in fields.items() if k not in PROTECTED_ACCOUNT_FIELDS}
    if not cleaned:
        raise ValidationError("更新数据不能为空")
    return cleaned


def validate_password_change_update(record_id: str, status, error_reason: str | None) -> str | None:
    """校验改账密申请更新参数，返回截断后的错误原因"""
    if not record_id:
        raise ValidationError("申请记录ID不能为空")
    if status is not None and status not in list(PasswordChangeStatus):
        raise ValidationError("申请状态必须为0（未开始）、1（进行中）、2（已完成）或3（错误）")
    return truncate_reason(error_reason)


def truncate_reason(reason: str | None) -> str | None:
    """错误原因截断到账本允许的长度"""
    if reason is None:
        return None
    if len(reason) > ERROR_REASON_MAX_LENGTH:
        return reason[: ERROR_REASON_MAX_LENGTH - 3] + "..."
    return reason


def is_duplicate_username_error(message: str | None) -> bool:
    """错误信息是否为用户名重复"""
    if not message:
        return False
    lowered = message.lower()
    return any(signature in lowered for signature in DUPLICATE_USERNAME_SIGNATURES)


def make_username_candidate(username: str, suffix_length: int = 2) -> str:
    """在用户名后追加随机小写字母/数字，生成冲突重试候选"""
    suffix = "".join(random.choices(USERNAME_SUFFIX_ALPHABET, k=suffix_length))
    return f"{username}{suffix}"
