"""数据访问层模块（postgres 账本后端）"""

from anyrouter_checkin.repositories.account_repository import AccountRepository
from anyrouter_checkin.repositories.base import BaseRepository
from anyrouter_checkin.repositories.password_change_repository import PasswordChangeRepository

__all__ = [
    "BaseRepository",
    "AccountRepository",
    "PasswordChangeRepository",
]
