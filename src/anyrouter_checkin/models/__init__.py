"""数据模型模块"""

from anyrouter_checkin.models.account import Account
from anyrouter_checkin.models.password_change import PasswordChangeRequest
from anyrouter_checkin.models.results import (
    AcquisitionResult,
    BalanceChange,
    CheckinableAccounts,
    CheckinOutcome,
    RotationResult,
    SiteResponse,
    UserSnapshot,
)

__all__ = [
    "Account",
    "PasswordChangeRequest",
    "AcquisitionResult",
    "BalanceChange",
    "CheckinableAccounts",
    "CheckinOutcome",
    "RotationResult",
    "SiteResponse",
    "UserSnapshot",
]
