"""流程结果数据模型"""

from dataclasses import dataclass, field
from typing import Any

from anyrouter_checkin.config.constants import QUOTA_PER_DOLLAR


@dataclass
class SiteResponse:
    """页面内接口调用结果"""

    ok: bool  # 网络层成功且 HTTP 2xx
    status: int | None = None
    data: Any = None
    error: str | None = None

    @classmethod
    def from_evaluate(cls, raw: dict | None) -> "SiteResponse":
        raw = raw or {}
        return cls(
            ok=bool(raw.get("ok")),
            status=raw.get("status"),
            data=raw.get("data"),
            error=raw.get("error"),
        )

    @property
    def reached_server(self) -> bool:
        """请求是否得到了站点的应答"""
        return self.status is not None

    @property
    def api_success(self) -> bool:
        """站点应用层是否返回成功"""
        return self.ok and isinstance(self.data, dict) and bool(self.data.get("success"))

    @property
    def payload(self) -> dict:
        if isinstance(self.data, dict) and isinstance(self.data.get("data"), dict):
            return self.data["data"]
        return {}

    @property
    def message(self) -> str:
        if isinstance(self.data, dict) and self.data.get("message"):
            return str(self.data["message"])
        if self.error:
            return self.error
        if self.status is not None:
            return f"HTTP {self.status}"
        return "未知原因"


@dataclass
class UserSnapshot:
    """站点用户信息快照"""

    raw: dict
    from_login: bool = False  # 登录响应兜底，不含真实额度

    @property
    def id(self) -> str:
        return str(self.raw.get("id") or "")

    @property
    def username(self) -> str:
        return self.raw.get("username") or ""

    @property
    def aff_code(self) -> str:
        return self.raw.get("aff_code") or ""

    @property
    def has_quota(self) -> bool:
        """快照是否带有站点报告的额度"""
        return not self.from_login and "quota" in self.raw

    @property
    def quota(self) -> int:
        return int(self.raw.get("quota") or 0)

    @property
    def used_quota(self) -> int:
        return int(self.raw.get("used_quota") or 0)

    @property
    def balance(self) -> int:
        """余额（整数美元）"""
        return self.quota // QUOTA_PER_DOLLAR

    @property
    def used(self) -> int:
        """已使用额度（整数美元）"""
        return self.used_quota // QUOTA_PER_DOLLAR


@dataclass
class AcquisitionResult:
    """会话获取结果

    会话获取与签到是两个独立结果：会话获取成功时签到仍可能失败。
    """

    session: str
    api_user: str
    snapshot: UserSnapshot
    session_expire_time: int | None = None
    checkin_success: bool = False
    checkin_message: str = ""


@dataclass
class RotationResult:
    """改账密结果"""

    success: bool
    message: str
    is_api_error: bool = False
    user_info: dict | None = None


@dataclass
class CheckinableAccounts:
    """可签到账号查询结果"""

    accounts: list
    total: int
    query_time: int
    reference_date: str


@dataclass
class BalanceChange:
    """余额原子变动结果"""

    account_id: str
    old_balance: int
    amount: int
    new_balance: int


@dataclass
class CheckinOutcome:
    """单个账号的签到处理结果"""

    account_id: str
    username: str
    session_ok: bool = False
    checkin_ok: bool = False
    skipped: bool = False
    message: str = ""
    balance_change: BalanceChange | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.session_ok and self.checkin_ok and not self.errors
