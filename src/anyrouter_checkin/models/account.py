"""账号数据模型"""

from dataclasses import dataclass, field

from anyrouter_checkin.config.constants import AccountType, CheckinMode


@dataclass
class Account:
    """账号模型（账本记录）"""

    id: str
    user_id: str
    username: str
    password: str
    account_type: AccountType = AccountType.PASSWORD
    checkin_mode: CheckinMode = CheckinMode.TARGET_ONLY
    session: str = ""
    session_expire_time: int | None = None  # 毫秒时间戳
    checkin_date: int | None = None  # 毫秒时间戳
    account_id: str = ""  # 站点用户 ID
    aff_code: str = ""
    balance: int = 0
    used: int = 0
    is_sold: bool = False
    can_sell: bool = False
    checkin_error_count: int = 0
    user_username: str = ""
    notice_email: str = ""
    member_expire_time: int | None = None
    tokens: list = field(default_factory=list)

    def session_expired(self, now_ms: int) -> bool:
        """会话不存在或已过期"""
        if not self.session:
            return True
        return self.session_expire_time is None or self.session_expire_time < now_ms

    @classmethod
    def from_record(cls, record: dict) -> "Account":
        """账本记录转换为模型"""
        return cls(
            id=str(record["_id"]),
            user_id=str(record.get("user_id") or record.get("anyrouter_user_id") or ""),
            username=record.get("username") or "",
            password=record.get("password") or "",
            account_type=AccountType(record.get("account_type") or 0),
            checkin_mode=CheckinMode(record.get("checkin_mode") or CheckinMode.TARGET_ONLY),
            session=record.get("session") or "",
            session_expire_time=record.get("session_expire_time"),
            checkin_date=record.get("checkin_date"),
            account_id=str(record.get("account_id") or ""),
            aff_code=record.get("aff_code") or "",
            balance=int(record.get("balance") or 0),
            used=int(record.get("used") or 0),
            is_sold=bool(record.get("is_sold", False)),
            can_sell=bool(record.get("can_sell", False)),
            checkin_error_count=int(record.get("checkin_error_count") or 0),
            user_username=record.get("user_username") or "",
            notice_email=record.get("notice_email") or "",
            member_expire_time=record.get("member_expire_time"),
            tokens=list(record.get("tokens") or []),
        )
