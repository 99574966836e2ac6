"""常量定义模块"""

from enum import IntEnum
from typing import Final


# ==================== 浏览器配置 ====================
DEFAULT_USER_AGENT: Final[str] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

BROWSER_CONTEXT_OPTIONS: Final[dict] = {
    "viewport": {"width": 1920, "height": 1080},
    "user_agent": DEFAULT_USER_AGENT,
    "locale": "zh-CN",
    "timezone_id": "Asia/Shanghai",
    "device_scale_factor": 1,
    "is_mobile": False,
    "has_touch": False,
    "permissions": ["geolocation", "notifications"],
    "color_scheme": "light",
}

STEALTH_ARGS: Final[list[str]] = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--disable-infobars",
    "--no-first-run",
    "--no-default-browser-check",
    "--no-sandbox",
    "--window-size=1920,1080",
]

IGNORE_DEFAULT_ARGS: Final[list[str]] = ["--enable-automation"]

# 隐藏自动化特征的初始化脚本
STEALTH_SCRIPT: Final[str] = """
Object.defineProperty(navigator, 'webdriver', {
    get: () => undefined,
    configurable: true
});

window.navigator.chrome = {
    runtime: {},
    loadTimes: function() {},
    csi: function() {},
    app: {}
};

Object.defineProperty(navigator, 'languages', {
    get: () => ['zh-CN', 'zh', 'en-US', 'en'],
    configurable: true
});

const originalQuery = window.navigator.permissions.query;
window.navigator.permissions.query = (parameters) => (
    parameters.name === 'notifications' ?
        Promise.resolve({ state: Notification.permission }) :
        originalQuery(parameters)
);
"""


# ==================== 站点配置 ====================
SESSION_COOKIE_NAME: Final[str] = "session"
API_USER_HEADER: Final[str] = "new-api-user"

# new-api 额度单位：500000 quota = $1
QUOTA_PER_DOLLAR: Final[int] = 500000


class SiteConfig:
    """站点接口配置"""

    ANYROUTER = {
        "name": "AnyRouter",
        "login_api": "/api/user/login?turnstile=",
        "checkin_api": "/api/user/sign_in",
        "self_api": "/api/user/self",
        "console_path": "/console",
    }


# 用户名冲突的错误特征（小写匹配）
DUPLICATE_USERNAME_SIGNATURES: Final[tuple[str, ...]] = (
    "duplicate",
    "unique constraint",
    "already exists",
    "already taken",
    "用户名已存在",
    "用户名已被占用",
    "已被使用",
)

# 冲突重试候选用户名的后缀字符集
USERNAME_SUFFIX_ALPHABET: Final[str] = "abcdefghijklmnopqrstuvwxyz0123456789"


# ==================== 账本配置 ====================
LEDGER_API_PREFIX: Final[str] = "/anyrouter2"
ERROR_REASON_MAX_LENGTH: Final[int] = 500

# 不允许通过字段更新写入的字段
PROTECTED_ACCOUNT_FIELDS: Final[tuple[str, ...]] = ("_id", "create_date", "balance")


# ==================== 账号类型 ====================
class AccountType(IntEnum):
    """登录类型枚举"""
    PASSWORD = 0  # 账号密码登录
    LINUXDO = 1  # LinuxDo 第三方登录
    GITHUB = 2  # GitHub 第三方登录


# ==================== 签到模式 ====================
class CheckinMode(IntEnum):
    """签到模式枚举"""
    TARGET_ONLY = 1  # 只签到 AnyRouter
    ALTERNATE_ONLY = 2  # 只签到 AgentRouter
    BOTH = 3  # 两者都签到


# ==================== 改账密申请状态 ====================
class PasswordChangeStatus(IntEnum):
    """改账密申请状态枚举"""
    NOT_STARTED = 0
    IN_PROGRESS = 1
    COMPLETED = 2
    ERROR = 3
