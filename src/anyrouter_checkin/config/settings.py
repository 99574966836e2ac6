"""配置管理模块"""

import logging
from typing import List

from pydantic import Field, ConfigDict, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用配置类"""

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ==================== 账本配置 ====================
    ledger_backend: str = Field(default="remote", description="账本后端: remote 或 postgres")
    ledger_api_url: str = Field(default="", description="账本服务 API 地址")
    ledger_api_key: str = Field(default="", description="账本服务 API 密钥（可选）")
    ledger_timeout: int = Field(default=30, description="账本请求超时（秒）")

    # ==================== 数据库配置（postgres 后端） ====================
    database_url: str = Field(default="", description="PostgreSQL 连接字符串")
    encryption_key: str = Field(default="", description="AES-256-GCM 加密密钥（32 字节或 base64 编码）")

    # ==================== 目标站点配置 ====================
    site_base_url: str = Field(default="https://anyrouter.top", description="目标站点地址")
    headless: bool = Field(default=True, description="是否无头模式运行浏览器")
    navigation_timeout_ms: int = Field(default=600000, description="页面导航超时（毫秒）")
    browser_proxy: str = Field(default="", alias="SOCKS5_PROXY", description="浏览器代理地址")

    # ==================== 时间配置 ====================
    timezone: str = Field(default="Asia/Shanghai", description="签到日界时区")
    step_delay_min_ms: int = Field(default=1000, description="接口调用间最小延迟（毫秒）")
    step_delay_max_ms: int = Field(default=2000, description="接口调用间最大延迟（毫秒）")
    page_settle_min_ms: int = Field(default=2000, description="首页加载后最小等待（毫秒）")
    page_settle_max_ms: int = Field(default=3000, description="首页加载后最大等待（毫秒）")
    account_delay_min_ms: int = Field(default=5000, description="账号之间最小延迟（毫秒）")
    account_delay_max_ms: int = Field(default=7000, description="账号之间最大延迟（毫秒）")
    session_ttl_days: int = Field(default=30, description="会话 Cookie 无过期时间时的默认有效期（天）")

    # ==================== 改账密配置 ====================
    conflict_retry_error_count: int = Field(default=2, description="触发用户名冲突重试的错误次数")
    conflict_suffix_length: int = Field(default=2, description="冲突重试时追加的随机字符数")

    # ==================== 通知配置 ====================
    bot_token: str = Field(default="", description="Telegram Bot Token（可选）")
    admin_ids_str: str = Field(default="", alias="ADMIN_IDS", description="通知接收者 ID 列表（逗号分隔）")

    # ==================== 日志配置 ====================
    log_level_str: str = Field(default="INFO", alias="LOG_LEVEL", description="日志级别: DEBUG, INFO, WARNING, ERROR")

    @field_validator("log_level_str")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """验证日志级别"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}, got '{v}'")
        return v_upper

    @field_validator("ledger_backend")
    @classmethod
    def validate_ledger_backend(cls, v: str) -> str:
        """验证账本后端"""
        v_lower = v.lower()
        if v_lower not in ("remote", "postgres"):
            raise ValueError(f"ledger_backend must be 'remote' or 'postgres', got '{v}'")
        return v_lower

    @field_validator("conflict_retry_error_count", "conflict_suffix_length")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("value must be >= 0")
        return v

    @property
    def log_level(self) -> int:
        """获取日志级别常量"""
        return getattr(logging, self.log_level_str)

    @property
    def admin_ids(self) -> List[int]:
        """通知接收者 ID 列表"""
        if not self.admin_ids_str or not self.admin_ids_str.strip():
            return []
        return [int(x.strip()) for x in self.admin_ids_str.split(",") if x.strip()]

    @property
    def playwright_proxy(self) -> dict | None:
        """
        获取用于 Playwright 的代理配置

        Returns:
            代理配置字典，未配置时返回 None
        """
        if not self.browser_proxy:
            return None
        return {"server": self.browser_proxy}


# 全局配置实例
_settings: Settings | None = None


def get_settings() -> Settings:
    """获取配置实例（单例模式）"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
