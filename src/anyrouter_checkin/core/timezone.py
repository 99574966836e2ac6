"""时区处理模块

签到的"今天"以服务运营时区（默认 Asia/Shanghai）为准，与调用方本地时区无关。
所有账本时间戳均为毫秒。
"""

import time
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from anyrouter_checkin.config.settings import get_settings


def get_timezone(name: str | None = None) -> ZoneInfo:
    """获取配置的时区"""
    return ZoneInfo(name or get_settings().timezone)


def now_ms() -> int:
    """当前毫秒时间戳"""
    return int(time.time() * 1000)


def from_ms(ts_ms: int, tz: ZoneInfo | None = None) -> datetime:
    """毫秒时间戳转换为参考时区的 aware datetime"""
    return datetime.fromtimestamp(ts_ms / 1000, tz=tz or get_timezone())


def reference_date(ts_ms: int | None = None, tz: ZoneInfo | None = None) -> str:
    """时间戳所在的参考时区日期（YYYY-MM-DD）"""
    if ts_ms is None:
        ts_ms = now_ms()
    return from_ms(ts_ms, tz).strftime("%Y-%m-%d")


def day_start_ms(ts_ms: int | None = None, tz: ZoneInfo | None = None) -> int:
    """时间戳所在参考时区日的 0 点（毫秒时间戳）"""
    if ts_ms is None:
        ts_ms = now_ms()
    local = from_ms(ts_ms, tz)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return int(midnight.timestamp() * 1000)


def day_end_ms(ts_ms: int | None = None, tz: ZoneInfo | None = None) -> int:
    """时间戳所在参考时区日的次日 0 点（毫秒时间戳）"""
    zone = tz or get_timezone()
    start = from_ms(day_start_ms(ts_ms, zone), zone)
    # 跨夏令时的日子长度不一定是 24 小时
    next_day = (start + timedelta(days=1, hours=2)).replace(hour=0, minute=0, second=0, microsecond=0)
    return int(next_day.timestamp() * 1000)


def is_checked_in_today(checkin_date: int | None, current_ms: int | None = None, tz: ZoneInfo | None = None) -> bool:
    """签到时间戳是否落在参考时区的今天"""
    if not checkin_date:
        return False
    if current_ms is None:
        current_ms = now_ms()
    return day_start_ms(current_ms, tz) <= checkin_date < day_end_ms(current_ms, tz)
