"""日志配置模块"""

import logging
import sys
import time
from datetime import datetime

from anyrouter_checkin.config.settings import Settings, get_settings
from anyrouter_checkin.core.timezone import get_timezone

RESET = "\033[0m"

# 日志级别颜色映射（清爽配色）
LOG_COLORS = {
    logging.DEBUG: "\033[38;5;245m",      # 灰色（柔和）
    logging.INFO: "\033[38;5;79m",        # 青绿色（清爽）
    logging.WARNING: "\033[38;5;221m",    # 柔和橙黄
    logging.ERROR: "\033[38;5;203m",      # 柔和红
    logging.CRITICAL: "\033[1;38;5;203m", # 粗体柔和红
}

# 日志级别名称映射（等宽对齐）
LOG_LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO ",
    logging.WARNING: "WARN ",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRIT ",
}

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 第三方库日志只保留警告以上
NOISY_LOGGERS = ("asyncio", "asyncpg", "curl_cffi", "httpx", "httpcore", "telegram")


class ColorFormatter(logging.Formatter):
    """带颜色和对齐的日志格式化器，时间按配置时区显示"""

    def __init__(self, *args, tz_name: str | None = None, use_color: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = get_timezone(tz_name)
        self.use_color = use_color

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=self.tz)
        ct = dt.replace(tzinfo=None).timetuple()
        return time.strftime(datefmt or DATE_FORMAT, ct)

    def format(self, record):
        record.levelname = LOG_LEVEL_NAMES.get(record.levelno, record.levelname)
        result = super().format(record)

        level_color = LOG_COLORS.get(record.levelno) if self.use_color else None
        if level_color:
            result = f"{level_color}{result}{RESET}"
        return result


def setup_logging(settings: Settings | None = None) -> None:
    """配置根日志（输出到 stdout）"""
    settings = settings or get_settings()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColorFormatter(
        fmt=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        tz_name=settings.timezone,
        use_color=sys.stdout.isatty(),
    ))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(settings.log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
