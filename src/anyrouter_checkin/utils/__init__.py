"""工具函数模块"""

from anyrouter_checkin.utils.delay import get_random_delay, random_delay
from anyrouter_checkin.utils.formatter import format_checkin_summary, format_outcome
from anyrouter_checkin.utils.validator import (
    clean_update_fields,
    is_duplicate_username_error,
    make_username_candidate,
    truncate_reason,
    validate_amount,
    validate_limit,
)

__all__ = [
    "get_random_delay",
    "random_delay",
    "format_checkin_summary",
    "format_outcome",
    "clean_update_fields",
    "is_duplicate_username_error",
    "make_username_candidate",
    "truncate_reason",
    "validate_amount",
    "validate_limit",
]
