"""业务服务模块"""

from anyrouter_checkin.services.checkin import CheckinService
from anyrouter_checkin.services.notification import NotificationService
from anyrouter_checkin.services.password_change import PasswordChangeService
from anyrouter_checkin.services.password_rotator import PasswordRotator
from anyrouter_checkin.services.session_acquirer import SessionAcquirer

__all__ = [
    "CheckinService",
    "NotificationService",
    "PasswordChangeService",
    "PasswordRotator",
    "SessionAcquirer",
]
