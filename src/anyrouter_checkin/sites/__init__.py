"""站点适配器模块"""

from anyrouter_checkin.sites.anyrouter import AnyRouterAdapter
from anyrouter_checkin.sites.base import SiteAdapter

__all__ = [
    "SiteAdapter",
    "AnyRouterAdapter",
]
