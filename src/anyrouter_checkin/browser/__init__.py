"""浏览器自动化模块"""

from anyrouter_checkin.browser.session import BrowserSession

__all__ = ["BrowserSession"]
