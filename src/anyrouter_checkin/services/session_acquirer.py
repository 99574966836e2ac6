"""会话获取服务

通过无头浏览器完成登录，从 Cookie 中取出 session，然后签到并获取用户信息。
"""

import logging
from collections.abc import Callable
from datetime import timedelta

from anyrouter_checkin.browser.session import BrowserSession
from anyrouter_checkin.config.settings import Settings, get_settings
from anyrouter_checkin.core.timezone import now_ms
from anyrouter_checkin.models.results import AcquisitionResult, UserSnapshot
from anyrouter_checkin.sites.anyrouter import AnyRouterAdapter
from anyrouter_checkin.sites.base import SiteAdapter
from anyrouter_checkin.utils.delay import random_delay

logger = logging.getLogger(__name__)


class SessionAcquirer:
    """会话获取服务（每次调用独占一个浏览器实例，无内部重试）"""

    def __init__(
        self,
        settings: Settings | None = None,
        browser_factory: Callable[..., BrowserSession] | None = None,
        adapter_factory: Callable[..., SiteAdapter] | None = None,
    ):
        self.settings = settings or get_settings()
        self._browser_factory = browser_factory or BrowserSession
        self._adapter_factory = adapter_factory or AnyRouterAdapter

    async def acquire(self, username: str, password: str) -> AcquisitionResult | None:
        """
        登录并获取会话

        Args:
            username: 用户名或邮箱
            password: 密码

        Returns:
            AcquisitionResult，登录失败或未取到会话时返回 None
        """
        logger.info(f"[登录签到] 开始处理账号: {username}")

        try:
            async with self._browser_factory(settings=self.settings) as browser:
                site = self._adapter_factory(browser.page, settings=self.settings)
                return await self._run(site, username, password)
        except Exception as e:
            logger.error(f"[登录签到] 登录过程发生错误: 用户 {username} - {e}", exc_info=True)
            return None

    async def _run(self, site: SiteAdapter, username: str, password: str) -> AcquisitionResult | None:
        settings = self.settings

        # 1. 打开首页，等待页面稳定
        await site.open_home()
        await random_delay(settings.page_settle_min_ms, settings.page_settle_max_ms)

        # 2. 登录
        login = await site.login(username, password)
        if not login.ok:
            logger.warning(f"[登录签到] 登录接口调用失败: 用户 {username} - {login.message}")
            return None
        if not login.api_success:
            logger.warning(f"[登录签到] 登录失败: 用户 {username} - {login.message}")
            return None

        api_user = login.payload.get("id")
        if not api_user:
            logger.warning(f"[登录签到] 登录响应中未找到用户 ID: 用户 {username}")
            return None
        api_user = str(api_user)

        # session 在 Cookie 中，不在响应体里
        cookie = await site.get_session_cookie()
        if not cookie:
            logger.warning(f"[登录签到] 未能从 cookies 中获取 session: 用户 {username}")
            return None

        logger.info(f"[登录签到] 登录成功: 用户 {username} 站点用户ID {api_user}")

        # 3. 签到（失败不影响会话获取）
        await random_delay(settings.step_delay_min_ms, settings.step_delay_max_ms)
        checkin = await site.checkin(api_user)
        checkin_success = checkin.api_success
        if checkin_success:
            logger.info(f"[登录签到] 签到成功: 用户 {username}")
        else:
            logger.warning(f"[登录签到] 签到失败: 用户 {username} - {checkin.message}")

        # 4. 获取用户信息，失败时使用登录返回的数据
        await random_delay(settings.step_delay_min_ms, settings.step_delay_max_ms)
        info = await site.get_self(api_user)
        if info.api_success and info.payload:
            snapshot = UserSnapshot(raw=info.payload)
            logger.info(
                f"[登录签到] 用户 {snapshot.username or username}: 余额 ${snapshot.balance} 已使用 ${snapshot.used}"
            )
        else:
            # 登录响应不含额度，不能据此同步余额
            logger.warning(f"[登录签到] 获取用户信息失败，使用登录返回数据且不同步余额: 用户 {username} - {info.message}")
            snapshot = UserSnapshot(raw=login.payload, from_login=True)

        return AcquisitionResult(
            session=cookie["value"],
            api_user=api_user,
            snapshot=snapshot,
            session_expire_time=self._session_expire_time(cookie),
            checkin_success=checkin_success,
            checkin_message=checkin.message,
        )

    def _session_expire_time(self, cookie: dict) -> int:
        """Cookie 过期时间（毫秒）；会话级 Cookie 使用默认有效期"""
        expires = cookie.get("expires")
        if expires is not None and expires > 0:
            return int(expires * 1000)
        return now_ms() + int(timedelta(days=self.settings.session_ttl_days).total_seconds() * 1000)
