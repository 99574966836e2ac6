"""改账密服务

使用旧账密登录后通过账号设置接口修改用户名/密码，并重新获取用户信息确认修改生效。
"""

import logging
from collections.abc import Callable

from anyrouter_checkin.browser.session import BrowserSession
from anyrouter_checkin.config.settings import Settings, get_settings
from anyrouter_checkin.models.results import RotationResult, SiteResponse
from anyrouter_checkin.sites.anyrouter import AnyRouterAdapter
from anyrouter_checkin.sites.base import SiteAdapter
from anyrouter_checkin.utils.delay import random_delay

logger = logging.getLogger(__name__)


def _failure(step: str, response: SiteResponse) -> RotationResult:
    """根据接口响应构造失败结果；只有站点给出应答时才算 API 错误"""
    return RotationResult(
        success=False,
        message=f"{step}: {response.message}",
        is_api_error=response.reached_server,
    )


class PasswordRotator:
    """改账密执行器

    生命周期: initialize() → change_password()（可多次）→ cleanup()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        browser_factory: Callable[..., BrowserSession] | None = None,
        adapter_factory: Callable[..., SiteAdapter] | None = None,
    ):
        self.settings = settings or get_settings()
        self._browser_factory = browser_factory or BrowserSession
        self._adapter_factory = adapter_factory or AnyRouterAdapter
        self._browser: BrowserSession | None = None
        self._site: SiteAdapter | None = None

    async def initialize(self) -> tuple[bool, str]:
        """
        启动浏览器（不登录）

        Returns:
            (success, message)
        """
        try:
            browser = self._browser_factory(settings=self.settings)
            self._browser = browser
            await browser.start()
            self._site = self._adapter_factory(browser.page, settings=self.settings)
        except Exception as e:
            logger.error(f"[改账密] 浏览器初始化失败: {e}")
            return False, str(e) or type(e).__name__

        logger.info("[改账密] 浏览器初始化完成")
        return True, "浏览器初始化成功"

    async def change_password(
        self,
        old_username: str,
        old_password: str,
        new_username: str | None = None,
        new_password: str | None = None,
    ) -> RotationResult:
        """
        执行一次改账密

        Args:
            old_username: 旧用户名
            old_password: 旧密码
            new_username: 新用户名（可选）
            new_password: 新密码（可选）

        Returns:
            RotationResult，is_api_error 标记失败是否由站点拒绝导致
        """
        if self._site is None:
            return RotationResult(success=False, message="浏览器未初始化", is_api_error=False)

        fields = {}
        if new_username:
            fields["username"] = new_username
        if new_password:
            fields["password"] = new_password
        if not fields:
            return RotationResult(success=False, message="新用户名和新密码至少需要提供一个", is_api_error=False)

        site = self._site
        settings = self.settings

        try:
            # 1. 打开首页
            await site.open_home()
            await random_delay(settings.page_settle_min_ms, settings.page_settle_max_ms)

            # 2. 旧账密登录
            login = await site.login(old_username, old_password)
            if not login.api_success:
                return _failure("登录失败", login)

            api_user = login.payload.get("id")
            if not api_user:
                return RotationResult(success=False, message="登录响应中未找到用户 ID", is_api_error=True)
            api_user = str(api_user)

            # 3. 提交修改
            await random_delay(settings.step_delay_min_ms, settings.step_delay_max_ms)
            update = await site.update_self(api_user, fields)
            if not update.api_success:
                return _failure("修改失败", update)

            # 4. 重新获取用户信息确认修改生效
            await random_delay(settings.step_delay_min_ms, settings.step_delay_max_ms)
            info = await site.get_self(api_user)
            if not info.api_success or not info.payload:
                return _failure("获取用户信息失败", info)

            user_info = info.payload
            if new_username and user_info.get("username") != new_username:
                return RotationResult(
                    success=False,
                    message=f"验证失败: 用户名为 {user_info.get('username')}，期望 {new_username}",
                    is_api_error=True,
                )
        except Exception as e:
            logger.error(f"[改账密] 执行异常: 用户 {old_username} - {e}", exc_info=True)
            return RotationResult(success=False, message=f"改账密异常: {e}", is_api_error=False)

        logger.info(f"[改账密] 修改成功: {old_username} → {user_info.get('username')}")
        return RotationResult(success=True, message="账密修改成功", user_info=user_info)

    async def cleanup(self) -> None:
        """释放浏览器资源"""
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        self._site = None
