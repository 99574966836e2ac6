"""浏览器会话管理

每个 BrowserSession 独占一个浏览器实例，只服务于一次会话获取或一次改账密，
不在账号之间复用。
"""

import logging

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from anyrouter_checkin.config.constants import (
    BROWSER_CONTEXT_OPTIONS,
    IGNORE_DEFAULT_ARGS,
    STEALTH_ARGS,
    STEALTH_SCRIPT,
)
from anyrouter_checkin.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class BrowserSession:
    """浏览器会话上下文管理器

    用法:
        async with BrowserSession() as browser:
            await browser.page.goto(...)
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._pw: Playwright | None = None
        self.browser: Browser | None = None
        self.context: BrowserContext | None = None
        self.page: Page | None = None

    async def start(self) -> "BrowserSession":
        """启动浏览器并创建隔离的上下文与页面"""
        logger.debug("启动 Chromium 浏览器（已启用反检测）...")

        try:
            self._pw = await async_playwright().start()

            launch_kwargs = {
                "headless": self.settings.headless,
                "args": STEALTH_ARGS,
                "ignore_default_args": IGNORE_DEFAULT_ARGS,
            }
            proxy = self.settings.playwright_proxy
            if proxy:
                launch_kwargs["proxy"] = proxy

            self.browser = await self._pw.chromium.launch(**launch_kwargs)
            self.context = await self.browser.new_context(**BROWSER_CONTEXT_OPTIONS)
            await self.context.add_init_script(STEALTH_SCRIPT)
            self.page = await self.context.new_page()
        except Exception:
            # 启动中途失败时释放已创建的部分
            await self.close()
            raise

        return self

    async def close(self) -> None:
        """按 页面 → 上下文 → 浏览器 的顺序释放资源，清理错误只记录不抛出"""
        if self.page is not None:
            try:
                if not self.page.is_closed():
                    await self.page.close()
            except Exception as e:
                logger.warning(f"关闭页面出错: {e}")
            self.page = None

        if self.context is not None:
            try:
                await self.context.close()
            except Exception as e:
                logger.warning(f"关闭浏览器上下文出错: {e}")
            self.context = None

        if self.browser is not None:
            try:
                await self.browser.close()
            except Exception as e:
                logger.warning(f"关闭浏览器出错: {e}")
            self.browser = None

        if self._pw is not None:
            try:
                await self._pw.stop()
            except Exception as e:
                logger.warning(f"停止 Playwright 出错: {e}")
            self._pw = None

        logger.debug("浏览器已关闭")

    async def __aenter__(self) -> "BrowserSession":
        return await self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
