"""AnyRouter 站点适配器"""

import logging

from playwright.async_api import Page

from anyrouter_checkin.config.constants import (
    API_USER_HEADER,
    SESSION_COOKIE_NAME,
    SiteConfig,
)
from anyrouter_checkin.config.settings import Settings, get_settings
from anyrouter_checkin.models.results import SiteResponse
from anyrouter_checkin.sites.base import SiteAdapter

logger = logging.getLogger(__name__)

# 页面内 fetch：网络异常时返回 status=null，便于区分本地错误和站点拒绝
PAGE_FETCH_SCRIPT = """
async ({ url, method, headers, body }) => {
    try {
        const init = { method, headers, credentials: 'include' };
        if (body !== null && body !== undefined) {
            init.body = JSON.stringify(body);
        }
        const response = await fetch(url, init);
        let data = null;
        try {
            data = await response.json();
        } catch (e) {
            data = null;
        }
        return { ok: response.ok, status: response.status, data: data };
    } catch (error) {
        return { ok: false, status: null, error: String((error && error.message) || error) };
    }
}
"""


class AnyRouterAdapter(SiteAdapter):
    """AnyRouter 站点适配器（new-api 接口）"""

    def __init__(self, page: Page, settings: Settings | None = None):
        self.page = page
        self.settings = settings or get_settings()
        self.config = SiteConfig.ANYROUTER
        self.base_url = self.settings.site_base_url.rstrip("/")

    async def open_home(self) -> None:
        logger.debug(f"访问首页，等待页面稳定: {self.base_url}")
        await self.page.goto(
            self.base_url,
            wait_until="networkidle",
            timeout=self.settings.navigation_timeout_ms,
        )

    async def login(self, username: str, password: str) -> SiteResponse:
        logger.debug(f"调用登录接口: 用户 {username}")
        return await self._fetch(
            "POST",
            self.config["login_api"],
            body={"username": username, "password": password},
        )

    async def get_session_cookie(self) -> dict | None:
        cookies = await self.page.context.cookies()
        for cookie in cookies:
            if cookie.get("name") == SESSION_COOKIE_NAME and cookie.get("value"):
                return cookie
        return None

    async def checkin(self, api_user: str) -> SiteResponse:
        logger.debug(f"调用签到接口: 站点用户 {api_user}")
        return await self._fetch("POST", self.config["checkin_api"], api_user=api_user)

    async def get_self(self, api_user: str) -> SiteResponse:
        logger.debug(f"获取用户信息: 站点用户 {api_user}")
        return await self._fetch("GET", self.config["self_api"], api_user=api_user)

    async def update_self(self, api_user: str, fields: dict) -> SiteResponse:
        logger.debug(f"提交账号修改: 站点用户 {api_user} 字段 {sorted(fields)}")
        return await self._fetch("PUT", self.config["self_api"], api_user=api_user, body=fields)

    def _headers(self, api_user: str | None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if api_user:
            headers[API_USER_HEADER] = str(api_user)
            headers["referer"] = f"{self.base_url}{self.config['console_path']}"
        return headers

    async def _fetch(
        self,
        method: str,
        path: str,
        api_user: str | None = None,
        body: dict | None = None,
    ) -> SiteResponse:
        raw = await self.page.evaluate(
            PAGE_FETCH_SCRIPT,
            {
                "url": f"{self.base_url}{path}",
                "method": method,
                "headers": self._headers(api_user),
                "body": body,
            },
        )
        response = SiteResponse.from_evaluate(raw)
        logger.debug(f"{method} {path} -> status={response.status} ok={response.ok}")
        return response
