"""站点适配器基类"""

from abc import ABC, abstractmethod

from anyrouter_checkin.models.results import SiteResponse


class SiteAdapter(ABC):
    """站点适配器基类

    所有接口调用都在已打开的页面内完成，因此共享该页面的 Cookie。
    """

    @abstractmethod
    async def open_home(self) -> None:
        """打开站点首页并等待网络空闲"""
        pass

    @abstractmethod
    async def login(self, username: str, password: str) -> SiteResponse:
        """
        账号密码登录

        Returns:
            SiteResponse，成功时 payload 中包含用户 id
        """
        pass

    @abstractmethod
    async def get_session_cookie(self) -> dict | None:
        """从 Cookie 罐中读取会话 Cookie，不存在返回 None"""
        pass

    @abstractmethod
    async def checkin(self, api_user: str) -> SiteResponse:
        """执行签到"""
        pass

    @abstractmethod
    async def get_self(self, api_user: str) -> SiteResponse:
        """获取当前用户信息"""
        pass

    @abstractmethod
    async def update_self(self, api_user: str, fields: dict) -> SiteResponse:
        """修改当前用户的用户名/密码"""
        pass
