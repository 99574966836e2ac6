"""通知服务"""

import logging

from telegram import Bot
from telegram.error import TelegramError

from anyrouter_checkin.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class NotificationService:
    """通知服务，将签到汇总推送给管理员"""

    def __init__(self, settings: Settings | None = None, bot: Bot | None = None):
        self.settings = settings or get_settings()
        self._bot = bot

    @property
    def enabled(self) -> bool:
        return bool((self._bot or self.settings.bot_token) and self.settings.admin_ids)

    def _get_bot(self) -> Bot:
        if self._bot is None:
            self._bot = Bot(token=self.settings.bot_token)
        return self._bot

    async def send(self, text: str) -> int:
        """
        推送消息给所有管理员

        Returns:
            成功发送的数量
        """
        if not self.enabled:
            logger.debug("未配置 BOT_TOKEN 或 ADMIN_IDS，跳过通知")
            return 0

        bot = self._get_bot()
        sent = 0
        for chat_id in self.settings.admin_ids:
            try:
                await bot.send_message(chat_id=chat_id, text=text)
                sent += 1
            except TelegramError as e:
                logger.warning(f"发送通知给 {chat_id} 失败: {e}")

        logger.info(f"已推送签到汇总给 {sent} 个管理员")
        return sent
