"""Repository base class"""

import asyncio
import logging
from abc import ABC

from anyrouter_checkin.core.database import DatabaseConnection

logger = logging.getLogger(__name__)


class BaseRepository(ABC):
    """Repository base class"""

    # 以任务 ID 为 key 隔离每个任务的连接上下文
    _contexts = {}

    async def _get_connection(self):
        """Get database connection"""
        task_id = id(asyncio.current_task())

        if task_id not in self._contexts:
            self._contexts[task_id] = DatabaseConnection()

        return await self._contexts[task_id].__aenter__()

    async def _release_connection(self, _conn=None):
        """Release database connection (with exception safety)"""
        task_id = id(asyncio.current_task())

        if task_id in self._contexts:
            try:
                await self._contexts[task_id].__aexit__(None, None, None)
            except Exception as e:
                logger.warning(f"Error releasing database connection: {e}")
            finally:
                del self._contexts[task_id]
