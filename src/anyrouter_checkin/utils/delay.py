"""随机延迟工具（模拟真人操作）"""

import asyncio
import logging
import random

logger = logging.getLogger(__name__)


def get_random_delay(min_ms: int = 500, max_ms: int = 1500) -> int:
    """
    生成随机延迟时间（正态分布，截断到 [min_ms, max_ms]）

    均值落在区间中点，±3σ 覆盖整个区间。

    Args:
        min_ms: 最小延迟（毫秒）
        max_ms: 最大延迟（毫秒）

    Returns:
        延迟时间（毫秒）
    """
    if max_ms < min_ms:
        min_ms, max_ms = max_ms, min_ms
    if max_ms == min_ms:
        return min_ms

    z = random.gauss(0.0, 1.0)
    delay = min_ms + (max_ms - min_ms) * (z + 3) / 6
    return max(min_ms, min(max_ms, int(delay)))


async def random_delay(min_ms: int = 500, max_ms: int = 1500) -> int:
    """等待随机时间，返回实际等待的毫秒数"""
    delay = get_random_delay(min_ms, max_ms)
    logger.debug(f"随机等待 {delay} ms")
    await asyncio.sleep(delay / 1000)
    return delay
