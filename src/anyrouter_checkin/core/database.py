"""数据库连接池管理（postgres 账本后端）"""

import logging
from typing import Optional

import asyncpg
from asyncpg import Pool

from anyrouter_checkin.config.settings import get_settings

logger = logging.getLogger(__name__)

_pool: Optional[Pool] = None


async def get_pool() -> Pool:
    """获取数据库连接池（单例模式）"""
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = await asyncpg.create_pool(
            settings.database_url,
            min_size=1,
            max_size=5,
            command_timeout=60,
        )
    return _pool


async def close_pool():
    """关闭数据库连接池"""
    global _pool
    if _pool:
        await _pool.close()
        _pool = None


class DatabaseConnection:
    """数据库连接上下文管理器"""

    def __init__(self):
        self._conn = None
        self._pool = None
        self._acquire_context = None

    async def __aenter__(self):
        self._pool = await get_pool()
        # acquire() 返回上下文管理器，需要通过 __aenter__ 获取实际连接
        self._acquire_context = self._pool.acquire()
        self._conn = await self._acquire_context.__aenter__()
        return self._conn

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._acquire_context:
            await self._acquire_context.__aexit__(exc_type, exc_val, exc_tb)
            self._acquire_context = None
            self._conn = None


# ==================== 数据库自动初始化 ====================

# 时间字段统一为毫秒时间戳（BIGINT），与远程账本保持一致
_INIT_SQL_TABLES = """
-- 用户表
CREATE TABLE IF NOT EXISTS users (
    id BIGSERIAL PRIMARY KEY,
    username VARCHAR(255) NOT NULL UNIQUE,
    notice_email VARCHAR(255),
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    member_expire_time BIGINT,
    allowed_checkin_mode SMALLINT NOT NULL DEFAULT 1,
    create_date BIGINT NOT NULL,
    update_date BIGINT NOT NULL
);

-- 账号表
CREATE TABLE IF NOT EXISTS accounts (
    id BIGSERIAL PRIMARY KEY,
    user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    username VARCHAR(255) NOT NULL,
    encrypted_pass TEXT NOT NULL,
    account_type SMALLINT NOT NULL DEFAULT 0 CHECK (account_type IN (0, 1, 2)),
    checkin_mode SMALLINT NOT NULL DEFAULT 1 CHECK (checkin_mode IN (1, 2, 3)),
    session TEXT,
    session_expire_time BIGINT,
    checkin_date BIGINT,
    checkin_error_count INTEGER NOT NULL DEFAULT 0,
    account_id VARCHAR(64),
    aff_code VARCHAR(64),
    balance BIGINT NOT NULL DEFAULT 0 CHECK (balance >= 0),
    used BIGINT NOT NULL DEFAULT 0 CHECK (used >= 0),
    agentrouter_balance BIGINT NOT NULL DEFAULT 0,
    is_sold BOOLEAN NOT NULL DEFAULT FALSE,
    sell_date BIGINT,
    can_sell BOOLEAN NOT NULL DEFAULT FALSE,
    tokens JSONB NOT NULL DEFAULT '[]'::jsonb,
    workflow_url TEXT,
    cache_key TEXT,
    notes TEXT,
    create_date BIGINT NOT NULL,
    update_date BIGINT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_accounts_user_id ON accounts(user_id);
CREATE INDEX IF NOT EXISTS idx_accounts_checkin_date ON accounts(checkin_date);

-- 改账密申请表
CREATE TABLE IF NOT EXISTS password_changes (
    id BIGSERIAL PRIMARY KEY,
    account_id BIGINT REFERENCES accounts(id) ON DELETE SET NULL,
    old_username VARCHAR(255) NOT NULL,
    new_username VARCHAR(255),
    status SMALLINT NOT NULL DEFAULT 0 CHECK (status IN (0, 1, 2, 3)),
    error_count INTEGER NOT NULL DEFAULT 0,
    error_reason VARCHAR(500),
    account_info JSONB,
    complete_date BIGINT,
    create_date BIGINT NOT NULL,
    update_date BIGINT NOT NULL
);
"""


async def init_database():
    """Initialize database tables if they don't exist"""
    settings = get_settings()

    try:
        conn = await asyncpg.connect(settings.database_url)
        try:
            await conn.execute(_INIT_SQL_TABLES)
            logger.info("数据库表初始化成功")
        finally:
            await conn.close()

    except Exception as e:
        logger.error(f"数据库初始化失败: {e}", exc_info=True)
        raise


async def check_and_init_database():
    """Check if tables exist, initialize if not"""
    settings = get_settings()

    conn = await asyncpg.connect(settings.database_url)
    try:
        exists = await conn.fetchval(
            "SELECT EXISTS (SELECT FROM information_schema.tables WHERE table_name = 'password_changes')"
        )
    finally:
        await conn.close()

    if not exists:
        logger.warning("数据库表不存在，正在初始化...")
        await init_database()
    else:
        logger.debug("数据库表已存在")
