"""账本模块"""

from anyrouter_checkin.config.settings import Settings, get_settings
from anyrouter_checkin.ledger.base import AccountLedger
from anyrouter_checkin.ledger.postgres import PostgresLedger
from anyrouter_checkin.ledger.remote import RemoteLedger


async def create_ledger(settings: Settings | None = None) -> AccountLedger:
    """根据配置创建账本实例"""
    settings = settings or get_settings()
    if settings.ledger_backend == "postgres":
        ledger = PostgresLedger(settings)
        await ledger.init()
        return ledger
    return RemoteLedger(settings)


__all__ = [
    "AccountLedger",
    "PostgresLedger",
    "RemoteLedger",
    "create_ledger",
]
