"""命令行入口"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from anyrouter_checkin.config.settings import Settings, get_settings
from anyrouter_checkin.core.exceptions import CheckinError, LedgerError, ValidationError
from anyrouter_checkin.core.log import setup_logging
from anyrouter_checkin.ledger import create_ledger
from anyrouter_checkin.models.password_change import PasswordChangeRequest
from anyrouter_checkin.services.checkin import CheckinService
from anyrouter_checkin.services.notification import NotificationService
from anyrouter_checkin.services.password_change import PasswordChangeService

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="anyrouter_checkin")
    p.add_argument("--headful", action="store_true", help="Run browser headful (debug)")

    sub = p.add_subparsers(dest="cmd", required=True)

    checkin = sub.add_parser("checkin", help="Log in to every eligible account, check in and sync balances")
    checkin.add_argument("--limit", type=int, default=None, help="Max accounts to process in this run")
    checkin.add_argument("--no-notify", action="store_true", help="Do not push the run summary to Telegram")

    change = sub.add_parser("change-password", help="Execute one username/password change request")
    change.add_argument(
        "payload",
        help="Request as JSON: record_id, old_username, old_password, new_username?, new_password?, error_count?"
        " ('-' reads stdin)",
    )

    return p


def _load_payload(raw: str) -> dict:
    if raw == "-":
        raw = sys.stdin.read()
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(f"申请数据不是有效的 JSON: {e}") from e


async def _run_checkin(settings: Settings, limit: Optional[int], notify: bool) -> int:
    notifier = NotificationService(settings) if notify else None

    async with await create_ledger(settings) as ledger:
        service = CheckinService(ledger, notifier=notifier, settings=settings)
        outcomes = await service.run(limit)

    failed = [o for o in outcomes if o.errors]
    if failed:
        logger.error(f"{len(failed)} 个账号的账本写入失败")
        return 1

    processed = [o for o in outcomes if not o.skipped]
    if processed and not any(o.success for o in processed):
        logger.error(f"本轮处理的 {len(processed)} 个账号全部失败")
        return 1
    return 0


async def _run_change_password(settings: Settings, request: PasswordChangeRequest) -> int:
    async with await create_ledger(settings) as ledger:
        service = PasswordChangeService(ledger, settings=settings)
        result = await service.execute(request)

    if not result.success:
        logger.error(f"改账密失败: {result.message}")
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    settings = get_settings()
    if args.headful:
        settings.headless = False

    setup_logging(settings)

    try:
        if args.cmd == "checkin":
            logger.info("开始执行签到任务")
            return asyncio.run(_run_checkin(settings, args.limit, notify=not args.no_notify))

        if args.cmd == "change-password":
            request = PasswordChangeRequest.from_payload(_load_payload(args.payload))
            return asyncio.run(_run_change_password(settings, request))
    except ValidationError as e:
        logger.error(f"参数错误: {e}")
        return 1
    except LedgerError as e:
        logger.error(f"账本调用失败: {e}")
        return 1
    except CheckinError as e:
        logger.error(f"执行失败: {e}")
        return 1

    raise SystemExit(f"Unknown command: {args.cmd}")
