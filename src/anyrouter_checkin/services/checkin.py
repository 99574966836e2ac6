"""Check-in service"""

import logging

from anyrouter_checkin.config.constants import AccountType
from anyrouter_checkin.config.settings import Settings, get_settings
from anyrouter_checkin.core.exceptions import InsufficientBalanceError, LedgerError
from anyrouter_checkin.core.timezone import get_timezone, is_checked_in_today, now_ms
from anyrouter_checkin.ledger.base import AccountLedger
from anyrouter_checkin.models.account import Account
from anyrouter_checkin.models.results import AcquisitionResult, CheckinOutcome
from anyrouter_checkin.services.notification import NotificationService
from anyrouter_checkin.services.session_acquirer import SessionAcquirer
from anyrouter_checkin.utils.delay import random_delay
from anyrouter_checkin.utils.formatter import format_checkin_summary

logger = logging.getLogger(__name__)


class CheckinService:
    """Check-in service

    逐个账号顺序处理：获取会话 → 签到 → 以账本原子操作写回余额和会话。
    账号之间插入随机延迟，不并发。
    """

    def __init__(
        self,
        ledger: AccountLedger,
        acquirer: SessionAcquirer | None = None,
        notifier: NotificationService | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.ledger = ledger
        self.acquirer = acquirer or SessionAcquirer(self.settings)
        self.notifier = notifier
        self.tz = get_timezone(self.settings.timezone)

    async def run(self, limit: int | None = None) -> list[CheckinOutcome]:
        """
        执行一轮签到

        Args:
            limit: 本轮最多处理的账号数

        Returns:
            每个账号的处理结果
        """
        checkinable = await self.ledger.get_checkinable_accounts(limit)
        logger.info(
            f"[签到] 找到 {checkinable.total} 个可签到账号，本轮处理 {len(checkinable.accounts)} 个"
            f" (日期 {checkinable.reference_date})"
        )

        outcomes: list[CheckinOutcome] = []
        processed = 0

        for index, account in enumerate(checkinable.accounts, start=1):
            skip_reason = self._skip_reason(account)
            if skip_reason:
                logger.info(f"[签到] 跳过账号 {account.username}: {skip_reason}")
                outcomes.append(CheckinOutcome(
                    account_id=account.id,
                    username=account.username,
                    skipped=True,
                    message=skip_reason,
                ))
                continue

            # 账号之间的间隔，降低请求频率
            if processed:
                waited = await random_delay(self.settings.account_delay_min_ms, self.settings.account_delay_max_ms)
                logger.debug(f"[签到] 等待 {waited} ms 后处理下一个账号")

            logger.info(f"[签到] 开始处理账号 {index}/{len(checkinable.accounts)}: {account.username}")
            try:
                outcome = await self.process_account(account)
            except Exception as e:
                # 单个账号的异常不影响本轮其余账号
                logger.error(f"[签到] 处理账号 {account.username} 时发生异常: {e}", exc_info=True)
                outcome = CheckinOutcome(account_id=account.id, username=account.username, message="处理异常")
                outcome.errors.append(f"处理异常: {e}")
            outcomes.append(outcome)
            processed += 1

        succeeded = sum(1 for o in outcomes if o.success)
        logger.info(f"[签到] 本轮完成: 处理 {processed} 个账号，成功 {succeeded} 个")

        if self.notifier is not None and outcomes:
            await self.notifier.send(format_checkin_summary(outcomes, checkinable.reference_date))

        return outcomes

    def _skip_reason(self, account: Account) -> str | None:
        if account.account_type != AccountType.PASSWORD:
            return "第三方登录账号不支持账密签到"
        if is_checked_in_today(account.checkin_date, now_ms(), self.tz):
            return "今日已签到"
        return None

    async def process_account(self, account: Account) -> CheckinOutcome:
        """处理单个账号"""
        outcome = CheckinOutcome(account_id=account.id, username=account.username)

        result = await self.acquirer.acquire(account.username, account.password)

        if result is None:
            outcome.message = "未获取到会话"
            logger.warning(f"[签到] 账号 {account.username} 登录失败，等待下次调度")
            await self._update_fields(
                account,
                {"checkin_error_count": account.checkin_error_count + 1},
                outcome,
                increment_error_count=True,
            )
            return outcome

        outcome.session_ok = True
        outcome.checkin_ok = result.checkin_success
        outcome.message = result.checkin_message

        if not result.checkin_success:
            logger.warning(f"[签到] 账号 {account.username} 签到失败，仍保存会话: {result.checkin_message}")

        await self._update_fields(
            account,
            self._session_fields(account, result),
            outcome,
            increment_error_count=not result.checkin_success,
        )
        if result.snapshot.has_quota:
            await self._apply_balance(account, result, outcome)
        else:
            logger.warning(f"[签到] 账号 {account.username} 未获取到站点额度，本次不同步余额")

        return outcome

    def _session_fields(self, account: Account, result: AcquisitionResult) -> dict:
        snapshot = result.snapshot
        fields = {
            "session": result.session,
            "session_expire_time": result.session_expire_time,
            "account_id": result.api_user,
        }
        if snapshot.has_quota:
            fields["used"] = snapshot.used
        if snapshot.aff_code:
            fields["aff_code"] = snapshot.aff_code

        if result.checkin_success:
            fields["checkin_date"] = now_ms()
            fields["checkin_error_count"] = 0
        else:
            fields["checkin_error_count"] = account.checkin_error_count + 1
        return fields

    async def _update_fields(
        self,
        account: Account,
        fields: dict,
        outcome: CheckinOutcome,
        increment_error_count: bool = False,
    ) -> None:
        try:
            await self.ledger.update_account_info(
                account.id,
                fields,
                increment_checkin_error_count=increment_error_count,
            )
        except LedgerError as e:
            logger.error(f"[签到] 更新账号 {account.username} 失败: {e}")
            outcome.errors.append(f"更新账号失败: {e}")

    async def _apply_balance(self, account: Account, result: AcquisitionResult, outcome: CheckinOutcome) -> None:
        """以增量方式写回余额，不覆盖账本中的绝对值"""
        delta = result.snapshot.balance - account.balance
        if delta == 0:
            return

        try:
            change = await self.ledger.increment_balance(account.id, delta)
        except InsufficientBalanceError as e:
            logger.error(f"[签到] 账号 {account.username} 余额扣减被拒绝: 当前余额 {e.balance} 变动 {e.amount}")
            outcome.errors.append(str(e))
            return
        except LedgerError as e:
            logger.error(f"[签到] 账号 {account.username} 余额变动失败: {e}")
            outcome.errors.append(f"余额变动失败: {e}")
            return

        outcome.balance_change = change
        logger.info(f"[签到] 账号 {account.username} 余额 {change.old_balance} → {change.new_balance} ({delta:+d})")
