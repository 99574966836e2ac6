"""改账密服务

处理单条改账密申请: 进行中 → 初始化浏览器 → 执行修改（用户名冲突时可重试一次）→ 上报结果。
"""

import logging
from collections.abc import Callable

from anyrouter_checkin.config.constants import PasswordChangeStatus
from anyrouter_checkin.config.settings import Settings, get_settings
from anyrouter_checkin.core.exceptions import LedgerError, ValidationError
from anyrouter_checkin.ledger.base import AccountLedger
from anyrouter_checkin.models.password_change import PasswordChangeRequest
from anyrouter_checkin.models.results import RotationResult
from anyrouter_checkin.services.password_rotator import PasswordRotator
from anyrouter_checkin.utils.validator import is_duplicate_username_error, make_username_candidate

logger = logging.getLogger(__name__)


class PasswordChangeService:
    """改账密申请处理服务"""

    def __init__(
        self,
        ledger: AccountLedger,
        rotator_factory: Callable[..., PasswordRotator] | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.ledger = ledger
        self._rotator_factory = rotator_factory or PasswordRotator

    async def execute(self, request: PasswordChangeRequest) -> RotationResult:
        """
        执行一条改账密申请

        无论成功失败，结果都会上报账本后才返回。

        已完成的申请不再执行；错误状态的申请由调度方带着错误次数重新提交，照常执行。

        Raises:
            ValidationError: 申请已完成
            LedgerError: 最终结果上报失败
        """
        if request.status == PasswordChangeStatus.COMPLETED:
            raise ValidationError(f"申请 {request.record_id} 已完成，不能重复执行")

        logger.info(
            f"[改账密] 开始处理申请 {request.record_id}: {request.old_username} → "
            f"{request.new_username or '(不修改)'} 密码{'修改' if request.new_password else '不修改'} "
            f"错误次数 {request.error_count}"
        )

        await self._mark_in_progress(request)

        rotator = self._rotator_factory(settings=self.settings)
        try:
            success, message = await rotator.initialize()
            if success:
                result = await self._rotate(rotator, request)
            else:
                # 本地环境问题，不计入错误次数
                result = RotationResult(success=False, message=f"浏览器初始化失败: {message}")
        except Exception as e:
            logger.error(f"[改账密] 执行过程中发生异常: 申请 {request.record_id} - {e}", exc_info=True)
            result = RotationResult(success=False, message=f"执行异常: {e}")
        finally:
            await rotator.cleanup()

        await self._report(request, result)
        return result

    async def _mark_in_progress(self, request: PasswordChangeRequest) -> None:
        try:
            await self.ledger.update_password_change(request.record_id, status=PasswordChangeStatus.IN_PROGRESS)
        except LedgerError as e:
            logger.warning(f"[改账密] 更新申请 {request.record_id} 为进行中失败: {e}")

    async def _rotate(self, rotator: PasswordRotator, request: PasswordChangeRequest) -> RotationResult:
        result = await rotator.change_password(
            request.old_username,
            request.old_password,
            request.new_username,
            request.new_password,
        )
        if result.success or not self._should_retry_conflict(request, result):
            return result

        candidate = make_username_candidate(request.new_username, self.settings.conflict_suffix_length)
        logger.info(f"[改账密] 用户名 {request.new_username} 已被占用，使用 {candidate} 重试一次")

        return await rotator.change_password(
            request.old_username,
            request.old_password,
            candidate,
            request.new_password,
        )

    def _should_retry_conflict(self, request: PasswordChangeRequest, result: RotationResult) -> bool:
        """用户名冲突且错误次数达到阈值时才重试"""
        return (
            bool(request.new_username)
            and request.error_count == self.settings.conflict_retry_error_count
            and is_duplicate_username_error(result.message)
        )

    async def _report(self, request: PasswordChangeRequest, result: RotationResult) -> None:
        if result.success:
            user_info = result.user_info or {}
            await self.ledger.update_password_change(
                request.record_id,
                status=PasswordChangeStatus.COMPLETED,
                new_username=user_info.get("username") or request.new_username,
                account_info=user_info,
            )
            logger.info(f"[改账密] 申请 {request.record_id} 已完成，结果已上报")
            return

        logger.warning(
            f"[改账密] 申请 {request.record_id} 失败: {result.message} "
            f"(计入错误次数: {'是' if result.is_api_error else '否'})"
        )
        await self.ledger.update_password_change(
            request.record_id,
            status=PasswordChangeStatus.ERROR,
            error_reason=result.message,
            increment_error_count=result.is_api_error,
        )
