"""
Withdrawal lifecycle handling module.

State machine of a withdrawal after it was requested:

    pending -> approved -> processing -> success
    pending -> rejected

Every transition is a single UPDATE guarded by the expected current status.
The guarded UPDATE is the compare-and-swap: when it matches no row another
request already moved the withdrawal and this call is a no-op. Balances move
only after the guard succeeded, in the same transaction.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import WithdrawalStatus
from app.models.withdrawal import Withdrawal
from app.repositories.withdrawal_repository import WithdrawalRepository
from app.services.base_service import BaseService, transaction
from app.services.withdrawal.withdrawal_balance_manager import (
    WithdrawalBalanceManager,
)
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import NotFoundError


class WithdrawalLifecycleHandler(BaseService):
    """Handles withdrawal lifecycle operations."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize withdrawal lifecycle handler.

        Args:
            session: Database session
        """
        super().__init__(session)
        self.withdrawal_repo = WithdrawalRepository(session)
        self.balance_manager = WithdrawalBalanceManager(session)

    async def _get(self, withdrawal_id: int) -> Withdrawal:
        withdrawal = await self.withdrawal_repo.get_by_id(withdrawal_id)
        if withdrawal is None:
            raise NotFoundError("提现记录不存在")
        return withdrawal

    def _log_transition(
        self,
        withdrawal_id: int,
        target: WithdrawalStatus,
        applied: bool,
        **extra: object,
    ) -> None:
        if applied:
            self.logger.info(
                f"Withdrawal {target.value}",
                extra={"withdrawal_id": withdrawal_id, **extra},
            )
        else:
            self.logger.debug(
                f"Withdrawal {target.value} skipped: status already changed",
                extra={"withdrawal_id": withdrawal_id},
            )

    @transaction
    async def approve_withdrawal(
        self, withdrawal_id: int, operator_id: int
    ) -> bool:
        """
        Approve a pending withdrawal. No money moves.

        Args:
            withdrawal_id: Withdrawal ID
            operator_id: Reviewing admin

        Returns:
            True if approved, False if it was not pending

        Raises:
            NotFoundError: If withdrawal does not exist
        """
        await self._get(withdrawal_id)
        applied = await self.withdrawal_repo.transition_status(
            withdrawal_id,
            WithdrawalStatus.PENDING,
            WithdrawalStatus.APPROVED,
            operator_id=operator_id,
            processed_at=utc_now(),
        )
        self._log_transition(
            withdrawal_id, WithdrawalStatus.APPROVED, applied,
            operator_id=operator_id,
        )
        return applied

    @transaction
    async def reject_withdrawal(
        self, withdrawal_id: int, operator_id: int, reason: str
    ) -> bool:
        """
        Reject a pending withdrawal and release its full amount.

        Args:
            withdrawal_id: Withdrawal ID
            operator_id: Reviewing admin
            reason: Rejection reason shown to the user

        Returns:
            True if rejected, False if it was not pending

        Raises:
            NotFoundError: If withdrawal does not exist
        """
        withdrawal = await self._get(withdrawal_id)
        applied = await self.withdrawal_repo.transition_status(
            withdrawal_id,
            WithdrawalStatus.PENDING,
            WithdrawalStatus.REJECTED,
            operator_id=operator_id,
            processed_at=utc_now(),
            reject_reason=reason,
        )
        if applied:
            await self.balance_manager.release(withdrawal)

        self._log_transition(
            withdrawal_id, WithdrawalStatus.REJECTED, applied,
            operator_id=operator_id, reason=reason,
        )
        return applied

    @transaction
    async def process_withdrawal(self, withdrawal_id: int) -> bool:
        """
        Mark an approved withdrawal as being paid out.

        Returns:
            True if moved to processing, False if it was not approved
        """
        await self._get(withdrawal_id)
        applied = await self.withdrawal_repo.transition_status(
            withdrawal_id,
            WithdrawalStatus.APPROVED,
            WithdrawalStatus.PROCESSING,
        )
        self._log_transition(withdrawal_id, WithdrawalStatus.PROCESSING, applied)
        return applied

    @transaction
    async def complete_withdrawal(self, withdrawal_id: int) -> bool:
        """
        Complete a processing withdrawal and debit its frozen funds.

        A repeated call finds the status already at success and debits
        nothing.

        Args:
            withdrawal_id: Withdrawal ID

        Returns:
            True if completed, False if it was not processing

        Raises:
            NotFoundError: If withdrawal does not exist
        """
        withdrawal = await self._get(withdrawal_id)
        applied = await self.withdrawal_repo.transition_status(
            withdrawal_id,
            WithdrawalStatus.PROCESSING,
            WithdrawalStatus.SUCCESS,
            completed_at=utc_now(),
        )
        if applied:
            await self.balance_manager.debit(withdrawal)

        self._log_transition(
            withdrawal_id, WithdrawalStatus.SUCCESS, applied,
            amount=str(withdrawal.amount),
        )
        return applied
