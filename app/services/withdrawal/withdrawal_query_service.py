"""
Withdrawal query service.

Read-only withdrawal lookups for users and admins.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import OPEN_WITHDRAWAL_STATUSES, WithdrawalStatus
from app.models.withdrawal import Withdrawal
from app.repositories.withdrawal_repository import WithdrawalRepository
from app.services.schemas import (
    Page,
    UserWithdrawalStats,
    WithdrawalFilter,
)
from app.utils.encryption import EncryptionService, get_encryption_service
from app.utils.exceptions import NotFoundError


class WithdrawalQueryService:
    """Handles withdrawal queries and history."""

    def __init__(
        self,
        session: AsyncSession,
        encryption: EncryptionService | None = None,
    ) -> None:
        """
        Initialize withdrawal query service.

        Args:
            session: Database session
            encryption: Decrypts account details (defaults to singleton)
        """
        self.session = session
        self.withdrawal_repo = WithdrawalRepository(session)
        self._encryption = encryption

    async def get_withdrawal(self, withdrawal_id: int) -> Withdrawal:
        """Get withdrawal or raise NotFoundError."""
        withdrawal = await self.withdrawal_repo.get_by_id(withdrawal_id)
        if withdrawal is None:
            raise NotFoundError("提现记录不存在")
        return withdrawal

    async def get_by_no(self, withdrawal_no: str) -> Withdrawal:
        """Get withdrawal by number or raise NotFoundError."""
        withdrawal = await self.withdrawal_repo.get_by_no(withdrawal_no)
        if withdrawal is None:
            raise NotFoundError("提现记录不存在")
        return withdrawal

    def get_account_info(self, withdrawal: Withdrawal) -> str:
        """Decrypt payout account details for the payout operator."""
        encryption = self._encryption or get_encryption_service()
        return encryption.decrypt(withdrawal.account_info_encrypted)

    async def list_withdrawals(
        self,
        filter: WithdrawalFilter | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page:
        """
        List withdrawals newest first.

        Args:
            filter: Optional filters
            page: Page number (1-indexed)
            limit: Items per page

        Returns:
            Page of withdrawals
        """
        filter = filter or WithdrawalFilter()
        items, total = await self.withdrawal_repo.find_filtered(
            user_id=filter.user_id,
            status=filter.status,
            type=filter.type,
            start_time=filter.start_time,
            end_time=filter.end_time,
            page=page,
            per_page=limit,
        )
        return Page(items=items, total=total, page=page, limit=limit)

    async def get_user_withdrawals(
        self, user_id: int, page: int = 1, limit: int = 20
    ) -> Page:
        """Withdrawal history of one user."""
        return await self.list_withdrawals(
            WithdrawalFilter(user_id=user_id), page, limit
        )

    async def get_pending_withdrawals(
        self, page: int = 1, limit: int = 20
    ) -> Page:
        """Review queue, oldest first."""
        return await self._queue(WithdrawalStatus.PENDING, page, limit)

    async def get_approved_withdrawals(
        self, page: int = 1, limit: int = 20
    ) -> Page:
        """Approved withdrawals awaiting payout, oldest first."""
        return await self._queue(WithdrawalStatus.APPROVED, page, limit)

    async def _queue(
        self, status: WithdrawalStatus, page: int, limit: int
    ) -> Page:
        items, total = await self.withdrawal_repo.find_filtered(
            status=status, page=page, per_page=limit, oldest_first=True
        )
        return Page(items=items, total=total, page=page, limit=limit)

    async def get_user_stats(self, user_id: int) -> UserWithdrawalStats:
        """
        Withdrawal totals of one user.

        Args:
            user_id: User ID

        Returns:
            Counts, paid-out total and amount still in flight
        """
        repo = self.withdrawal_repo
        owned = Withdrawal.user_id == user_id
        success = Withdrawal.status == WithdrawalStatus.SUCCESS.value
        open_statuses = Withdrawal.status.in_(
            [s.value for s in OPEN_WITHDRAWAL_STATUSES]
        )

        return UserWithdrawalStats(
            total_count=await repo.count(owned),
            pending_count=await repo.count(
                owned, Withdrawal.status == WithdrawalStatus.PENDING.value
            ),
            success_count=await repo.count(owned, success),
            total_withdrawn=await repo.sum_actual_amount(owned, success),
            pending_amount=await repo.sum_amount(owned, open_statuses),
        )
