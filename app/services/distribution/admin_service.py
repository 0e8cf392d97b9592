"""
Distribution admin service.

Operations behind the admin panel: distributor review, commission and
withdrawal listing, withdrawal state transitions and platform statistics.

Transitions return True when this call changed the status and False when
the entity was already past the expected status. The status guard is part of
the UPDATE statement, so concurrent duplicate requests resolve to exactly one
effective transition.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.commission import Commission
from app.models.distributor import Distributor
from app.models.enums import DistributorStatus, WithdrawalStatus
from app.models.withdrawal import Withdrawal
from app.repositories.commission_repository import CommissionRepository
from app.repositories.distributor_repository import DistributorRepository
from app.repositories.withdrawal_repository import WithdrawalRepository
from app.services.base_service import BaseService, transaction
from app.services.distribution.chain_manager import DistributorChainManager
from app.services.distribution.commission_service import CommissionService
from app.services.schemas import (
    CommissionFilter,
    DistributionStats,
    DistributorFilter,
    Page,
    WithdrawalFilter,
)
from app.services.withdrawal.withdrawal_lifecycle_handler import (
    WithdrawalLifecycleHandler,
)
from app.services.withdrawal.withdrawal_query_service import (
    WithdrawalQueryService,
)
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import NotFoundError


class DistributionAdminService(BaseService):
    """Admin operations over distributors, commissions and withdrawals."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize distribution admin service."""
        super().__init__(session)
        self.distributor_repo = DistributorRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.withdrawal_repo = WithdrawalRepository(session)
        self.chain_manager = DistributorChainManager(session)
        self.commission_service = CommissionService(session)
        self.lifecycle = WithdrawalLifecycleHandler(session)
        self.withdrawal_queries = WithdrawalQueryService(session)

    # Distributors

    async def list_distributors(
        self,
        filter: DistributorFilter | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page:
        """List distributors newest first."""
        filter = filter or DistributorFilter()
        items, total = await self.distributor_repo.find_filtered(
            status=filter.status,
            level=filter.level,
            parent_id=filter.parent_id,
            page=page,
            per_page=limit,
        )
        return Page(items=items, total=total, page=page, limit=limit)

    async def get_pending_distributors(
        self, page: int = 1, limit: int = 20
    ) -> Page:
        """Applications awaiting review."""
        return await self.list_distributors(
            DistributorFilter(status=DistributorStatus.PENDING), page, limit
        )

    async def get_distributor(self, distributor_id: int) -> Distributor:
        """Get distributor or raise NotFoundError."""
        distributor = await self.distributor_repo.get_by_id(distributor_id)
        if distributor is None:
            raise NotFoundError("分销商不存在")
        return distributor

    @transaction
    async def approve_distributor(
        self, distributor_id: int, operator_id: int
    ) -> bool:
        """
        Approve a pending distributor and grow every upline team.

        The parent gains one direct and one team member, each further
        ancestor one team member. Status change and all counter updates
        commit together or not at all.

        Args:
            distributor_id: Distributor ID
            operator_id: Reviewing admin

        Returns:
            True if approved, False if it was already reviewed

        Raises:
            NotFoundError: If distributor does not exist
            ReferralChainError: If the upline chain is broken, cyclic or
                deeper than settings.referral_max_depth
        """
        distributor = await self.get_distributor(distributor_id)
        if distributor.status != DistributorStatus.PENDING:
            return False

        applied = await self.distributor_repo.transition_status(
            distributor_id,
            DistributorStatus.PENDING,
            DistributorStatus.APPROVED,
            approved_at=utc_now(),
            approved_by=operator_id,
        )
        if not applied:
            return False

        ancestors = await self.chain_manager.register_new_member(distributor_id)

        self.logger.info(
            "Distributor approved",
            extra={
                "distributor_id": distributor_id,
                "operator_id": operator_id,
                "ancestors_updated": len(ancestors),
            },
        )
        return True

    @transaction
    async def reject_distributor(
        self, distributor_id: int, operator_id: int, reason: str
    ) -> bool:
        """
        Reject a pending distributor.

        A distributor that is missing or already reviewed is left alone.

        Returns:
            True if rejected, False otherwise
        """
        applied = await self.distributor_repo.transition_status(
            distributor_id,
            DistributorStatus.PENDING,
            DistributorStatus.REJECTED,
            approved_at=utc_now(),
            approved_by=operator_id,
            reject_reason=reason,
        )
        if applied:
            self.logger.info(
                "Distributor rejected",
                extra={
                    "distributor_id": distributor_id,
                    "operator_id": operator_id,
                    "reason": reason,
                },
            )
        return applied

    # Commissions

    async def list_commissions(
        self,
        filter: CommissionFilter | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page:
        """List commissions with optional filters."""
        return await self.commission_service.list_commissions(filter, page, limit)

    async def get_commission(self, commission_id: int) -> Commission:
        """Get commission or raise NotFoundError."""
        commission = await self.commission_repo.get_by_id(commission_id)
        if commission is None:
            raise NotFoundError("佣金记录不存在")
        return commission

    # Withdrawals

    async def list_withdrawals(
        self,
        filter: WithdrawalFilter | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page:
        """List withdrawals with optional filters."""
        return await self.withdrawal_queries.list_withdrawals(filter, page, limit)

    async def get_withdrawal(self, withdrawal_id: int) -> Withdrawal:
        """Get withdrawal or raise NotFoundError."""
        return await self.withdrawal_queries.get_withdrawal(withdrawal_id)

    async def get_pending_withdrawals(self, page: int = 1, limit: int = 20) -> Page:
        """Withdrawals awaiting review."""
        return await self.withdrawal_queries.get_pending_withdrawals(page, limit)

    async def get_approved_withdrawals(self, page: int = 1, limit: int = 20) -> Page:
        """Withdrawals awaiting payout."""
        return await self.withdrawal_queries.get_approved_withdrawals(page, limit)

    async def approve_withdrawal(self, withdrawal_id: int, operator_id: int) -> bool:
        """Approve a pending withdrawal."""
        return await self.lifecycle.approve_withdrawal(withdrawal_id, operator_id)

    async def reject_withdrawal(
        self, withdrawal_id: int, operator_id: int, reason: str
    ) -> bool:
        """Reject a pending withdrawal and release its funds."""
        return await self.lifecycle.reject_withdrawal(
            withdrawal_id, operator_id, reason
        )

    async def process_withdrawal(self, withdrawal_id: int) -> bool:
        """Start paying out an approved withdrawal."""
        return await self.lifecycle.process_withdrawal(withdrawal_id)

    async def complete_withdrawal(self, withdrawal_id: int) -> bool:
        """Finish a payout and debit the frozen funds."""
        return await self.lifecycle.complete_withdrawal(withdrawal_id)

    # Statistics

    async def get_stats(self) -> DistributionStats:
        """
        Platform-wide distribution statistics.

        Returns:
            Approved and pending distributor counts, sum of all commission
            amounts regardless of status, pending withdrawal count and
            total paid out (actual_amount of successful withdrawals)
        """
        return DistributionStats(
            total_distributors=await self.distributor_repo.count(
                status=DistributorStatus.APPROVED.value
            ),
            pending_distributors=await self.distributor_repo.count(
                status=DistributorStatus.PENDING.value
            ),
            total_commission=await self.commission_repo.sum_amount(),
            pending_withdrawals=await self.withdrawal_repo.count(
                status=WithdrawalStatus.PENDING.value
            ),
            total_withdrawn=await self.withdrawal_repo.sum_actual_amount(
                Withdrawal.status == WithdrawalStatus.SUCCESS.value
            ),
        )
