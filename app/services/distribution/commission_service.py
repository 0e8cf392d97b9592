"""
Commission service.

Generates commissions from paid orders, settles them after the configured
delay and cancels them on refund. Settlement and cancellation move distributor
balances only after the commission status guard succeeded.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.commission import Commission
from app.models.enums import CommissionStatus, CommissionType
from app.repositories.commission_repository import CommissionRepository
from app.repositories.distributor_repository import DistributorRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService, log_operation, transaction
from app.services.distribution.commission_setting_service import (
    CommissionSettingService,
)
from app.services.schemas import (
    CommissionFilter,
    CommissionResult,
    CommissionStats,
    Page,
)
from app.utils.datetime_utils import days_ago, utc_now
from app.utils.exceptions import (
    NotFoundError,
    OperationFailedError,
    ValidationError,
)
from app.validators.distribution import quantize_money


class CommissionService(BaseService):
    """Commission ledger operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission service."""
        super().__init__(session)
        self.commission_repo = CommissionRepository(session)
        self.distributor_repo = DistributorRepository(session)
        self.user_repo = UserRepository(session)
        self.setting_service = CommissionSettingService(session)

    @transaction
    async def calculate_for_order(
        self, order_id: int, user_id: int, order_amount: Decimal
    ) -> CommissionResult:
        """
        Record commissions for a paid order.

        The buyer's registration referrer earns the direct commission if it
        is an approved distributor; that distributor's parent earns the
        indirect commission if approved too.

        Args:
            order_id: Paid order
            user_id: Buyer
            order_amount: Amount actually paid

        Returns:
            Created commissions (either may be None)

        Raises:
            ValidationError: If order amount is not positive
            NotFoundError: If buyer does not exist
        """
        order_amount = Decimal(order_amount)
        if order_amount <= 0:
            raise ValidationError("订单金额无效")

        buyer = await self.user_repo.get_by_id(user_id)
        if buyer is None:
            raise NotFoundError("用户不存在")

        result = CommissionResult()
        if buyer.referrer_id is None:
            return result

        direct = await self.distributor_repo.get_approved_by_user_id(
            buyer.referrer_id
        )
        if direct is None:
            return result

        config = await self.setting_service.get_config()
        result.direct = await self._record(
            direct.id, order_id, user_id, CommissionType.DIRECT,
            order_amount, config.direct_rate,
        )

        if direct.parent_id is not None:
            parent = await self.distributor_repo.get_by_id(direct.parent_id)
            if parent is not None and parent.is_approved:
                result.indirect = await self._record(
                    parent.id, order_id, user_id, CommissionType.INDIRECT,
                    order_amount, config.indirect_rate,
                )

        self.logger.info(
            "Order commissions recorded",
            extra={
                "order_id": order_id,
                "user_id": user_id,
                "total_amount": str(result.total_amount),
            },
        )
        return result

    async def _record(
        self,
        distributor_id: int,
        order_id: int,
        user_id: int,
        type: CommissionType,
        order_amount: Decimal,
        rate: Decimal,
    ) -> Commission | None:
        amount = quantize_money(order_amount * rate)
        if amount <= 0:
            return None
        return await self.commission_repo.create(
            distributor_id=distributor_id,
            order_id=order_id,
            from_user_id=user_id,
            type=type.value,
            order_amount=order_amount,
            rate=rate,
            amount=amount,
            status=CommissionStatus.PENDING.value,
        )

    @transaction
    async def settle(self, commission_id: int) -> bool:
        """
        Settle a pending commission into the distributor's balance.

        Args:
            commission_id: Commission ID

        Returns:
            True if settled, False if it was no longer pending

        Raises:
            NotFoundError: If commission does not exist
        """
        return await self._settle_one(commission_id)

    async def _settle_one(self, commission_id: int) -> bool:
        commission = await self.commission_repo.get_by_id(commission_id)
        if commission is None:
            raise NotFoundError("佣金记录不存在")

        applied = await self.commission_repo.transition_status(
            commission_id,
            CommissionStatus.PENDING,
            CommissionStatus.SETTLED,
            settled_at=utc_now(),
        )
        if not applied:
            return False

        rows = await self.distributor_repo.credit_commission(
            commission.distributor_id, commission.amount
        )
        if rows != 1:
            raise OperationFailedError("分销商不存在")
        return True

    @log_operation
    async def settle_pending(self, now: datetime | None = None) -> int:
        """
        Settle every pending commission older than the settle delay.

        Each commission is settled in its own transaction; at most
        settings.settlement_batch_size are handled per call. A commission
        that fails is logged and skipped so it cannot block the rest.

        Args:
            now: Reference time (defaults to now)

        Returns:
            Number of commissions settled
        """
        config = await self.setting_service.get_config()
        cutoff = days_ago(config.settle_delay, now)
        due = await self.commission_repo.find_pending_before(
            cutoff, settings.settlement_batch_size
        )
        due_ids = [commission.id for commission in due]

        settled = 0
        failed = 0
        for commission_id in due_ids:
            try:
                if await self.settle(commission_id):
                    settled += 1
            except Exception as e:
                failed += 1
                self.logger.error(
                    f"Commission {commission_id} settlement failed",
                    extra={"commission_id": commission_id, "error": str(e)},
                    exc_info=True,
                )

        if due_ids:
            self.logger.info(
                "Pending commissions settled",
                extra={"due": len(due_ids), "settled": settled, "failed": failed},
            )
        return settled

    @transaction
    async def cancel_by_order(self, order_id: int) -> int:
        """
        Cancel the commissions of a refunded order.

        Settled commissions are taken back from the distributor's total and
        available balance; if the distributor already withdrew the money the
        balance is left alone and a warning is logged.

        Args:
            order_id: Refunded order

        Returns:
            Number of commissions cancelled
        """
        cancelled = 0
        for commission in await self.commission_repo.get_by_order_id(order_id):
            if await self._cancel_one(commission):
                cancelled += 1

        self.logger.info(
            "Order commissions cancelled",
            extra={"order_id": order_id, "cancelled": cancelled},
        )
        return cancelled

    async def _cancel_one(self, commission: Commission) -> bool:
        # A concurrent settle can move the row between read and update, so
        # a missed guard re-reads the status and tries again.
        for _ in range(len(CommissionStatus)):
            status = CommissionStatus(commission.status)
            if status == CommissionStatus.CANCELLED:
                return False

            applied = await self.commission_repo.transition_status(
                commission.id, status, CommissionStatus.CANCELLED
            )
            if applied:
                if status == CommissionStatus.SETTLED:
                    await self._claw_back(commission)
                return True

            refreshed = await self.commission_repo.get_by_id(commission.id)
            if refreshed is None:
                return False
            commission = refreshed

        raise OperationFailedError("佣金状态变更冲突")

    async def _claw_back(self, commission: Commission) -> None:
        revoked = await self.distributor_repo.revoke_commission(
            commission.distributor_id, commission.amount
        )
        if not revoked:
            self.logger.warning(
                "Commission cancelled without balance clawback",
                extra={
                    "commission_id": commission.id,
                    "distributor_id": commission.distributor_id,
                    "amount": str(commission.amount),
                },
            )

    async def get_by_order_id(self, order_id: int) -> list[Commission]:
        """All commissions of an order."""
        return await self.commission_repo.get_by_order_id(order_id)

    async def list_commissions(
        self,
        filter: CommissionFilter | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page:
        """
        List commissions newest first.

        Args:
            filter: Optional filters
            page: Page number (1-indexed)
            limit: Items per page

        Returns:
            Page of commissions
        """
        filter = filter or CommissionFilter()
        conditions = self.commission_repo.build_conditions(
            distributor_id=filter.distributor_id,
            status=filter.status,
            type=filter.type,
            start_time=filter.start_time,
            end_time=filter.end_time,
        )
        items, total = await self.commission_repo.find_filtered(
            conditions, page, limit
        )
        return Page(items=items, total=total, page=page, limit=limit)

    async def get_stats(self, distributor_id: int) -> CommissionStats:
        """Commission totals of one distributor."""
        stats = await self.commission_repo.get_distributor_stats(distributor_id)
        return CommissionStats(**stats)
