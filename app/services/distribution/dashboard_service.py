"""
Distributor dashboard service.

Read-only figures for a distributor's own dashboard.
"""

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.commission import Commission
from app.models.enums import CommissionType, WithdrawalType
from app.models.withdrawal import Withdrawal
from app.repositories.commission_repository import CommissionRepository
from app.repositories.distributor_repository import DistributorRepository
from app.repositories.withdrawal_repository import WithdrawalRepository
from app.services.base_service import BaseService
from app.services.schemas import CommissionTrendPoint, DashboardOverview
from app.utils.datetime_utils import start_of_day, start_of_month, utc_now
from app.utils.exceptions import NotFoundError

MAX_TREND_DAYS = 30


class DashboardService(BaseService):
    """Distributor dashboard statistics."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize dashboard service."""
        super().__init__(session)
        self.distributor_repo = DistributorRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.withdrawal_repo = WithdrawalRepository(session)

    async def get_overview(
        self, distributor_id: int, now: datetime | None = None
    ) -> DashboardOverview:
        """
        Balances, team size and promotion figures of a distributor.

        Args:
            distributor_id: Distributor ID
            now: Reference time (defaults to now)

        Returns:
            Dashboard overview

        Raises:
            NotFoundError: If distributor does not exist
        """
        distributor = await self.distributor_repo.get_by_id(distributor_id)
        if distributor is None:
            raise NotFoundError("分销商不存在")

        now = now or utc_now()
        today = start_of_day(now)
        tomorrow = today + timedelta(days=1)
        month = start_of_month(now)

        repo = self.commission_repo
        owned = Commission.distributor_id == distributor_id
        in_today = (Commission.created_at >= today, Commission.created_at < tomorrow)
        in_month = Commission.created_at >= month

        return DashboardOverview(
            total_commission=distributor.total_commission,
            available_commission=distributor.available_commission,
            frozen_commission=distributor.frozen_commission,
            withdrawn_commission=distributor.withdrawn_commission,
            today_commission=await repo.sum_amount(owned, *in_today),
            month_commission=await repo.sum_amount(owned, in_month),
            team_count=distributor.team_count,
            direct_count=distributor.direct_count,
            today_new_members=await self.distributor_repo.count_new_members(
                distributor_id, today, tomorrow
            ),
            month_new_members=await self.distributor_repo.count_new_members(
                distributor_id, month
            ),
            total_orders=await repo.count(owned),
            today_orders=await repo.count(owned, *in_today),
            month_orders=await repo.count(owned, in_month),
            total_order_amount=await repo.sum_order_amount(owned),
        )

    async def get_commission_trend(
        self,
        distributor_id: int,
        days: int = 7,
        now: datetime | None = None,
    ) -> list[CommissionTrendPoint]:
        """
        Daily commission figures, oldest day first.

        Args:
            distributor_id: Distributor ID
            days: Number of days including today (1-30, default 7)
            now: Reference time (defaults to now)

        Returns:
            One point per day
        """
        if days <= 0:
            days = 7
        days = min(days, MAX_TREND_DAYS)

        today = start_of_day(now or utc_now())
        owned = Commission.distributor_id == distributor_id
        repo = self.commission_repo

        points = []
        for offset in range(days - 1, -1, -1):
            day_start = today - timedelta(days=offset)
            window = (
                owned,
                Commission.created_at >= day_start,
                Commission.created_at < day_start + timedelta(days=1),
            )
            points.append(
                CommissionTrendPoint(
                    date=day_start.strftime("%Y-%m-%d"),
                    commission=await repo.sum_amount(*window),
                    orders=await repo.count(*window),
                    direct_commission=await repo.sum_amount(
                        *window, Commission.type == CommissionType.DIRECT.value
                    ),
                    indirect_commission=await repo.sum_amount(
                        *window, Commission.type == CommissionType.INDIRECT.value
                    ),
                )
            )
        return points

    async def get_recent_commissions(
        self, distributor_id: int, limit: int = 10
    ) -> list[Commission]:
        """Latest commissions of a distributor."""
        items, _ = await self.commission_repo.find_filtered(
            [Commission.distributor_id == distributor_id], 1, limit
        )
        return items

    async def get_recent_withdrawals(
        self, user_id: int, limit: int = 10
    ) -> list[Withdrawal]:
        """Latest commission withdrawals of a user."""
        return await self.withdrawal_repo.find_recent_by_user(
            user_id, limit if limit > 0 else 10, WithdrawalType.COMMISSION
        )

    async def get_commission_type_summary(
        self,
        distributor_id: int,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """Commission amount and count per type in a time window."""
        conditions = self.commission_repo.build_conditions(
            distributor_id=distributor_id,
            start_time=start_time,
            end_time=end_time,
        )
        return await self.commission_repo.get_type_summary(*conditions)
