"""
Commission repository.

Data access layer for Commission model.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import ColumnElement, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.commission import Commission
from app.models.enums import CommissionStatus, CommissionType
from app.repositories.base import BaseRepository


class CommissionRepository(BaseRepository[Commission]):
    """Commission repository with filter and aggregate queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission repository."""
        super().__init__(Commission, session)

    @staticmethod
    def build_conditions(
        distributor_id: int | None = None,
        status: CommissionStatus | None = None,
        type: CommissionType | None = None,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
    ) -> list[ColumnElement[bool]]:
        """
        Translate optional filters into WHERE expressions.

        Args:
            distributor_id: Owner filter
            status: Status filter
            type: Commission type filter
            start_time: Inclusive lower bound on created_at
            end_time: Exclusive upper bound on created_at

        Returns:
            List of conditions (empty means no filtering)
        """
        conditions: list[ColumnElement[bool]] = []
        if distributor_id is not None:
            conditions.append(Commission.distributor_id == distributor_id)
        if status is not None:
            conditions.append(Commission.status == status.value)
        if type is not None:
            conditions.append(Commission.type == type.value)
        if start_time is not None:
            conditions.append(Commission.created_at >= start_time)
        if end_time is not None:
            conditions.append(Commission.created_at < end_time)
        return conditions

    async def find_filtered(
        self,
        conditions: list[ColumnElement[bool]],
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[Commission], int]:
        """List commissions newest first."""
        stmt = (
            select(Commission)
            .where(*conditions)
            .order_by(Commission.created_at.desc(), Commission.id.desc())
        )
        return await self.paginate(stmt, page, per_page)

    async def sum_amount(self, *conditions: ColumnElement[bool]) -> Decimal:
        """Sum of amount over matching rows, 0 when none."""
        stmt = select(func.coalesce(func.sum(Commission.amount), 0)).where(
            *conditions
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

    async def sum_order_amount(self, *conditions: ColumnElement[bool]) -> Decimal:
        """Sum of order_amount over matching rows, 0 when none."""
        stmt = select(func.coalesce(func.sum(Commission.order_amount), 0)).where(
            *conditions
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

    async def get_by_order_id(self, order_id: int) -> list[Commission]:
        """All commissions generated by one order."""
        stmt = (
            select(Commission)
            .where(Commission.order_id == order_id)
            .order_by(Commission.id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_pending_before(
        self, cutoff: datetime, limit: int
    ) -> list[Commission]:
        """Oldest pending commissions created before cutoff."""
        stmt = (
            select(Commission)
            .where(
                Commission.status == CommissionStatus.PENDING.value,
                Commission.created_at < cutoff,
            )
            .order_by(Commission.created_at, Commission.id)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def transition_status(
        self,
        commission_id: int,
        expected: CommissionStatus,
        target: CommissionStatus,
        **values: Any,
    ) -> bool:
        """Move status from expected to target; True if applied."""
        rows = await self.update_where(
            Commission.id == commission_id,
            Commission.status == expected.value,
            status=target.value,
            **values,
        )
        return rows == 1

    async def get_distributor_stats(self, distributor_id: int) -> dict[str, Any]:
        """
        Aggregate commission figures of one distributor.

        Args:
            distributor_id: Distributor ID

        Returns:
            Dict with total, pending, settled, direct, indirect amounts and count
        """
        def _sum_when(condition: ColumnElement[bool]) -> Any:
            return func.coalesce(
                func.sum(case((condition, Commission.amount), else_=0)), 0
            )

        stmt = select(
            func.coalesce(func.sum(Commission.amount), 0).label("total"),
            _sum_when(
                Commission.status == CommissionStatus.PENDING.value
            ).label("pending"),
            _sum_when(
                Commission.status == CommissionStatus.SETTLED.value
            ).label("settled"),
            _sum_when(Commission.type == CommissionType.DIRECT.value).label("direct"),
            _sum_when(
                Commission.type == CommissionType.INDIRECT.value
            ).label("indirect"),
            func.count(Commission.id).label("count"),
        ).where(Commission.distributor_id == distributor_id)

        row = (await self.session.execute(stmt)).one()
        return {
            "total": Decimal(str(row.total)),
            "pending": Decimal(str(row.pending)),
            "settled": Decimal(str(row.settled)),
            "direct": Decimal(str(row.direct)),
            "indirect": Decimal(str(row.indirect)),
            "count": row.count,
        }

    async def get_type_summary(
        self, *conditions: ColumnElement[bool]
    ) -> list[dict[str, Any]]:
        """Amount and count grouped by commission type."""
        stmt = (
            select(
                Commission.type,
                func.coalesce(func.sum(Commission.amount), 0).label("amount"),
                func.count(Commission.id).label("count"),
            )
            .where(*conditions)
            .group_by(Commission.type)
            .order_by(Commission.type)
        )
        result = await self.session.execute(stmt)
        return [
            {
                "type": row.type,
                "amount": Decimal(str(row.amount)),
                "count": row.count,
            }
            for row in result.all()
        ]
