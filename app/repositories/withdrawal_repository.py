"""
Withdrawal repository.

Data access layer for Withdrawal model.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import (
    OPEN_WITHDRAWAL_STATUSES,
    WithdrawalStatus,
    WithdrawalType,
)
from app.models.withdrawal import Withdrawal
from app.repositories.base import BaseRepository


class WithdrawalRepository(BaseRepository[Withdrawal]):
    """Withdrawal repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize withdrawal repository."""
        super().__init__(Withdrawal, session)

    async def get_by_no(self, withdrawal_no: str) -> Withdrawal | None:
        """Get withdrawal by its public number."""
        return await self.get_by(withdrawal_no=withdrawal_no)

    async def count_open_by_user(self, user_id: int) -> int:
        """Count withdrawals of a user that still hold frozen funds."""
        return await self.count(
            Withdrawal.user_id == user_id,
            Withdrawal.status.in_([s.value for s in OPEN_WITHDRAWAL_STATUSES]),
        )

    async def transition_status(
        self,
        withdrawal_id: int,
        expected: WithdrawalStatus,
        target: WithdrawalStatus,
        **values: Any,
    ) -> bool:
        """
        Move status from expected to target.

        Args:
            withdrawal_id: Withdrawal ID
            expected: Status the row must currently have
            target: New status
            **values: Extra columns set in the same statement

        Returns:
            True if this call performed the transition
        """
        rows = await self.update_where(
            Withdrawal.id == withdrawal_id,
            Withdrawal.status == expected.value,
            status=target.value,
            **values,
        )
        return rows == 1

    async def find_filtered(
        self,
        user_id: int | None = None,
        status: WithdrawalStatus | None = None,
        type: WithdrawalType | None = None,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
        page: int = 1,
        per_page: int = 20,
        oldest_first: bool = False,
    ) -> tuple[list[Withdrawal], int]:
        """
        List withdrawals with optional filters.

        Args:
            user_id: Owner filter
            status: Status filter
            type: Ledger filter
            start_time: Inclusive lower bound on created_at
            end_time: Exclusive upper bound on created_at
            page: Page number (1-indexed)
            per_page: Items per page
            oldest_first: Order for review queues

        Returns:
            Tuple of (withdrawals, total_count)
        """
        conditions: list[ColumnElement[bool]] = []
        if user_id is not None:
            conditions.append(Withdrawal.user_id == user_id)
        if status is not None:
            conditions.append(Withdrawal.status == status.value)
        if type is not None:
            conditions.append(Withdrawal.type == type.value)
        if start_time is not None:
            conditions.append(Withdrawal.created_at >= start_time)
        if end_time is not None:
            conditions.append(Withdrawal.created_at < end_time)

        order = (
            (Withdrawal.created_at, Withdrawal.id)
            if oldest_first
            else (Withdrawal.created_at.desc(), Withdrawal.id.desc())
        )
        stmt = select(Withdrawal).where(*conditions).order_by(*order)
        return await self.paginate(stmt, page, per_page)

    async def sum_actual_amount(self, *conditions: ColumnElement[bool]) -> Decimal:
        """Sum of actual_amount over matching rows, 0 when none."""
        stmt = select(
            func.coalesce(func.sum(Withdrawal.actual_amount), 0)
        ).where(*conditions)
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

    async def sum_amount(self, *conditions: ColumnElement[bool]) -> Decimal:
        """Sum of amount over matching rows, 0 when none."""
        stmt = select(func.coalesce(func.sum(Withdrawal.amount), 0)).where(
            *conditions
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

    async def find_recent_by_user(
        self,
        user_id: int,
        limit: int = 10,
        type: WithdrawalType | None = None,
    ) -> list[Withdrawal]:
        """Latest withdrawals of a user, optionally of one type."""
        conditions = [Withdrawal.user_id == user_id]
        if type is not None:
            conditions.append(Withdrawal.type == type.value)
        stmt = (
            select(Withdrawal)
            .where(*conditions)
            .order_by(Withdrawal.created_at.desc(), Withdrawal.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
