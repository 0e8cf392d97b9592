"""
Distributor repository.

Data access layer for Distributor model. Counter and balance changes are
expressed as SQL arithmetic so concurrent requests never overwrite each other.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.distributor import Distributor
from app.models.enums import DistributorStatus
from app.repositories.base import BaseRepository


class DistributorRepository(BaseRepository[Distributor]):
    """Distributor repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize distributor repository."""
        super().__init__(Distributor, session)

    async def get_by_user_id(self, user_id: int) -> Distributor | None:
        """Get distributor record of a user."""
        return await self.get_by(user_id=user_id)

    async def get_by_invite_code(self, invite_code: str) -> Distributor | None:
        """Get distributor by invite code."""
        return await self.get_by(invite_code=invite_code)

    async def get_approved_by_user_id(self, user_id: int) -> Distributor | None:
        """Get distributor of a user only if approved."""
        return await self.get_by(
            user_id=user_id, status=DistributorStatus.APPROVED.value
        )

    async def invite_code_exists(self, invite_code: str) -> bool:
        """Check if invite code is taken."""
        return await self.exists(invite_code=invite_code)

    async def transition_status(
        self,
        distributor_id: int,
        expected: DistributorStatus,
        target: DistributorStatus,
        **values: Any,
    ) -> bool:
        """
        Move status from expected to target.

        Args:
            distributor_id: Distributor ID
            expected: Status the row must currently have
            target: New status
            **values: Extra columns set in the same statement

        Returns:
            True if this call performed the transition
        """
        rows = await self.update_where(
            Distributor.id == distributor_id,
            Distributor.status == expected.value,
            status=target.value,
            **values,
        )
        return rows == 1

    async def increment_counts(
        self, distributor_id: int, direct: bool = False
    ) -> int:
        """
        Add one member to team_count, and to direct_count if direct.

        Args:
            distributor_id: Distributor ID
            direct: Whether the new member is a direct referral

        Returns:
            Number of rows affected
        """
        values: dict[str, Any] = {"team_count": Distributor.team_count + 1}
        if direct:
            values["direct_count"] = Distributor.direct_count + 1
        return await self.update_where(Distributor.id == distributor_id, **values)

    async def get_parent_id(self, distributor_id: int) -> tuple[bool, int | None]:
        """
        Look up the parent link of a distributor.

        Args:
            distributor_id: Distributor ID

        Returns:
            Tuple of (found, parent_id)
        """
        result = await self.session.execute(
            select(Distributor.parent_id).where(Distributor.id == distributor_id)
        )
        row = result.first()
        if row is None:
            return False, None
        return True, row.parent_id

    # Commission balances

    async def freeze_commission(self, user_id: int, amount: Decimal) -> bool:
        """
        Move amount from available to frozen commission.

        Returns:
            False if available commission is lower than amount
        """
        rows = await self.update_where(
            Distributor.user_id == user_id,
            Distributor.available_commission >= amount,
            available_commission=Distributor.available_commission - amount,
            frozen_commission=Distributor.frozen_commission + amount,
        )
        return rows == 1

    async def unfreeze_commission(self, user_id: int, amount: Decimal) -> int:
        """Return frozen commission to available."""
        return await self.update_where(
            Distributor.user_id == user_id,
            available_commission=Distributor.available_commission + amount,
            frozen_commission=Distributor.frozen_commission - amount,
        )

    async def debit_frozen_commission(self, user_id: int, amount: Decimal) -> int:
        """Move frozen commission to withdrawn after payout."""
        return await self.update_where(
            Distributor.user_id == user_id,
            frozen_commission=Distributor.frozen_commission - amount,
            withdrawn_commission=Distributor.withdrawn_commission + amount,
        )

    async def credit_commission(self, distributor_id: int, amount: Decimal) -> int:
        """Add a settled commission to total and available."""
        return await self.update_where(
            Distributor.id == distributor_id,
            total_commission=Distributor.total_commission + amount,
            available_commission=Distributor.available_commission + amount,
        )

    async def revoke_commission(self, distributor_id: int, amount: Decimal) -> bool:
        """
        Take back a settled commission.

        Returns:
            False if available commission no longer covers amount
        """
        rows = await self.update_where(
            Distributor.id == distributor_id,
            Distributor.available_commission >= amount,
            total_commission=Distributor.total_commission - amount,
            available_commission=Distributor.available_commission - amount,
        )
        return rows == 1

    # Listing

    async def find_filtered(
        self,
        status: DistributorStatus | None = None,
        level: int | None = None,
        parent_id: int | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[Distributor], int]:
        """
        List distributors newest first.

        Args:
            status: Optional status filter
            level: Optional level filter
            parent_id: Optional upline filter
            page: Page number (1-indexed)
            per_page: Items per page

        Returns:
            Tuple of (distributors, total_count)
        """
        stmt = select(Distributor)
        if status is not None:
            stmt = stmt.where(Distributor.status == status.value)
        if level is not None:
            stmt = stmt.where(Distributor.level == level)
        if parent_id is not None:
            stmt = stmt.where(Distributor.parent_id == parent_id)

        stmt = stmt.order_by(Distributor.id.desc())
        return await self.paginate(stmt, page, per_page)

    async def find_team_members(
        self,
        distributor_id: int,
        direct_only: bool = True,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[Distributor], int]:
        """
        List direct members, or direct plus second-level members.

        Args:
            distributor_id: Team owner
            direct_only: Only members whose parent is the owner
            page: Page number (1-indexed)
            per_page: Items per page

        Returns:
            Tuple of (members, total_count)
        """
        condition = Distributor.parent_id == distributor_id
        if not direct_only:
            children = select(Distributor.id).where(
                Distributor.parent_id == distributor_id
            )
            condition = or_(condition, Distributor.parent_id.in_(children))

        stmt = select(Distributor).where(condition).order_by(Distributor.id.desc())
        return await self.paginate(stmt, page, per_page)

    async def find_top(self, limit: int = 10) -> list[Distributor]:
        """Approved distributors ranked by total commission."""
        stmt = (
            select(Distributor)
            .where(Distributor.status == DistributorStatus.APPROVED.value)
            .order_by(Distributor.total_commission.desc(), Distributor.id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_new_members(
        self,
        parent_id: int,
        since: datetime,
        until: datetime | None = None,
    ) -> int:
        """Count direct members created in a time window."""
        conditions = [
            Distributor.parent_id == parent_id,
            Distributor.created_at >= since,
        ]
        if until is not None:
            conditions.append(Distributor.created_at < until)
        return await self.count(*conditions)
