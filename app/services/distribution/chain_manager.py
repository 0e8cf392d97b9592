"""
Referral chain management module.

Propagates team-size counters up the distributor tree when a member is
approved. The walk is bounded; a broken chain is an error, never a silent stop.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.repositories.distributor_repository import DistributorRepository
from app.utils.exceptions import ReferralChainError


class DistributorChainManager:
    """Manages referral chain operations."""

    def __init__(
        self, session: AsyncSession, max_depth: int | None = None
    ) -> None:
        """
        Initialize chain manager.

        Args:
            session: Database session
            max_depth: Ancestor limit (defaults to settings.referral_max_depth)
        """
        self.session = session
        self.distributor_repo = DistributorRepository(session)
        self.max_depth = max_depth or settings.referral_max_depth

    async def get_ancestor_ids(self, distributor_id: int) -> list[int]:
        """
        Collect strict ancestors from parent upward.

        Args:
            distributor_id: Starting distributor

        Returns:
            Ancestor IDs, nearest first

        Raises:
            ReferralChainError: Missing ancestor, cycle or depth exceeded
        """
        found, parent_id = await self.distributor_repo.get_parent_id(distributor_id)
        if not found:
            raise ReferralChainError(f"分销商不存在: {distributor_id}")

        ancestors: list[int] = []
        visited = {distributor_id}
        current = parent_id

        while current is not None:
            if current in visited:
                raise ReferralChainError(
                    f"推荐关系存在循环: {distributor_id} -> {current}"
                )
            if len(ancestors) >= self.max_depth:
                raise ReferralChainError(
                    f"推荐层级超过上限 {self.max_depth}: {distributor_id}"
                )

            found, next_parent = await self.distributor_repo.get_parent_id(current)
            if not found:
                raise ReferralChainError(f"上级分销商不存在: {current}")

            ancestors.append(current)
            visited.add(current)
            current = next_parent

        return ancestors

    async def register_new_member(self, distributor_id: int) -> list[int]:
        """
        Count a newly approved distributor in every upline team.

        The parent gains one direct member and one team member; every
        strict ancestor of the parent gains one team member. Must run in
        the caller's transaction so a failure undoes all increments.

        Args:
            distributor_id: Newly approved distributor

        Returns:
            Updated ancestor IDs, nearest first

        Raises:
            ReferralChainError: If the chain is broken
        """
        ancestors = await self.get_ancestor_ids(distributor_id)

        for depth, ancestor_id in enumerate(ancestors):
            rows = await self.distributor_repo.increment_counts(
                ancestor_id, direct=depth == 0
            )
            if rows != 1:
                raise ReferralChainError(f"上级分销商不存在: {ancestor_id}")

        if ancestors:
            logger.debug(
                "Team counters propagated",
                extra={
                    "distributor_id": distributor_id,
                    "parent_id": ancestors[0],
                    "depth": len(ancestors),
                },
            )

        return ancestors
