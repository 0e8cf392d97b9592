"""
Distributor service.

User-facing distributor operations: applying to the program and reading
team information.
"""

import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import (
    DISTRIBUTOR_LEVEL_DIRECT,
    DISTRIBUTOR_LEVEL_INDIRECT,
    INVITE_CODE_ATTEMPTS,
    INVITE_CODE_LENGTH,
)
from app.models.distributor import Distributor
from app.models.enums import DistributorStatus
from app.repositories.distributor_repository import DistributorRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService, transaction
from app.services.distribution.invite_service import build_invite_link
from app.services.schemas import ApplyResult, Page, TeamStats
from app.utils.exceptions import (
    ConflictError,
    NotFoundError,
    OperationFailedError,
    ValidationError,
)

TEAM_DIRECT = "direct"
TEAM_ALL = "all"


class DistributorService(BaseService):
    """Distributor self-service operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize distributor service."""
        super().__init__(session)
        self.distributor_repo = DistributorRepository(session)
        self.user_repo = UserRepository(session)

    @transaction
    async def apply(
        self, user_id: int, invite_code: str | None = None
    ) -> ApplyResult:
        """
        Apply to become a distributor.

        With an invite code the code owner becomes the parent. Without one,
        the user's registration referrer becomes the parent if that referrer
        is an approved distributor.

        Args:
            user_id: Applying user
            invite_code: Optional invite code of the upline

        Returns:
            Created pending distributor and its invite link

        Raises:
            NotFoundError: If user does not exist
            ConflictError: If user is already a distributor
            ValidationError: If invite code is unknown or the user's own
            OperationFailedError: If code owner is not approved
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("用户不存在")

        if await self.distributor_repo.exists(user_id=user_id):
            raise ConflictError("您已经是分销商了")

        parent: Distributor | None = None
        if invite_code:
            parent = await self.distributor_repo.get_by_invite_code(
                invite_code.strip().upper()
            )
            if parent is None:
                raise ValidationError("邀请码无效")
            if not parent.is_approved:
                raise OperationFailedError("邀请人尚未通过审核")
            if parent.user_id == user_id:
                raise ValidationError("不能填写自己的邀请码")
        elif user.referrer_id is not None:
            parent = await self.distributor_repo.get_approved_by_user_id(
                user.referrer_id
            )

        level = DISTRIBUTOR_LEVEL_DIRECT
        if parent is not None and parent.level >= DISTRIBUTOR_LEVEL_INDIRECT:
            level = DISTRIBUTOR_LEVEL_INDIRECT

        code = await self._generate_invite_code()
        distributor = await self.distributor_repo.create(
            user_id=user_id,
            parent_id=parent.id if parent else None,
            level=level,
            invite_code=code,
            status=DistributorStatus.PENDING.value,
        )

        self.logger.info(
            "Distributor application created",
            extra={
                "distributor_id": distributor.id,
                "user_id": user_id,
                "parent_id": distributor.parent_id,
            },
        )
        return ApplyResult(
            distributor=distributor,
            invite_code=code,
            invite_link=build_invite_link(code),
        )

    async def _generate_invite_code(self) -> str:
        for _ in range(INVITE_CODE_ATTEMPTS):
            code = secrets.token_hex(INVITE_CODE_LENGTH // 2).upper()
            if not await self.distributor_repo.invite_code_exists(code):
                return code
        raise OperationFailedError("生成邀请码失败，请重试")

    async def get_by_id(self, distributor_id: int) -> Distributor:
        """Get distributor or raise NotFoundError."""
        distributor = await self.distributor_repo.get_by_id(distributor_id)
        if distributor is None:
            raise NotFoundError("分销商不存在")
        return distributor

    async def get_by_user_id(self, user_id: int) -> Distributor:
        """Get the distributor record of a user."""
        distributor = await self.distributor_repo.get_by_user_id(user_id)
        if distributor is None:
            raise NotFoundError("您还不是分销商")
        return distributor

    async def get_approved_by_user_id(self, user_id: int) -> Distributor:
        """
        Get the distributor record of a user, requiring approval.

        Raises:
            NotFoundError: If user is not a distributor
            OperationFailedError: If the application is not approved
        """
        distributor = await self.get_by_user_id(user_id)
        if not distributor.is_approved:
            raise OperationFailedError("分销商尚未审核通过")
        return distributor

    async def check_is_distributor(self, user_id: int) -> bool:
        """Whether user is an approved distributor."""
        return await self.distributor_repo.get_approved_by_user_id(user_id) is not None

    async def get_team_stats(self, distributor_id: int) -> TeamStats:
        """Direct, indirect and total team size."""
        distributor = await self.get_by_id(distributor_id)
        return TeamStats(
            direct_count=distributor.direct_count,
            indirect_count=distributor.indirect_count,
            team_count=distributor.team_count,
        )

    async def get_team_members(
        self,
        distributor_id: int,
        member_type: str = TEAM_DIRECT,
        page: int = 1,
        limit: int = 20,
    ) -> Page:
        """
        List team members.

        Args:
            distributor_id: Team owner
            member_type: "direct" for direct members, "all" to include
                second-level members (unknown values mean direct)
            page: Page number (1-indexed)
            limit: Items per page

        Returns:
            Page of distributors
        """
        items, total = await self.distributor_repo.find_team_members(
            distributor_id,
            direct_only=member_type != TEAM_ALL,
            page=page,
            per_page=limit,
        )
        return Page(items=items, total=total, page=page, limit=limit)

    async def get_top_distributors(self, limit: int = 10) -> list[Distributor]:
        """Approved distributors with the highest total commission."""
        return await self.distributor_repo.find_top(limit)
