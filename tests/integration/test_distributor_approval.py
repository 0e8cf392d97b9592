"""
Integration tests for the distributor approval chain.

Runs the admin and distributor services against an in-memory SQLite
database.
"""

import pytest

from app.models import DistributorStatus
from app.services.distribution import (
    DistributionAdminService,
    DistributorChainManager,
    DistributorService,
)
from app.services.schemas import DistributorFilter
from app.utils.exceptions import (
    ConflictError,
    NotFoundError,
    OperationFailedError,
    ReferralChainError,
    ValidationError,
)


class TestApproveDistributor:
    """Approval propagates team counters up the chain."""

    @pytest.mark.asyncio
    async def test_approve_updates_parent_counters(self, session, make_distributor):
        parent = await make_distributor()
        child = await make_distributor(
            parent_id=parent.id, status=DistributorStatus.PENDING
        )
        await session.commit()

        approved = await DistributionAdminService(session).approve_distributor(
            child.id, operator_id=7
        )

        assert approved is True
        await session.refresh(parent)
        await session.refresh(child)
        assert child.status == DistributorStatus.APPROVED
        assert child.approved_by == 7
        assert child.approved_at is not None
        assert parent.direct_count == 1
        assert parent.team_count == 1

    @pytest.mark.asyncio
    async def test_grandparent_gains_team_member_only(
        self, session, make_distributor
    ):
        grandparent = await make_distributor()
        parent = await make_distributor(parent_id=grandparent.id)
        child = await make_distributor(
            parent_id=parent.id, status=DistributorStatus.PENDING
        )
        await session.commit()

        await DistributionAdminService(session).approve_distributor(child.id, 1)

        await session.refresh(grandparent)
        await session.refresh(parent)
        assert (parent.direct_count, parent.team_count) == (1, 1)
        assert (grandparent.direct_count, grandparent.team_count) == (0, 1)

    @pytest.mark.asyncio
    async def test_root_distributor_approval(self, session, make_distributor):
        root = await make_distributor(status=DistributorStatus.PENDING)
        await session.commit()

        assert await DistributionAdminService(session).approve_distributor(
            root.id, 1
        )
        await session.refresh(root)
        assert root.status == DistributorStatus.APPROVED

    @pytest.mark.asyncio
    async def test_second_approval_is_noop(self, session, make_distributor):
        """Approving twice must not count the member twice."""
        parent = await make_distributor()
        child = await make_distributor(
            parent_id=parent.id, status=DistributorStatus.PENDING
        )
        await session.commit()
        service = DistributionAdminService(session)

        assert await service.approve_distributor(child.id, 1) is True
        assert await service.approve_distributor(child.id, 1) is False

        await session.refresh(parent)
        assert parent.direct_count == 1
        assert parent.team_count == 1

    @pytest.mark.asyncio
    async def test_rejected_cannot_be_approved(self, session, make_distributor):
        rejected = await make_distributor(status=DistributorStatus.REJECTED)
        await session.commit()

        assert await DistributionAdminService(session).approve_distributor(
            rejected.id, 1
        ) is False

    @pytest.mark.asyncio
    async def test_missing_distributor(self, session):
        with pytest.raises(NotFoundError):
            await DistributionAdminService(session).approve_distributor(404, 1)

    @pytest.mark.asyncio
    async def test_missing_ancestor_rolls_back(self, session, make_distributor):
        """A dangling parent reference fails the whole approval."""
        orphan = await make_distributor(
            parent_id=9999, status=DistributorStatus.PENDING
        )
        await session.commit()

        with pytest.raises(ReferralChainError):
            await DistributionAdminService(session).approve_distributor(
                orphan.id, 1
            )

        await session.refresh(orphan)
        assert orphan.status == DistributorStatus.PENDING
        assert orphan.approved_by is None

    @pytest.mark.asyncio
    async def test_cycle_rolls_back(self, session, make_distributor):
        first = await make_distributor()
        second = await make_distributor(parent_id=first.id)
        first.parent_id = second.id
        pending = await make_distributor(
            parent_id=first.id, status=DistributorStatus.PENDING
        )
        await session.commit()

        with pytest.raises(ReferralChainError):
            await DistributionAdminService(session).approve_distributor(
                pending.id, 1
            )

        for distributor in (first, second, pending):
            await session.refresh(distributor)
        assert pending.status == DistributorStatus.PENDING
        assert (first.direct_count, first.team_count) == (0, 0)
        assert (second.direct_count, second.team_count) == (0, 0)


class TestChainManager:
    """Bounded ancestor walk."""

    @pytest.mark.asyncio
    async def test_ancestors_nearest_first(self, session, make_distributor):
        root = await make_distributor()
        middle = await make_distributor(parent_id=root.id)
        leaf = await make_distributor(parent_id=middle.id)

        ancestors = await DistributorChainManager(session).get_ancestor_ids(leaf.id)

        assert ancestors == [middle.id, root.id]

    @pytest.mark.asyncio
    async def test_depth_limit(self, session, make_distributor):
        current = await make_distributor()
        for _ in range(3):
            current = await make_distributor(parent_id=current.id)

        with pytest.raises(ReferralChainError):
            await DistributorChainManager(session, max_depth=2).get_ancestor_ids(
                current.id
            )

    @pytest.mark.asyncio
    async def test_depth_exactly_at_limit(self, session, make_distributor):
        root = await make_distributor()
        middle = await make_distributor(parent_id=root.id)
        leaf = await make_distributor(parent_id=middle.id)

        ancestors = await DistributorChainManager(
            session, max_depth=2
        ).get_ancestor_ids(leaf.id)

        assert len(ancestors) == 2

    @pytest.mark.asyncio
    async def test_unknown_start(self, session):
        with pytest.raises(ReferralChainError):
            await DistributorChainManager(session).get_ancestor_ids(12345)


class TestRejectDistributor:
    """Rejection of pending applications."""

    @pytest.mark.asyncio
    async def test_reject_pending(self, session, make_distributor):
        pending = await make_distributor(status=DistributorStatus.PENDING)
        await session.commit()

        rejected = await DistributionAdminService(session).reject_distributor(
            pending.id, operator_id=3, reason="资料不全"
        )

        assert rejected is True
        await session.refresh(pending)
        assert pending.status == DistributorStatus.REJECTED
        assert pending.reject_reason == "资料不全"
        assert pending.approved_by == 3

    @pytest.mark.asyncio
    async def test_reject_missing_is_noop(self, session):
        assert await DistributionAdminService(session).reject_distributor(
            404, 1, "x"
        ) is False

    @pytest.mark.asyncio
    async def test_reject_approved_is_noop(self, session, make_distributor):
        approved = await make_distributor()
        await session.commit()

        assert await DistributionAdminService(session).reject_distributor(
            approved.id, 1, "x"
        ) is False
        await session.refresh(approved)
        assert approved.status == DistributorStatus.APPROVED


class TestApply:
    """Applying to become a distributor."""

    @pytest.mark.asyncio
    async def test_apply_with_invite_code(self, session, make_user, make_distributor):
        parent = await make_distributor(invite_code="PARENT01")
        user = await make_user()
        await session.commit()

        result = await DistributorService(session).apply(user.id, " parent01 ")

        assert result.distributor.parent_id == parent.id
        assert result.distributor.status == DistributorStatus.PENDING
        assert result.distributor.level == 1
        assert len(result.invite_code) == 8
        assert result.invite_link.endswith("/invite/" + result.invite_code)

    @pytest.mark.asyncio
    async def test_apply_uses_referrer_when_no_code(
        self, session, make_user, make_distributor
    ):
        referrer = await make_distributor()
        user = await make_user(referrer_id=referrer.user_id)
        await session.commit()

        result = await DistributorService(session).apply(user.id)

        assert result.distributor.parent_id == referrer.id

    @pytest.mark.asyncio
    async def test_apply_ignores_unapproved_referrer(
        self, session, make_user, make_distributor
    ):
        referrer = await make_distributor(status=DistributorStatus.PENDING)
        user = await make_user(referrer_id=referrer.user_id)
        await session.commit()

        result = await DistributorService(session).apply(user.id)

        assert result.distributor.parent_id is None

    @pytest.mark.asyncio
    async def test_level_follows_parent(self, session, make_user, make_distributor):
        """Only members under an indirect-level parent are indirect."""
        await make_distributor(invite_code="LEVEL001", level=1)
        await make_distributor(invite_code="LEVEL002", level=2)
        first_user = await make_user()
        second_user = await make_user()
        await session.commit()
        service = DistributorService(session)

        under_direct = await service.apply(first_user.id, "LEVEL001")
        under_indirect = await service.apply(second_user.id, "LEVEL002")

        assert under_direct.distributor.level == 1
        assert under_indirect.distributor.level == 2

    @pytest.mark.asyncio
    async def test_apply_twice(self, session, make_distributor):
        existing = await make_distributor()
        await session.commit()

        with pytest.raises(ConflictError):
            await DistributorService(session).apply(existing.user_id)

    @pytest.mark.asyncio
    async def test_unknown_user(self, session):
        with pytest.raises(NotFoundError, match="用户不存在"):
            await DistributorService(session).apply(404)

    @pytest.mark.asyncio
    async def test_unknown_invite_code(self, session, make_user):
        user = await make_user()
        await session.commit()

        with pytest.raises(ValidationError, match="邀请码无效"):
            await DistributorService(session).apply(user.id, "NOPE0000")

    @pytest.mark.asyncio
    async def test_invite_code_of_pending_distributor(
        self, session, make_user, make_distributor
    ):
        await make_distributor(
            invite_code="PEND0001", status=DistributorStatus.PENDING
        )
        user = await make_user()
        await session.commit()

        with pytest.raises(OperationFailedError):
            await DistributorService(session).apply(user.id, "PEND0001")


class TestTeamQueries:
    """Team statistics and member lists."""

    @pytest.mark.asyncio
    async def test_team_members(self, session, make_distributor):
        owner = await make_distributor()
        direct = await make_distributor(parent_id=owner.id)
        await make_distributor(parent_id=direct.id)
        await make_distributor()
        service = DistributorService(session)

        direct_page = await service.get_team_members(owner.id, "direct")
        all_page = await service.get_team_members(owner.id, "all")

        assert direct_page.total == 1
        assert direct_page.items[0].id == direct.id
        assert all_page.total == 2

    @pytest.mark.asyncio
    async def test_team_stats(self, session, make_distributor):
        owner = await make_distributor(direct_count=2, team_count=5)

        stats = await DistributorService(session).get_team_stats(owner.id)

        assert (stats.direct_count, stats.indirect_count, stats.team_count) == (
            2, 3, 5
        )

    @pytest.mark.asyncio
    async def test_get_by_user_id_not_distributor(self, session, make_user):
        user = await make_user()

        with pytest.raises(NotFoundError, match="您还不是分销商"):
            await DistributorService(session).get_by_user_id(user.id)

    @pytest.mark.asyncio
    async def test_check_is_distributor(self, session, make_distributor):
        approved = await make_distributor()
        pending = await make_distributor(status=DistributorStatus.PENDING)
        service = DistributorService(session)

        assert await service.check_is_distributor(approved.user_id) is True
        assert await service.check_is_distributor(pending.user_id) is False

    @pytest.mark.asyncio
    async def test_list_pending(self, session, make_distributor):
        await make_distributor()
        pending = await make_distributor(status=DistributorStatus.PENDING)

        page = await DistributionAdminService(session).get_pending_distributors()

        assert page.total == 1
        assert page.items[0].id == pending.id

    @pytest.mark.asyncio
    async def test_filter_by_parent(self, session, make_distributor):
        owner = await make_distributor()
        await make_distributor(parent_id=owner.id)
        await make_distributor(parent_id=owner.id)

        page = await DistributionAdminService(session).list_distributors(
            DistributorFilter(parent_id=owner.id)
        )

        assert page.total == 2
