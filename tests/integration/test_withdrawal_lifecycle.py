"""
Integration tests for withdrawal requests and the withdrawal state machine.

Balances are checked after every transition: funds move from available to
frozen on request, back on rejection and out on completion.
"""

from decimal import Decimal

import pytest
import pytest_asyncio

from app.models import DistributorStatus, WithdrawalStatus, WithdrawalType
from app.services.distribution import DistributionAdminService
from app.services.schemas import WithdrawalFilter
from app.services.withdrawal import (
    WithdrawalLifecycleHandler,
    WithdrawalQueryService,
    WithdrawalRequestHandler,
)
from app.utils.exceptions import (
    InsufficientBalanceError,
    NotFoundError,
    OperationFailedError,
    ValidationError,
)


@pytest.fixture
def lifecycle(session):
    return WithdrawalLifecycleHandler(session)


@pytest.fixture
def request_handler(session):
    return WithdrawalRequestHandler(session)


@pytest_asyncio.fixture
async def funded_distributor(session, make_distributor):
    distributor = await make_distributor(
        available_commission=Decimal("100.00"),
        total_commission=Decimal("100.00"),
    )
    await session.commit()
    return distributor


async def _pay_out(lifecycle, withdrawal_id: int) -> None:
    assert await lifecycle.approve_withdrawal(withdrawal_id, operator_id=1)
    assert await lifecycle.process_withdrawal(withdrawal_id)
    assert await lifecycle.complete_withdrawal(withdrawal_id)


class TestRequestWithdrawal:
    """Creating withdrawal requests."""

    @pytest.mark.asyncio
    async def test_commission_request_freezes_amount(
        self, session, request_handler, funded_distributor
    ):
        result = await request_handler.request_withdrawal(
            funded_distributor.user_id, "commission", "50", "alipay", "acc@example.com"
        )

        assert result.fee == Decimal("0.30")
        assert result.actual_amount == Decimal("49.70")
        assert result.withdrawal.status == WithdrawalStatus.PENDING
        assert result.withdrawal.withdrawal_no.startswith("W")

        await session.refresh(funded_distributor)
        assert funded_distributor.available_commission == Decimal("50.00")
        assert funded_distributor.frozen_commission == Decimal("50.00")

    @pytest.mark.asyncio
    async def test_account_info_is_encrypted(
        self, session, request_handler, funded_distributor
    ):
        result = await request_handler.request_withdrawal(
            funded_distributor.user_id, "commission", "50", "bank", "6222020200112233"
        )

        stored = result.withdrawal.account_info_encrypted
        assert stored != "6222020200112233"
        assert WithdrawalQueryService(session).get_account_info(
            result.withdrawal
        ) == "6222020200112233"

    @pytest.mark.asyncio
    async def test_balance_request(self, session, request_handler, make_user, make_wallet):
        user = await make_user()
        wallet = await make_wallet(user.id, balance="200")
        await session.commit()

        await request_handler.request_withdrawal(user.id, "balance", "50", "wechat", "wx")

        await session.refresh(wallet)
        assert wallet.balance == Decimal("150.00")
        assert wallet.frozen_balance == Decimal("50.00")

    @pytest.mark.asyncio
    async def test_below_minimum(self, request_handler, funded_distributor):
        with pytest.raises(OperationFailedError, match="最低提现金额为10.00元"):
            await request_handler.request_withdrawal(
                funded_distributor.user_id, "commission", "5", "alipay", "acc"
            )

    @pytest.mark.asyncio
    async def test_insufficient_available(
        self, session, request_handler, make_distributor
    ):
        distributor = await make_distributor(available_commission=Decimal("20"))
        await session.commit()

        with pytest.raises(
            InsufficientBalanceError, match="可提现余额不足，当前可提现: 20.00元"
        ):
            await request_handler.request_withdrawal(
                distributor.user_id, "commission", "50", "alipay", "acc"
            )

        await session.refresh(distributor)
        assert distributor.available_commission == Decimal("20.00")
        assert distributor.frozen_commission == Decimal("0")

    @pytest.mark.asyncio
    async def test_too_many_open_requests(
        self, session, request_handler, funded_distributor, make_withdrawal
    ):
        for _ in range(5):
            await make_withdrawal(funded_distributor.user_id)
        await session.commit()

        with pytest.raises(OperationFailedError, match="待处理的提现申请"):
            await request_handler.request_withdrawal(
                funded_distributor.user_id, "commission", "20", "alipay", "acc"
            )

    @pytest.mark.asyncio
    async def test_finished_requests_do_not_count(
        self, session, request_handler, funded_distributor, make_withdrawal
    ):
        for _ in range(5):
            await make_withdrawal(
                funded_distributor.user_id, status=WithdrawalStatus.SUCCESS
            )
        await session.commit()

        result = await request_handler.request_withdrawal(
            funded_distributor.user_id, "commission", "20", "alipay", "acc"
        )

        assert result.withdrawal.id is not None

    @pytest.mark.asyncio
    async def test_not_a_distributor(self, session, request_handler, make_user):
        user = await make_user()
        await session.commit()

        with pytest.raises(NotFoundError, match="您还不是分销商"):
            await request_handler.request_withdrawal(
                user.id, "commission", "50", "alipay", "acc"
            )

    @pytest.mark.asyncio
    async def test_pending_distributor(self, session, request_handler, make_distributor):
        distributor = await make_distributor(
            status=DistributorStatus.PENDING,
            available_commission=Decimal("100"),
        )
        await session.commit()

        with pytest.raises(OperationFailedError, match="分销商尚未审核通过"):
            await request_handler.request_withdrawal(
                distributor.user_id, "commission", "50", "alipay", "acc"
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("type,amount,channel", [
        ("points", "50", "alipay"),
        ("commission", "50", "paypal"),
        ("commission", "-1", "alipay"),
        ("commission", "10.005", "alipay"),
    ])
    async def test_invalid_input(
        self, request_handler, funded_distributor, type, amount, channel
    ):
        with pytest.raises(ValidationError):
            await request_handler.request_withdrawal(
                funded_distributor.user_id, type, amount, channel, "acc"
            )


class TestWithdrawalLifecycle:
    """State transitions and their balance effects."""

    @pytest.mark.asyncio
    async def test_full_commission_payout(
        self, session, request_handler, lifecycle, funded_distributor
    ):
        result = await request_handler.request_withdrawal(
            funded_distributor.user_id, "commission", "50", "alipay", "acc"
        )

        await _pay_out(lifecycle, result.withdrawal.id)

        await session.refresh(funded_distributor)
        await session.refresh(result.withdrawal)
        assert result.withdrawal.status == WithdrawalStatus.SUCCESS
        assert result.withdrawal.completed_at is not None
        assert funded_distributor.available_commission == Decimal("50.00")
        assert funded_distributor.frozen_commission == Decimal("0")
        assert funded_distributor.withdrawn_commission == Decimal("50.00")

    @pytest.mark.asyncio
    async def test_double_complete_debits_once(
        self, session, request_handler, lifecycle, funded_distributor
    ):
        result = await request_handler.request_withdrawal(
            funded_distributor.user_id, "commission", "50", "alipay", "acc"
        )
        await _pay_out(lifecycle, result.withdrawal.id)

        assert await lifecycle.complete_withdrawal(result.withdrawal.id) is False

        await session.refresh(funded_distributor)
        assert funded_distributor.withdrawn_commission == Decimal("50.00")
        assert funded_distributor.frozen_commission == Decimal("0")

    @pytest.mark.asyncio
    async def test_balance_payout_counts_actual_amount(
        self, session, request_handler, lifecycle, make_user, make_wallet
    ):
        """Wallets record the post-fee amount as withdrawn."""
        user = await make_user()
        wallet = await make_wallet(user.id, balance="200")
        await session.commit()
        result = await request_handler.request_withdrawal(
            user.id, "balance", "50", "wechat", "wx"
        )

        await _pay_out(lifecycle, result.withdrawal.id)

        await session.refresh(wallet)
        assert wallet.balance == Decimal("150.00")
        assert wallet.frozen_balance == Decimal("0")
        assert wallet.total_withdrawn == Decimal("49.70")

    @pytest.mark.asyncio
    async def test_reject_releases_full_amount(
        self, session, request_handler, lifecycle, funded_distributor
    ):
        result = await request_handler.request_withdrawal(
            funded_distributor.user_id, "commission", "50", "alipay", "acc"
        )

        rejected = await lifecycle.reject_withdrawal(
            result.withdrawal.id, operator_id=2, reason="账户信息有误"
        )

        assert rejected is True
        await session.refresh(funded_distributor)
        await session.refresh(result.withdrawal)
        assert result.withdrawal.status == WithdrawalStatus.REJECTED
        assert result.withdrawal.reject_reason == "账户信息有误"
        assert funded_distributor.available_commission == Decimal("100.00")
        assert funded_distributor.frozen_commission == Decimal("0")

    @pytest.mark.asyncio
    async def test_reject_twice_releases_once(
        self, session, request_handler, lifecycle, funded_distributor
    ):
        result = await request_handler.request_withdrawal(
            funded_distributor.user_id, "commission", "50", "alipay", "acc"
        )
        await lifecycle.reject_withdrawal(result.withdrawal.id, 2, "x")

        assert await lifecycle.reject_withdrawal(
            result.withdrawal.id, 2, "x"
        ) is False

        await session.refresh(funded_distributor)
        assert funded_distributor.available_commission == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_reject_after_approval_is_noop(
        self, session, request_handler, lifecycle, funded_distributor
    ):
        result = await request_handler.request_withdrawal(
            funded_distributor.user_id, "commission", "50", "alipay", "acc"
        )
        await lifecycle.approve_withdrawal(result.withdrawal.id, 1)

        assert await lifecycle.reject_withdrawal(
            result.withdrawal.id, 1, "x"
        ) is False

        await session.refresh(funded_distributor)
        assert funded_distributor.available_commission == Decimal("50.00")
        assert funded_distributor.frozen_commission == Decimal("50.00")

    @pytest.mark.asyncio
    async def test_out_of_order_transitions(
        self, session, lifecycle, funded_distributor, make_withdrawal
    ):
        withdrawal = await make_withdrawal(funded_distributor.user_id)
        await session.commit()

        assert await lifecycle.process_withdrawal(withdrawal.id) is False
        assert await lifecycle.complete_withdrawal(withdrawal.id) is False

        await session.refresh(withdrawal)
        assert withdrawal.status == WithdrawalStatus.PENDING

    @pytest.mark.asyncio
    async def test_approve_does_not_move_money(
        self, session, lifecycle, funded_distributor, make_withdrawal
    ):
        withdrawal = await make_withdrawal(funded_distributor.user_id)
        await session.commit()

        assert await lifecycle.approve_withdrawal(withdrawal.id, operator_id=9)

        await session.refresh(withdrawal)
        await session.refresh(funded_distributor)
        assert withdrawal.status == WithdrawalStatus.APPROVED
        assert withdrawal.operator_id == 9
        assert funded_distributor.available_commission == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_reject_without_wallet_rolls_back(
        self, session, lifecycle, make_user, make_withdrawal
    ):
        """Rejecting must not succeed when no funds could be returned."""
        user = await make_user()
        withdrawal = await make_withdrawal(user.id, type=WithdrawalType.BALANCE)
        await session.commit()

        with pytest.raises(OperationFailedError, match="账户资金记录不存在"):
            await lifecycle.reject_withdrawal(withdrawal.id, 1, "x")

        await session.refresh(withdrawal)
        assert withdrawal.status == WithdrawalStatus.PENDING
        assert withdrawal.reject_reason is None

    @pytest.mark.asyncio
    async def test_complete_without_distributor_rolls_back(
        self, session, lifecycle, make_user, make_withdrawal
    ):
        user = await make_user()
        withdrawal = await make_withdrawal(user.id)
        await session.commit()
        assert await lifecycle.approve_withdrawal(withdrawal.id, 1)
        assert await lifecycle.process_withdrawal(withdrawal.id)

        with pytest.raises(OperationFailedError):
            await lifecycle.complete_withdrawal(withdrawal.id)

        await session.refresh(withdrawal)
        assert withdrawal.status == WithdrawalStatus.PROCESSING
        assert withdrawal.completed_at is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", [
        "approve_withdrawal", "reject_withdrawal",
        "process_withdrawal", "complete_withdrawal",
    ])
    async def test_missing_withdrawal(self, lifecycle, action):
        args = {
            "approve_withdrawal": (404, 1),
            "reject_withdrawal": (404, 1, "x"),
            "process_withdrawal": (404,),
            "complete_withdrawal": (404,),
        }[action]

        with pytest.raises(NotFoundError, match="提现记录不存在"):
            await getattr(lifecycle, action)(*args)

    @pytest.mark.asyncio
    async def test_admin_service_delegates(
        self, session, request_handler, funded_distributor
    ):
        admin = DistributionAdminService(session)
        result = await request_handler.request_withdrawal(
            funded_distributor.user_id, "commission", "50", "alipay", "acc"
        )
        withdrawal_id = result.withdrawal.id

        assert await admin.approve_withdrawal(withdrawal_id, 1)
        assert (await admin.get_approved_withdrawals()).total == 1
        assert await admin.process_withdrawal(withdrawal_id)
        assert await admin.complete_withdrawal(withdrawal_id)

        stats = await admin.get_stats()
        assert stats.total_withdrawn == Decimal("49.70")
        assert stats.pending_withdrawals == 0


class TestWithdrawalQueries:
    """Listing and per-user statistics."""

    @pytest.mark.asyncio
    async def test_user_stats(self, session, funded_distributor, make_withdrawal):
        user_id = funded_distributor.user_id
        await make_withdrawal(user_id, status=WithdrawalStatus.SUCCESS)
        await make_withdrawal(user_id, status=WithdrawalStatus.PENDING)
        await make_withdrawal(user_id, status=WithdrawalStatus.PROCESSING)
        await make_withdrawal(user_id, status=WithdrawalStatus.REJECTED)

        stats = await WithdrawalQueryService(session).get_user_stats(user_id)

        assert stats.total_count == 4
        assert stats.pending_count == 1
        assert stats.success_count == 1
        assert stats.total_withdrawn == Decimal("49.70")
        assert stats.pending_amount == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_filter_by_type(
        self, session, funded_distributor, make_withdrawal
    ):
        user_id = funded_distributor.user_id
        await make_withdrawal(user_id)
        await make_withdrawal(user_id, type=WithdrawalType.BALANCE)

        page = await WithdrawalQueryService(session).list_withdrawals(
            WithdrawalFilter(type=WithdrawalType.BALANCE)
        )

        assert page.total == 1
        assert page.items[0].type == WithdrawalType.BALANCE

    @pytest.mark.asyncio
    async def test_pending_queue(self, session, funded_distributor, make_withdrawal):
        first = await make_withdrawal(funded_distributor.user_id)
        await make_withdrawal(
            funded_distributor.user_id, status=WithdrawalStatus.APPROVED
        )

        page = await DistributionAdminService(session).get_pending_withdrawals()

        assert page.total == 1
        assert page.items[0].id == first.id

    @pytest.mark.asyncio
    async def test_get_by_no(self, session, funded_distributor, make_withdrawal):
        withdrawal = await make_withdrawal(funded_distributor.user_id)
        service = WithdrawalQueryService(session)

        assert (await service.get_by_no(withdrawal.withdrawal_no)).id == withdrawal.id
        with pytest.raises(NotFoundError):
            await service.get_by_no("W-missing")
