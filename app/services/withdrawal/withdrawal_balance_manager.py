"""
Withdrawal balance manager.

Moves money between the available, frozen and withdrawn buckets of the ledger
a withdrawal draws from: distributor commission or user wallet. Callers run
these inside the same transaction as the withdrawal status change.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import WithdrawalType
from app.models.withdrawal import Withdrawal
from app.repositories.distributor_repository import DistributorRepository
from app.repositories.user_repository import UserWalletRepository
from app.utils.exceptions import (
    InsufficientBalanceError,
    NotFoundError,
    OperationFailedError,
)


class WithdrawalBalanceManager:
    """Manages balance operations for withdrawal requests."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize withdrawal balance manager.

        Args:
            session: Database session
        """
        self.session = session
        self.distributor_repo = DistributorRepository(session)
        self.wallet_repo = UserWalletRepository(session)

    async def get_available(self, user_id: int, type: WithdrawalType) -> Decimal:
        """
        Get withdrawable amount of a ledger.

        Args:
            user_id: Ledger owner
            type: Which ledger

        Returns:
            Available amount (0 when the user has no wallet)
        """
        if type == WithdrawalType.COMMISSION:
            distributor = await self.distributor_repo.get_by_user_id(user_id)
            if distributor is None:
                raise NotFoundError("您还不是分销商")
            return Decimal(distributor.available_commission)

        wallet = await self.wallet_repo.get_by_user_id(user_id)
        return Decimal(wallet.balance) if wallet else Decimal("0")

    async def freeze(
        self, user_id: int, type: WithdrawalType, amount: Decimal
    ) -> None:
        """
        Freeze amount for a new withdrawal.

        The guard is part of the UPDATE, so two concurrent requests can never
        freeze more than is available.

        Raises:
            InsufficientBalanceError: If the guarded update matched no row
        """
        if type == WithdrawalType.COMMISSION:
            frozen = await self.distributor_repo.freeze_commission(user_id, amount)
        else:
            frozen = await self.wallet_repo.freeze(user_id, amount)

        if not frozen:
            logger.warning(
                "Insufficient balance for withdrawal freeze",
                extra={
                    "user_id": user_id,
                    "type": type.value,
                    "requested": str(amount),
                },
            )
            raise InsufficientBalanceError("余额不足")

    async def release(self, withdrawal: Withdrawal) -> None:
        """
        Return the full frozen amount of a rejected withdrawal.

        Raises:
            OperationFailedError: If the ledger row is missing
        """
        amount = Decimal(withdrawal.amount)
        if withdrawal.type == WithdrawalType.COMMISSION:
            rows = await self.distributor_repo.unfreeze_commission(
                withdrawal.user_id, amount
            )
        else:
            rows = await self.wallet_repo.unfreeze(withdrawal.user_id, amount)
        self._check_ledger_updated(withdrawal, rows, "release")

        logger.info(
            "Withdrawal funds released",
            extra={
                "withdrawal_id": withdrawal.id,
                "user_id": withdrawal.user_id,
                "amount": str(amount),
            },
        )

    async def debit(self, withdrawal: Withdrawal) -> None:
        """
        Permanently debit a paid-out withdrawal.

        Commission ledgers count the gross amount as withdrawn; wallets add
        the post-fee actual_amount to total_withdrawn.

        Raises:
            OperationFailedError: If the ledger row is missing
        """
        amount = Decimal(withdrawal.amount)
        if withdrawal.type == WithdrawalType.COMMISSION:
            rows = await self.distributor_repo.debit_frozen_commission(
                withdrawal.user_id, amount
            )
        else:
            rows = await self.wallet_repo.debit_frozen(
                withdrawal.user_id, amount, Decimal(withdrawal.actual_amount)
            )
        self._check_ledger_updated(withdrawal, rows, "debit")

        logger.info(
            "Withdrawal funds debited",
            extra={
                "withdrawal_id": withdrawal.id,
                "user_id": withdrawal.user_id,
                "amount": str(amount),
            },
        )

    @staticmethod
    def _check_ledger_updated(
        withdrawal: Withdrawal, rows: int, operation: str
    ) -> None:
        if rows == 1:
            return
        logger.error(
            f"Withdrawal {operation} touched no ledger row",
            extra={
                "withdrawal_id": withdrawal.id,
                "user_id": withdrawal.user_id,
                "type": withdrawal.type,
                "rows": rows,
            },
        )
        raise OperationFailedError("账户资金记录不存在")
