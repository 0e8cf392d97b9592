"""
User repository.

Data access layer for User and UserWallet models.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User, UserWallet
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)


class UserWalletRepository(BaseRepository[UserWallet]):
    """Wallet repository; every balance move is a guarded UPDATE."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize wallet repository."""
        super().__init__(UserWallet, session)

    async def get_by_user_id(self, user_id: int) -> UserWallet | None:
        """Get wallet by owner."""
        return await self.get_by(user_id=user_id)

    async def freeze(self, user_id: int, amount: Decimal) -> bool:
        """
        Move amount from balance to frozen_balance.

        Args:
            user_id: Wallet owner
            amount: Amount to freeze

        Returns:
            False if the balance is lower than amount
        """
        rows = await self.update_where(
            UserWallet.user_id == user_id,
            UserWallet.balance >= amount,
            balance=UserWallet.balance - amount,
            frozen_balance=UserWallet.frozen_balance + amount,
        )
        return rows == 1

    async def unfreeze(self, user_id: int, amount: Decimal) -> int:
        """Return frozen amount to balance."""
        return await self.update_where(
            UserWallet.user_id == user_id,
            balance=UserWallet.balance + amount,
            frozen_balance=UserWallet.frozen_balance - amount,
        )

    async def debit_frozen(
        self, user_id: int, amount: Decimal, withdrawn: Decimal
    ) -> int:
        """
        Permanently debit frozen funds after payout.

        Args:
            user_id: Wallet owner
            amount: Amount removed from frozen_balance
            withdrawn: Amount added to total_withdrawn

        Returns:
            Number of rows affected
        """
        return await self.update_where(
            UserWallet.user_id == user_id,
            frozen_balance=UserWallet.frozen_balance - amount,
            total_withdrawn=UserWallet.total_withdrawn + withdrawn,
        )
