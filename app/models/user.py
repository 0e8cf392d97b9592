"""
User and wallet models.

Users are owned by the account subsystem; the distribution core only reads the
registration referrer and moves wallet balances for balance withdrawals.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.types import MoneyType

if TYPE_CHECKING:
    from app.models.distributor import Distributor


class User(Base):
    """User model - registered platform users."""

    __tablename__ = "users"

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    nickname: Mapped[str | None] = mapped_column(
        String(64), nullable=True
    )
    phone: Mapped[str | None] = mapped_column(
        String(20), nullable=True, unique=True
    )

    # Registration referrer (not necessarily a distributor)
    referrer_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    wallet: Mapped["UserWallet | None"] = relationship(
        "UserWallet",
        back_populates="user",
        uselist=False,
    )
    distributor: Mapped["Distributor | None"] = relationship(
        "Distributor",
        back_populates="user",
        uselist=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<User(id={self.id}, nickname={self.nickname!r})>"


class UserWallet(Base):
    """User wallet - balance ledger used by balance withdrawals."""

    __tablename__ = "user_wallets"
    __table_args__ = (
        CheckConstraint(
            'balance >= 0', name='check_wallet_balance_non_negative'
        ),
        CheckConstraint(
            'frozen_balance >= 0',
            name='check_wallet_frozen_balance_non_negative'
        ),
        CheckConstraint(
            'total_withdrawn >= 0',
            name='check_wallet_total_withdrawn_non_negative'
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    # Balances
    balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    frozen_balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_withdrawn: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    user: Mapped["User"] = relationship("User", back_populates="wallet")

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<UserWallet(user_id={self.user_id}, balance={self.balance}, "
            f"frozen_balance={self.frozen_balance})>"
        )
