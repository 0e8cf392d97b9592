"""
Withdrawal model.

Withdrawal requests are the sole authority for freezing and releasing
commission and wallet balances.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import WithdrawalStatus, WithdrawalType
from app.models.types import FeeType, MoneyType


class Withdrawal(Base):
    """Withdrawal model - payout request from commission or wallet balance."""

    __tablename__ = "withdrawals"
    __table_args__ = (
        CheckConstraint('amount > 0', name='check_withdrawal_amount_positive'),
        CheckConstraint('fee >= 0', name='check_withdrawal_fee_non_negative'),
        CheckConstraint(
            'actual_amount = amount - fee',
            name='check_withdrawal_actual_amount'
        ),
        Index('idx_withdrawal_status', 'status'),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    withdrawal_no: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )

    type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=WithdrawalType.COMMISSION.value
    )  # commission, balance
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    fee: Mapped[Decimal] = mapped_column(
        FeeType, nullable=False, default=Decimal("0")
    )
    actual_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    withdraw_to: Mapped[str] = mapped_column(
        String(20), nullable=False
    )  # wechat, alipay, bank
    account_info_encrypted: Mapped[str] = mapped_column(
        Text, nullable=False, default=""
    )

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=WithdrawalStatus.PENDING.value
    )  # pending, approved, rejected, processing, success

    # Review
    operator_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reject_reason: Mapped[str | None] = mapped_column(
        String(255), nullable=True
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

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Withdrawal(id={self.id}, no={self.withdrawal_no}, "
            f"type={self.type}, amount={self.amount}, status={self.status})>"
        )

    @property
    def is_commission(self) -> bool:
        """Check if withdrawal draws from commission balance."""
        return self.type == WithdrawalType.COMMISSION
