"""
Commission model.

Append-only commission facts generated from completed orders. Only status and
settled_at change after creation.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import CommissionStatus
from app.models.types import MoneyType, RateType

if TYPE_CHECKING:
    from app.models.distributor import Distributor


class Commission(Base):
    """Commission model - one distributor's share of one order."""

    __tablename__ = "commissions"
    __table_args__ = (
        CheckConstraint('amount >= 0', name='check_commission_amount_non_negative'),
        CheckConstraint(
            'rate >= 0 AND rate <= 1', name='check_commission_rate_range'
        ),
        Index('idx_commission_status', 'status'),
        Index('idx_commission_order', 'order_id'),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    distributor_id: Mapped[int] = mapped_column(
        ForeignKey("distributors.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    # Orders live in the order subsystem, no FK here
    order_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    from_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
    )

    type: Mapped[str] = mapped_column(
        String(20), nullable=False
    )  # direct, indirect
    order_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    rate: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CommissionStatus.PENDING.value
    )  # pending, settled, cancelled
    settled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    distributor: Mapped["Distributor"] = relationship(
        "Distributor",
        back_populates="commissions",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Commission(id={self.id}, distributor_id={self.distributor_id}, "
            f"order_id={self.order_id}, amount={self.amount}, status={self.status})>"
        )
