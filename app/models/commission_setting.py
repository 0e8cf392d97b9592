"""
Commission setting models.

Configuration is versioned: every update appends a CommissionSetting row and
moves the single CommissionSettingCurrent pointer. The pointer table can hold
at most one row, which the check constraint enforces.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.types import MoneyType, RateType

CURRENT_POINTER_ID = 1


class CommissionSetting(Base):
    """Commission setting version - immutable once written."""

    __tablename__ = "commission_settings"
    __table_args__ = (
        CheckConstraint(
            'direct_rate >= 0 AND direct_rate <= 1',
            name='check_setting_direct_rate_range'
        ),
        CheckConstraint(
            'indirect_rate >= 0 AND indirect_rate <= 1',
            name='check_setting_indirect_rate_range'
        ),
        CheckConstraint(
            'direct_rate + indirect_rate <= 0.5',
            name='check_setting_total_rate'
        ),
        CheckConstraint(
            'min_withdraw >= 0', name='check_setting_min_withdraw_non_negative'
        ),
        CheckConstraint(
            'withdraw_fee >= 0 AND withdraw_fee <= 1',
            name='check_setting_withdraw_fee_range'
        ),
        CheckConstraint(
            'settle_delay >= 0', name='check_setting_settle_delay_non_negative'
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    direct_rate: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    indirect_rate: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    min_withdraw: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    withdraw_fee: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    settle_delay: Mapped[int] = mapped_column(Integer, nullable=False)

    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CommissionSetting(id={self.id}, direct={self.direct_rate}, "
            f"indirect={self.indirect_rate}, fee={self.withdraw_fee})>"
        )


class CommissionSettingCurrent(Base):
    """Pointer to the active commission setting version."""

    __tablename__ = "commission_setting_current"
    __table_args__ = (
        CheckConstraint(
            f'id = {CURRENT_POINTER_ID}', name='check_setting_current_singleton'
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, default=CURRENT_POINTER_ID
    )
    setting_id: Mapped[int] = mapped_column(
        ForeignKey("commission_settings.id"),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    setting: Mapped["CommissionSetting"] = relationship("CommissionSetting")
