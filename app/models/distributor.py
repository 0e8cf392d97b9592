"""
Distributor model.

A user enrolled in the referral program, occupying a node in the referral tree.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import DistributorStatus
from app.models.types import MoneyType

if TYPE_CHECKING:
    from app.models.commission import Commission
    from app.models.user import User


class Distributor(Base):
    """Distributor model - referral tree node with commission balances."""

    __tablename__ = "distributors"
    __table_args__ = (
        CheckConstraint(
            'available_commission >= 0',
            name='check_distributor_available_non_negative'
        ),
        CheckConstraint(
            'frozen_commission >= 0',
            name='check_distributor_frozen_non_negative'
        ),
        CheckConstraint(
            'withdrawn_commission >= 0',
            name='check_distributor_withdrawn_non_negative'
        ),
        CheckConstraint(
            'total_commission >= 0',
            name='check_distributor_total_non_negative'
        ),
        CheckConstraint(
            'direct_count >= 0 AND team_count >= direct_count',
            name='check_distributor_counts'
        ),
        CheckConstraint(
            'parent_id IS NULL OR parent_id <> id',
            name='check_distributor_not_own_parent'
        ),
        Index('idx_distributor_status', 'status'),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    # Upline
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("distributors.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    level: Mapped[int] = mapped_column(
        SmallInteger, nullable=False, default=1
    )  # 1 = direct, 2 = indirect
    invite_code: Mapped[str] = mapped_column(
        String(20), nullable=False, unique=True
    )

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DistributorStatus.PENDING.value
    )  # pending, approved, rejected

    # Team counters
    direct_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    team_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    # Commission balances
    total_commission: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    available_commission: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    frozen_commission: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    withdrawn_commission: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )

    # Review
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    approved_by: Mapped[int | None] = mapped_column(
        Integer, nullable=True
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

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="distributor",
    )
    parent: Mapped["Distributor | None"] = relationship(
        "Distributor",
        remote_side=[id],
    )
    commissions: Mapped[list["Commission"]] = relationship(
        "Commission",
        back_populates="distributor",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Distributor(id={self.id}, user_id={self.user_id}, "
            f"parent_id={self.parent_id}, status={self.status})>"
        )

    @property
    def is_approved(self) -> bool:
        """Check if distributor passed review."""
        return self.status == DistributorStatus.APPROVED

    @property
    def indirect_count(self) -> int:
        """Team members that are not direct referrals."""
        return max(self.team_count - self.direct_count, 0)
