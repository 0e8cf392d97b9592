"""
Distribution DTOs.

Data transfer objects returned by distribution services and the filter
objects accepted by list operations.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from app.config.business_constants import (
    DEFAULT_DIRECT_RATE,
    DEFAULT_INDIRECT_RATE,
    DEFAULT_MIN_WITHDRAW,
    DEFAULT_SETTLE_DELAY_DAYS,
    DEFAULT_WITHDRAW_FEE,
)
from app.models.commission import Commission
from app.models.commission_setting import CommissionSetting
from app.models.distributor import Distributor
from app.models.enums import (
    CommissionStatus,
    CommissionType,
    DistributorStatus,
    WithdrawalStatus,
    WithdrawalType,
)
from app.models.withdrawal import Withdrawal


@dataclass
class CommissionConfig:
    """Commission configuration values."""
    direct_rate: Decimal = DEFAULT_DIRECT_RATE
    indirect_rate: Decimal = DEFAULT_INDIRECT_RATE
    min_withdraw: Decimal = DEFAULT_MIN_WITHDRAW
    withdraw_fee: Decimal = DEFAULT_WITHDRAW_FEE
    settle_delay: int = DEFAULT_SETTLE_DELAY_DAYS

    @classmethod
    def from_model(cls, setting: CommissionSetting) -> CommissionConfig:
        """Build config from a stored version."""
        return cls(
            direct_rate=Decimal(setting.direct_rate),
            indirect_rate=Decimal(setting.indirect_rate),
            min_withdraw=Decimal(setting.min_withdraw),
            withdraw_fee=Decimal(setting.withdraw_fee),
            settle_delay=setting.settle_delay,
        )


@dataclass
class DistributorFilter:
    """Admin distributor list filters."""
    status: DistributorStatus | None = None
    level: int | None = None
    parent_id: int | None = None


@dataclass
class CommissionFilter:
    """Commission list filters; end_time is exclusive."""
    distributor_id: int | None = None
    status: CommissionStatus | None = None
    type: CommissionType | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None


@dataclass
class WithdrawalFilter:
    """Withdrawal list filters; end_time is exclusive."""
    user_id: int | None = None
    status: WithdrawalStatus | None = None
    type: WithdrawalType | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None


@dataclass
class Page:
    """One page of a list operation."""
    items: list
    total: int
    page: int
    limit: int


@dataclass
class DistributionStats:
    """Platform-wide distribution statistics."""
    total_distributors: int
    pending_distributors: int
    total_commission: Decimal
    pending_withdrawals: int
    total_withdrawn: Decimal


@dataclass
class CommissionStats:
    """Commission figures of one distributor."""
    total: Decimal
    pending: Decimal
    settled: Decimal
    direct: Decimal
    indirect: Decimal
    count: int


@dataclass
class CommissionResult:
    """Commissions created for one order."""
    direct: Commission | None = None
    indirect: Commission | None = None

    @property
    def total_amount(self) -> Decimal:
        """Sum of created commission amounts."""
        return sum(
            (c.amount for c in (self.direct, self.indirect) if c is not None),
            Decimal("0"),
        )


@dataclass
class ApplyResult:
    """Outcome of a distributor application."""
    distributor: Distributor
    invite_code: str
    invite_link: str


@dataclass
class TeamStats:
    """Team size of one distributor."""
    direct_count: int
    indirect_count: int
    team_count: int


@dataclass
class WithdrawalResult:
    """Outcome of a withdrawal request."""
    withdrawal: Withdrawal
    fee: Decimal
    actual_amount: Decimal
    message: str = "提现申请已提交，请等待审核"


@dataclass
class UserWithdrawalStats:
    """Withdrawal totals of one user."""
    total_count: int
    pending_count: int
    success_count: int
    total_withdrawn: Decimal
    pending_amount: Decimal


@dataclass
class DashboardOverview:
    """Distributor dashboard figures."""
    total_commission: Decimal
    available_commission: Decimal
    frozen_commission: Decimal
    withdrawn_commission: Decimal
    today_commission: Decimal
    month_commission: Decimal
    team_count: int
    direct_count: int
    today_new_members: int
    month_new_members: int
    total_orders: int
    today_orders: int
    month_orders: int
    total_order_amount: Decimal


@dataclass
class CommissionTrendPoint:
    """Commission earned on one day."""
    date: str
    commission: Decimal
    orders: int
    direct_commission: Decimal
    indirect_commission: Decimal


@dataclass
class InviteInfo:
    """Invite material of an approved distributor."""
    distributor_id: int
    invite_code: str
    invite_link: str
    qrcode_url: str
    short_link: str
    poster_url: str
    user_name: str = ""


@dataclass
class ShareContent:
    """Content for social sharing."""
    title: str
    description: str
    image_url: str
    link: str
    wechat_path: str
