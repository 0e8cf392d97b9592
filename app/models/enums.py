"""
Model enums.

String values are what is stored in the database.
"""

from enum import StrEnum


class DistributorStatus(StrEnum):
    """Distributor application status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CommissionType(StrEnum):
    """Commission origin relative to the buyer."""

    DIRECT = "direct"      # buyer was referred by the distributor
    INDIRECT = "indirect"  # buyer was referred by a direct member


class CommissionStatus(StrEnum):
    """Commission settlement status."""

    PENDING = "pending"
    SETTLED = "settled"
    CANCELLED = "cancelled"


class WithdrawalType(StrEnum):
    """Which ledger a withdrawal draws from."""

    COMMISSION = "commission"
    BALANCE = "balance"


class WithdrawalStatus(StrEnum):
    """Withdrawal lifecycle status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PROCESSING = "processing"
    SUCCESS = "success"


class WithdrawTo(StrEnum):
    """Payout channel."""

    WECHAT = "wechat"
    ALIPAY = "alipay"
    BANK = "bank"


# Withdrawals that still hold frozen funds
OPEN_WITHDRAWAL_STATUSES = (
    WithdrawalStatus.PENDING,
    WithdrawalStatus.APPROVED,
    WithdrawalStatus.PROCESSING,
)
