"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.base import Base
from app.models.commission import Commission
from app.models.commission_setting import (
    CommissionSetting,
    CommissionSettingCurrent,
)
from app.models.distributor import Distributor
from app.models.enums import (
    CommissionStatus,
    CommissionType,
    DistributorStatus,
    WithdrawalStatus,
    WithdrawalType,
    WithdrawTo,
)
from app.models.user import User, UserWallet
from app.models.withdrawal import Withdrawal

__all__ = [
    # Base
    "Base",
    # Enums
    "CommissionStatus",
    "CommissionType",
    "DistributorStatus",
    "WithdrawalStatus",
    "WithdrawalType",
    "WithdrawTo",
    # Core Models
    "User",
    "UserWallet",
    "Distributor",
    "Commission",
    "Withdrawal",
    # Configuration
    "CommissionSetting",
    "CommissionSettingCurrent",
]
