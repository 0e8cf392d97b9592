"""
Business logic constants for the distribution program.

Central location for business rules and constants used across the application.
This module has no application imports so settings and services can both use it
without circular dependencies.
"""

from decimal import Decimal

# Default commission configuration, used when no configuration version exists
DEFAULT_DIRECT_RATE = Decimal("0.10")    # 10% of a referred user's order
DEFAULT_INDIRECT_RATE = Decimal("0.05")  # 5% of a second-level order
DEFAULT_MIN_WITHDRAW = Decimal("10.00")  # ¥10 minimum withdrawal
DEFAULT_WITHDRAW_FEE = Decimal("0.006")  # 0.6% withdrawal fee
DEFAULT_SETTLE_DELAY_DAYS = 7

# Upper bound for direct_rate + indirect_rate
MAX_TOTAL_COMMISSION_RATE = Decimal("0.5")

# Stored precision of money and rate columns
MONEY_QUANT = Decimal("0.01")
RATE_QUANT = Decimal("0.0001")

# Referral tree
MAX_REFERRAL_CHAIN_DEPTH = 64
DISTRIBUTOR_LEVEL_DIRECT = 1
DISTRIBUTOR_LEVEL_INDIRECT = 2

# Invite codes
INVITE_CODE_LENGTH = 8
INVITE_CODE_ATTEMPTS = 10
DEFAULT_INVITE_BASE_URL = "https://app.example.com"
QR_CODE_SIZE = 200

# Withdrawals
WITHDRAWAL_NO_PREFIX = "W"
WITHDRAWAL_NO_RANDOM_DIGITS = 6
MAX_PENDING_WITHDRAWALS = 5
