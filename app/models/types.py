"""
Standard type definitions for database models.

Provides consistent types for monetary and rate fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for amounts, balances, commissions
# Precision: 12 digits total, 2 after decimal point (yuan, fen)
# Range: up to 9,999,999,999.99
MoneyType = DECIMAL(12, 2)

# Fee type for withdrawal fees
# Precision: 10 digits total, 2 after decimal point
FeeType = DECIMAL(10, 2)

# Rate type for commission and fee rates stored as fractions
# Precision: 5 digits total, 4 after decimal point
# Suitable for: 0.1000 (10%), 0.0060 (0.6%)
# Range: 0.0000 to 9.9999
RateType = DECIMAL(5, 4)
