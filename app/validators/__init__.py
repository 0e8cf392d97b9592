"""
Validators package.

Provides validation functions for distribution input.
"""

from app.validators.distribution import (
    quantize_money,
    validate_commission_config,
    validate_invite_code,
    validate_money_amount,
    validate_withdraw_to,
    validate_withdrawal_type,
)


__all__ = [
    "quantize_money",
    "validate_commission_config",
    "validate_invite_code",
    "validate_money_amount",
    "validate_withdraw_to",
    "validate_withdrawal_type",
]
