"""
Distribution validators.

Each validator returns a tuple whose first element tells whether the input is
valid and whose last element is the human readable error message (or None).
Messages are user facing and kept in Chinese.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from app.config.business_constants import (
    INVITE_CODE_LENGTH,
    MAX_TOTAL_COMMISSION_RATE,
    MONEY_QUANT,
    RATE_QUANT,
)
from app.models.enums import WithdrawalType, WithdrawTo

_ONE = Decimal("1")
_ZERO = Decimal("0")

INVITE_CODE_PATTERN = re.compile(r"^[0-9A-Z]{%d}$" % INVITE_CODE_LENGTH)


def quantize_money(value: Decimal) -> Decimal:
    """Round a money value half-up to 2 decimal places."""
    return value.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def _fits(value: Decimal, quant: Decimal) -> bool:
    return value == value.quantize(quant)


def validate_commission_config(
    direct_rate: Decimal,
    indirect_rate: Decimal,
    min_withdraw: Decimal,
    withdraw_fee: Decimal,
    settle_delay: int,
) -> tuple[bool, str | None]:
    """
    Validate commission configuration values.

    Args:
        direct_rate: Direct commission rate as fraction
        indirect_rate: Indirect commission rate as fraction
        min_withdraw: Minimum withdrawal amount
        withdraw_fee: Withdrawal fee rate as fraction
        settle_delay: Settlement delay in days

    Returns:
        Tuple of (is_valid, error_message)

    Examples:
        >>> validate_commission_config(
        ...     Decimal("0.3"), Decimal("0.3"), Decimal("10"), Decimal("0"), 7
        ... )
        (False, '佣金比例总和不能超过50%')
    """
    if not _ZERO <= direct_rate <= _ONE:
        return False, "直推佣金比例必须在0-100%之间"

    if not _ZERO <= indirect_rate <= _ONE:
        return False, "间推佣金比例必须在0-100%之间"

    if direct_rate + indirect_rate > MAX_TOTAL_COMMISSION_RATE:
        return False, "佣金比例总和不能超过50%"

    if min_withdraw < _ZERO:
        return False, "最低提现金额不能为负数"

    if not _ZERO <= withdraw_fee <= _ONE:
        return False, "提现手续费比例必须在0-100%之间"

    rates = (direct_rate, indirect_rate, withdraw_fee)
    if not all(_fits(rate, RATE_QUANT) for rate in rates):
        return False, "比例最多保留四位小数"

    if not _fits(min_withdraw, MONEY_QUANT):
        return False, "最低提现金额最多保留两位小数"

    if settle_delay < 0:
        return False, "结算延迟天数不能为负数"

    return True, None


def validate_money_amount(
    amount: Decimal | str | int | float,
) -> tuple[bool, Decimal | None, str | None]:
    """
    Parse and validate a positive money amount.

    Args:
        amount: Amount in any numeric or string form

    Returns:
        Tuple of (is_valid, parsed_value, error_message)

    Examples:
        >>> validate_money_amount("100.50")
        (True, Decimal('100.50'), None)
        >>> validate_money_amount("0")
        (False, None, '金额必须大于0')
    """
    try:
        # str() first so floats keep their printed value
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        return False, None, "金额格式无效"

    if not value.is_finite():
        return False, None, "金额格式无效"

    if value <= _ZERO:
        return False, None, "金额必须大于0"

    if value.as_tuple().exponent < -2:
        return False, None, "金额最多保留两位小数"

    return True, value, None


def validate_withdrawal_type(value: str) -> tuple[bool, str | None]:
    """Check withdrawal type is commission or balance."""
    if value not in {t.value for t in WithdrawalType}:
        return False, "无效的提现类型"
    return True, None


def validate_withdraw_to(value: str) -> tuple[bool, str | None]:
    """Check payout channel is supported."""
    if value not in {w.value for w in WithdrawTo}:
        return False, "无效的提现方式"
    return True, None


def validate_invite_code(code: str | None) -> tuple[bool, str | None, str | None]:
    """
    Normalize and validate an invite code format.

    Args:
        code: Invite code as typed by a user

    Returns:
        Tuple of (is_valid, normalized_code, error_message)
    """
    if not code or not code.strip():
        return False, None, "邀请码不能为空"

    normalized = code.strip().upper()
    if not INVITE_CODE_PATTERN.match(normalized):
        return False, None, "邀请码无效"

    return True, normalized, None
