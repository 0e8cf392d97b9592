"""
Withdrawal request handler.

Creates withdrawal requests: validates the request, freezes the funds and
stores the request with encrypted payout account details.
"""

import secrets
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import (
    WITHDRAWAL_NO_PREFIX,
    WITHDRAWAL_NO_RANDOM_DIGITS,
)
from app.config.settings import settings
from app.models.enums import WithdrawalStatus, WithdrawalType
from app.repositories.distributor_repository import DistributorRepository
from app.repositories.withdrawal_repository import WithdrawalRepository
from app.services.base_service import BaseService, transaction
from app.services.distribution.commission_setting_service import (
    CommissionSettingService,
)
from app.services.schemas import WithdrawalResult
from app.services.withdrawal.withdrawal_balance_manager import (
    WithdrawalBalanceManager,
)
from app.utils.datetime_utils import utc_now
from app.utils.encryption import EncryptionService, get_encryption_service
from app.utils.exceptions import (
    InsufficientBalanceError,
    NotFoundError,
    OperationFailedError,
    ValidationError,
)
from app.validators.distribution import (
    quantize_money,
    validate_money_amount,
    validate_withdraw_to,
    validate_withdrawal_type,
)


def generate_withdrawal_no() -> str:
    """Withdrawal number: prefix, microsecond UTC timestamp and a random tail."""
    now = utc_now()
    tail = secrets.randbelow(10**WITHDRAWAL_NO_RANDOM_DIGITS)
    return (
        f"{WITHDRAWAL_NO_PREFIX}{now:%Y%m%d%H%M%S}{now.microsecond:06d}"
        f"{tail:0{WITHDRAWAL_NO_RANDOM_DIGITS}d}"
    )


class WithdrawalRequestHandler(BaseService):
    """Handles withdrawal request creation."""

    def __init__(
        self,
        session: AsyncSession,
        encryption: EncryptionService | None = None,
    ) -> None:
        """
        Initialize withdrawal request handler.

        Args:
            session: Database session
            encryption: Encryption for account details (defaults to singleton)
        """
        super().__init__(session)
        self.withdrawal_repo = WithdrawalRepository(session)
        self.distributor_repo = DistributorRepository(session)
        self.balance_manager = WithdrawalBalanceManager(session)
        self.setting_service = CommissionSettingService(session)
        self.encryption = encryption or get_encryption_service()

    @transaction
    async def request_withdrawal(
        self,
        user_id: int,
        type: str,
        amount: Decimal | str,
        withdraw_to: str,
        account_info: str,
    ) -> WithdrawalResult:
        """
        Create a pending withdrawal and freeze its amount.

        Args:
            user_id: Requesting user
            type: "commission" or "balance"
            amount: Gross amount to withdraw
            withdraw_to: Payout channel
            account_info: Payout account details (stored encrypted)

        Returns:
            Created withdrawal with fee breakdown

        Raises:
            ValidationError: Invalid type, channel or amount
            OperationFailedError: Below minimum or too many open requests
            InsufficientBalanceError: Not enough available funds
        """
        valid, error = validate_withdrawal_type(type)
        if not valid:
            raise ValidationError(error)
        valid, error = validate_withdraw_to(withdraw_to)
        if not valid:
            raise ValidationError(error)
        valid, value, error = validate_money_amount(amount)
        if not valid:
            raise ValidationError(error)

        withdrawal_type = WithdrawalType(type)
        config = await self.setting_service.get_config()
        if value < config.min_withdraw:
            raise OperationFailedError(f"最低提现金额为{config.min_withdraw:.2f}元")

        open_count = await self.withdrawal_repo.count_open_by_user(user_id)
        if open_count >= settings.withdrawal_max_pending:
            raise OperationFailedError(
                "您有太多待处理的提现申请，请等待处理后再申请"
            )

        if withdrawal_type == WithdrawalType.COMMISSION:
            distributor = await self.distributor_repo.get_by_user_id(user_id)
            if distributor is None:
                raise NotFoundError("您还不是分销商")
            if not distributor.is_approved:
                raise OperationFailedError("分销商尚未审核通过")

        available = await self.balance_manager.get_available(
            user_id, withdrawal_type
        )
        if available < value:
            raise InsufficientBalanceError(
                f"可提现余额不足，当前可提现: {available:.2f}元"
            )

        fee = quantize_money(value * config.withdraw_fee)
        actual_amount = value - fee

        await self.balance_manager.freeze(user_id, withdrawal_type, value)
        withdrawal = await self.withdrawal_repo.create(
            withdrawal_no=generate_withdrawal_no(),
            user_id=user_id,
            type=withdrawal_type.value,
            amount=value,
            fee=fee,
            actual_amount=actual_amount,
            withdraw_to=withdraw_to,
            account_info_encrypted=self.encryption.encrypt(account_info),
            status=WithdrawalStatus.PENDING.value,
        )

        self.logger.info(
            "Withdrawal requested",
            extra={
                "withdrawal_id": withdrawal.id,
                "withdrawal_no": withdrawal.withdrawal_no,
                "user_id": user_id,
                "type": withdrawal_type.value,
                "amount": str(value),
                "fee": str(fee),
            },
        )
        return WithdrawalResult(
            withdrawal=withdrawal, fee=fee, actual_amount=actual_amount
        )
