"""
Withdrawal services package.

This package provides modular withdrawal management functionality:
- withdrawal_balance_manager: Freeze, release and debit of ledger balances
- withdrawal_request_handler: Withdrawal request creation
- withdrawal_lifecycle_handler: Approval, rejection, processing, completion
- withdrawal_query_service: Queries and history

All components are re-exported for easy importing.
"""

from app.services.withdrawal.withdrawal_balance_manager import (
    WithdrawalBalanceManager,
)
from app.services.withdrawal.withdrawal_lifecycle_handler import (
    WithdrawalLifecycleHandler,
)
from app.services.withdrawal.withdrawal_query_service import (
    WithdrawalQueryService,
)
from app.services.withdrawal.withdrawal_request_handler import (
    WithdrawalRequestHandler,
    generate_withdrawal_no,
)


__all__ = [
    "WithdrawalBalanceManager",
    "WithdrawalRequestHandler",
    "WithdrawalLifecycleHandler",
    "WithdrawalQueryService",
    "generate_withdrawal_no",
]
