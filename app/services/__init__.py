"""
Services.

Business logic layer. Domain services live in the ``distribution`` and
``withdrawal`` packages; import them from there.
"""

from app.services.base_service import (
    BaseService,
    log_operation,
    transaction,
)


__all__ = [
    "BaseService",
    "log_operation",
    "transaction",
]
