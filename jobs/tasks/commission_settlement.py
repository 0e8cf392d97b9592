"""Commission settlement task."""

import dramatiq
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.services.distribution.commission_service import CommissionService
from app.utils.db_decorators import with_rollback_on_error
from jobs.async_runner import create_local_session, run_async

# 5 minutes, in milliseconds
SETTLEMENT_TIME_LIMIT = 300_000


@dramatiq.actor(
    max_retries=settings.job_max_retries, time_limit=SETTLEMENT_TIME_LIMIT
)
def settle_pending_commissions() -> int:
    """
    Settle commissions older than the configured settle delay.

    Intended to be enqueued periodically (e.g. hourly from cron with
    ``settle_pending_commissions.send()``). Failures propagate so the
    Retries middleware can reschedule the run.

    Returns:
        Number of commissions settled
    """
    logger.info("Starting commission settlement task...")
    settled = run_async(_run_settlement())
    logger.info(
        "Commission settlement task completed",
        extra={"settled": settled},
    )
    return settled


async def _run_settlement() -> int:
    async with create_local_session() as session:
        return await settle_pending(session)


@with_rollback_on_error
async def settle_pending(session: AsyncSession) -> int:
    """
    Settle due commissions using the given session.

    Args:
        session: Database session

    Returns:
        Number of commissions settled
    """
    return await CommissionService(session).settle_pending()
