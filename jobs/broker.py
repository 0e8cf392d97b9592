"""
Dramatiq broker configuration.

Workers load this module before the task modules:

    dramatiq jobs.broker jobs.tasks.commission_settlement

Failed settlement runs are retried with exponential backoff; the retry
policy comes from settings so staging can use shorter delays.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import CurrentMessage, Retries, ShutdownNotifications
from loguru import logger

from app.config.logging import setup_logging
from app.config.settings import settings


def create_broker() -> RedisBroker:
    """Build the Redis broker with the worker middleware stack."""
    redis_broker = RedisBroker(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password or None,
        db=settings.redis_db,
    )
    redis_broker.add_middleware(ShutdownNotifications())
    redis_broker.add_middleware(CurrentMessage())
    redis_broker.add_middleware(
        Retries(
            max_retries=settings.job_max_retries,
            min_backoff=settings.job_min_backoff_ms,
            max_backoff=settings.job_max_backoff_ms,
        )
    )
    return redis_broker


setup_logging()

broker = create_broker()
dramatiq.set_broker(broker)

logger.bind(service="jobs").info(
    "Settlement broker ready",
    extra={
        "redis": f"{settings.redis_host}:{settings.redis_port}/{settings.redis_db}",
        "max_retries": settings.job_max_retries,
    },
)
