"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def start_of_day(moment: datetime | None = None) -> datetime:
    """Midnight of the given (or current) UTC day."""
    moment = moment or utc_now()
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(moment: datetime | None = None) -> datetime:
    """First instant of the given (or current) UTC month."""
    return start_of_day(moment).replace(day=1)


def days_ago(days: int, moment: datetime | None = None) -> datetime:
    """
    Get the instant a number of days before a moment.

    Args:
        days: Number of days to go back
        moment: Reference time (defaults to now)

    Returns:
        Timezone-aware datetime
    """
    return (moment or utc_now()) - timedelta(days=days)
