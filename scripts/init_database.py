#!/usr/bin/env python3
"""Initialize database tables and seed the default commission config."""

import asyncio
import sys

from loguru import logger

from app.config.database import create_engine, create_session_maker
from app.models import Base
from app.services.distribution.commission_setting_service import (
    CommissionSettingService,
)

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database() -> None:
    """Create all database tables."""
    engine = create_engine()

    logger.info("Connecting to database...")
    async with engine.begin() as conn:
        logger.info("Creating tables (checkfirst=True)...")
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    session_maker = create_session_maker(engine)
    async with session_maker() as session:
        if await CommissionSettingService(session).init_default_config():
            logger.info("Default commission config created")

    await engine.dispose()
    logger.success("Database tables created successfully!")


if __name__ == "__main__":
    asyncio.run(init_database())
