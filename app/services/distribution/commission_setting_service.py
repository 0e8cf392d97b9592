"""
Commission setting service.

Reads and versions the commission configuration. Every successful update
appends a version and moves the current pointer in one transaction; a
rejected update writes nothing.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.commission_setting_repository import (
    CommissionSettingRepository,
)
from app.services.base_service import BaseService, transaction
from app.services.schemas import CommissionConfig, Page
from app.utils.exceptions import ValidationError
from app.validators.distribution import validate_commission_config


class CommissionSettingService(BaseService):
    """Commission configuration store."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission setting service."""
        super().__init__(session)
        self.setting_repo = CommissionSettingRepository(session)

    async def get_config(self) -> CommissionConfig:
        """
        Get current configuration.

        Returns:
            Current version, or the built-in defaults when none exists
        """
        current = await self.setting_repo.get_current()
        if current is None:
            return CommissionConfig()
        return CommissionConfig.from_model(current)

    @transaction
    async def update_config(
        self, config: CommissionConfig, operator_id: int | None = None
    ) -> CommissionConfig:
        """
        Validate and activate a new configuration.

        Args:
            config: New configuration values
            operator_id: Admin performing the change

        Returns:
            The stored configuration

        Raises:
            ValidationError: If any value is out of range
        """
        valid, error = validate_commission_config(
            Decimal(str(config.direct_rate)),
            Decimal(str(config.indirect_rate)),
            Decimal(str(config.min_withdraw)),
            Decimal(str(config.withdraw_fee)),
            config.settle_delay,
        )
        if not valid:
            raise ValidationError(error)

        version = await self.setting_repo.create_version(
            direct_rate=config.direct_rate,
            indirect_rate=config.indirect_rate,
            min_withdraw=config.min_withdraw,
            withdraw_fee=config.withdraw_fee,
            settle_delay=config.settle_delay,
            created_by=operator_id,
        )
        await self.setting_repo.set_current(version.id)

        self.logger.info(
            "Commission config updated",
            extra={
                "setting_id": version.id,
                "operator_id": operator_id,
                "direct_rate": str(config.direct_rate),
                "indirect_rate": str(config.indirect_rate),
            },
        )
        return config

    async def get_config_history(self, page: int = 1, limit: int = 20) -> Page:
        """Configuration versions, newest first."""
        items, total = await self.setting_repo.find_history(page, limit)
        return Page(items=items, total=total, page=page, limit=limit)

    @transaction
    async def init_default_config(self) -> bool:
        """
        Seed the default configuration.

        Returns:
            True if a version was created, False if one already existed
        """
        if await self.setting_repo.get_current() is not None:
            return False

        defaults = CommissionConfig()
        version = await self.setting_repo.create_version(
            direct_rate=defaults.direct_rate,
            indirect_rate=defaults.indirect_rate,
            min_withdraw=defaults.min_withdraw,
            withdraw_fee=defaults.withdraw_fee,
            settle_delay=defaults.settle_delay,
        )
        await self.setting_repo.set_current(version.id)
        self.logger.info("Default commission config created")
        return True
