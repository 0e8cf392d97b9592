"""
Commission setting repository.

Versions are only ever inserted; the pointer row is the single source of
which version is current.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.commission_setting import (
    CURRENT_POINTER_ID,
    CommissionSetting,
    CommissionSettingCurrent,
)
from app.repositories.base import BaseRepository


class CommissionSettingRepository(BaseRepository[CommissionSetting]):
    """Commission setting repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission setting repository."""
        super().__init__(CommissionSetting, session)

    async def get_current(self) -> CommissionSetting | None:
        """
        Get the version the pointer references.

        Returns:
            Current setting or None when never configured
        """
        stmt = select(CommissionSetting).join(
            CommissionSettingCurrent,
            CommissionSettingCurrent.setting_id == CommissionSetting.id,
        ).where(CommissionSettingCurrent.id == CURRENT_POINTER_ID)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_version(self, **data: Any) -> CommissionSetting:
        """Insert a new version (not yet current)."""
        return await self.create(**data)

    async def set_current(self, setting_id: int) -> None:
        """
        Point the current pointer at a version.

        Args:
            setting_id: Version to activate
        """
        pointer = await self.session.get(
            CommissionSettingCurrent, CURRENT_POINTER_ID, with_for_update=True
        )
        if pointer is None:
            self.session.add(
                CommissionSettingCurrent(
                    id=CURRENT_POINTER_ID, setting_id=setting_id
                )
            )
        else:
            pointer.setting_id = setting_id
        await self.session.flush()

    async def find_history(
        self, page: int = 1, per_page: int = 20
    ) -> tuple[list[CommissionSetting], int]:
        """Versions newest first."""
        stmt = select(CommissionSetting).order_by(CommissionSetting.id.desc())
        return await self.paginate(stmt, page, per_page)
