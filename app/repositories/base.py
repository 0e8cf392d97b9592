"""
Base repository.

Generic CRUD operations for all repositories, plus the conditional update
used as compare-and-swap by every state transition.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

# Generic type for model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with generic CRUD operations.

    Provides async database operations for any SQLAlchemy model.

    Type Parameters:
        ModelType: SQLAlchemy model class

    Example:
        class DistributorRepository(BaseRepository[Distributor]):
            def __init__(self, session: AsyncSession):
                super().__init__(Distributor, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by_id(
        self, id: int, for_update: bool = False
    ) -> ModelType | None:
        """
        Get entity by ID.

        Args:
            id: Entity ID
            for_update: Lock the row with SELECT FOR UPDATE

        Returns:
            Entity or None if not found
        """
        # Conditional updates bypass the identity map, so always reload
        return await self.session.get(
            self.model,
            id,
            with_for_update=True if for_update else None,
            populate_existing=True,
        )

    async def get_by(
        self, **filters: Any
    ) -> ModelType | None:
        """
        Get single entity by filters.

        Args:
            **filters: Column filters

        Returns:
            First matching entity or None
        """
        stmt = (
            select(self.model)
            .filter_by(**filters)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_all(
        self,
        limit: int | None = None,
        offset: int | None = None,
        **filters: Any,
    ) -> list[ModelType]:
        """
        Find all entities matching filters.

        Args:
            limit: Max number of results
            offset: Number of results to skip
            **filters: Column filters

        Returns:
            List of matching entities
        """
        stmt = select(self.model).filter_by(**filters).order_by(self.model.id)

        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **data: Any) -> ModelType:
        """
        Create new entity.

        Args:
            **data: Entity data

        Returns:
            Created entity
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def count(
        self, *conditions: ColumnElement[bool], **filters: Any
    ) -> int:
        """
        Count entities matching conditions and filters.

        Args:
            *conditions: SQL expressions
            **filters: Column filters

        Returns:
            Count of matching entities
        """
        stmt = select(func.count()).select_from(self.model)
        if conditions:
            stmt = stmt.where(*conditions)
        if filters:
            stmt = stmt.filter_by(**filters)

        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def exists(self, **filters: Any) -> bool:
        """
        Check if entity exists.

        Args:
            **filters: Column filters

        Returns:
            True if exists, False otherwise
        """
        return await self.count(**filters) > 0

    async def update_where(
        self, *conditions: ColumnElement[bool], **values: Any
    ) -> int:
        """
        Conditional UPDATE in a single statement.

        The WHERE clause is the compare-and-swap guard: callers pass the
        expected current state and act only when exactly one row changed.
        Loaded instances are not synchronized; refresh them to see the
        new values.

        Args:
            *conditions: WHERE expressions (must include the guard)
            **values: Column values or SQL expressions

        Returns:
            Number of rows affected
        """
        stmt = (
            update(self.model)
            .where(*conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def paginate(
        self,
        stmt: Select[Any],
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[ModelType], int]:
        """
        Run a select with pagination to avoid OOM.

        Args:
            stmt: Filtered and ordered select of the model
            page: Page number (1-indexed)
            per_page: Items per page

        Returns:
            Tuple of (items, total_count)
        """
        page = max(page, 1)
        per_page = max(per_page, 1)

        count_stmt = select(func.count()).select_from(
            stmt.order_by(None).subquery()
        )
        total = (await self.session.execute(count_stmt)).scalar() or 0

        result = await self.session.execute(
            stmt.offset((page - 1) * per_page).limit(per_page)
        )
        return list(result.scalars().all()), total
