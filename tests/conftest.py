"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment, must be set before app.config.settings is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
# base64 of "test-encryption-key-32-bytes-000", a valid Fernet key
os.environ.setdefault(
    "ENCRYPTION_KEY", "dGVzdC1lbmNyeXB0aW9uLWtleS0zMi1ieXRlcy0wMDA="
)

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import dramatiq
from dramatiq.brokers.stub import StubBroker

# Actors bind to the global broker at import time
dramatiq.set_broker(StubBroker())

from collections.abc import AsyncIterator
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.models import (
    Base,
    Commission,
    CommissionStatus,
    CommissionType,
    Distributor,
    DistributorStatus,
    User,
    UserWallet,
    Withdrawal,
    WithdrawalStatus,
    WithdrawalType,
    WithdrawTo,
)


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.delete = MagicMock()
    session.refresh = AsyncMock()
    return session


@pytest_asyncio.fixture
async def session() -> AsyncIterator[AsyncSession]:
    """Session on a fresh in-memory SQLite database."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_maker() as db_session:
        yield db_session

    await engine.dispose()


@pytest.fixture
def make_user(session):
    """Factory for users."""
    async def _make(referrer_id: int | None = None, **kwargs) -> User:
        user = User(referrer_id=referrer_id, **kwargs)
        session.add(user)
        await session.flush()
        return user
    return _make


@pytest.fixture
def make_wallet(session):
    """Factory for user wallets."""
    async def _make(user_id: int, balance: str = "0", **kwargs) -> UserWallet:
        wallet = UserWallet(user_id=user_id, balance=Decimal(balance), **kwargs)
        session.add(wallet)
        await session.flush()
        return wallet
    return _make


@pytest.fixture
def make_distributor(session, make_user):
    """
    Factory for distributors.

    Creates the owning user when user_id is not given. Distributors are
    approved unless a status is passed.
    """
    counter = {"n": 0}

    async def _make(
        user_id: int | None = None,
        parent_id: int | None = None,
        status: DistributorStatus = DistributorStatus.APPROVED,
        **kwargs,
    ) -> Distributor:
        if user_id is None:
            user_id = (await make_user()).id
        counter["n"] += 1
        distributor = Distributor(
            user_id=user_id,
            parent_id=parent_id,
            invite_code=kwargs.pop("invite_code", f"TEST{counter['n']:04d}"),
            status=status.value,
            **kwargs,
        )
        session.add(distributor)
        await session.flush()
        return distributor
    return _make


@pytest.fixture
def make_commission(session):
    """Factory for commissions."""
    async def _make(
        distributor_id: int,
        order_id: int,
        from_user_id: int,
        amount: str = "10.00",
        status: CommissionStatus = CommissionStatus.PENDING,
        type: CommissionType = CommissionType.DIRECT,
        created_at: datetime | None = None,
    ) -> Commission:
        commission = Commission(
            distributor_id=distributor_id,
            order_id=order_id,
            from_user_id=from_user_id,
            type=type.value,
            order_amount=Decimal("100.00"),
            rate=Decimal("0.1000"),
            amount=Decimal(amount),
            status=status.value,
        )
        if created_at is not None:
            commission.created_at = created_at
        session.add(commission)
        await session.flush()
        return commission
    return _make


@pytest.fixture
def make_withdrawal(session):
    """Factory for withdrawals. Does not move any balance."""
    counter = {"n": 0}

    async def _make(
        user_id: int,
        amount: str = "50.00",
        fee: str = "0.30",
        type: WithdrawalType = WithdrawalType.COMMISSION,
        status: WithdrawalStatus = WithdrawalStatus.PENDING,
    ) -> Withdrawal:
        counter["n"] += 1
        withdrawal = Withdrawal(
            withdrawal_no=f"WTEST{counter['n']:06d}",
            user_id=user_id,
            type=type.value,
            amount=Decimal(amount),
            fee=Decimal(fee),
            actual_amount=Decimal(amount) - Decimal(fee),
            withdraw_to=WithdrawTo.ALIPAY.value,
            account_info_encrypted="",
            status=status.value,
        )
        session.add(withdrawal)
        await session.flush()
        return withdrawal
    return _make
