"""
Shared fixtures for integration tests.

Uses an in-memory SQLite database (aiosqlite) shared through a StaticPool.
"""

from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ratewatch.models import Base, ThresholdProfile, User


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def seed_user(db_session):
    """
    Factory creating a user with a threshold profile.

    Defaults: current rate 6.5, benchmark threshold 5.5, email alerts on.
    """
    counter = {"n": 0}

    async def _seed(with_profile: bool = True, **profile_fields) -> User:
        counter["n"] += 1
        user = User(email=f"user{counter['n']}@example.com", name=f"User {counter['n']}")
        db_session.add(user)
        await db_session.flush()

        if with_profile:
            fields = {
                "current_rate": Decimal("6.5"),
                "benchmark_rate_threshold": Decimal("5.5"),
                "email_alerts_enabled": True,
            }
            fields.update(profile_fields)
            db_session.add(ThresholdProfile(user_id=user.id, **fields))

        await db_session.commit()
        return user

    return _seed
