"""Shared pytest configuration and fixtures for the test suite."""

import os

# Settings are read at import time, so the environment goes first
os.environ["ENV"] = "test"
os.environ["TZ"] = "Asia/Seoul"
os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ.setdefault("POSTGRES_DB", "bookclub_test")
os.environ.setdefault("POSTGRES_USER", "bookclub")
os.environ.setdefault("POSTGRES_PASSWORD", "bookclub")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ALLOW_UPDATE_AFTER_OPEN"] = "false"

from datetime import date, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import bookclub.models  # noqa: F401
from bookclub.core.database import Base
from bookclub.models import Account, Day, Zone
from bookclub.schemas import StudyCreate, StudyUpdate
from bookclub.services.locks import StudyLockRegistry
from bookclub.services.repository import StudyRepository
from bookclub.services.study_service import StudyService
from bookclub.utils.clock import FixedClock

TODAY = date(2026, 3, 2)


def study_input(today: date = TODAY, **overrides) -> StudyCreate:
    """Valid creation input: starts tomorrow, runs a week, 13:00-15:30, five seats."""
    fields = dict(
        name="Sunday readers",
        book_name="The Pragmatic Programmer",
        book_image=None,
        description="One chapter a week",
        contact="readers@bookclub.local",
        size=5,
        start_date=today + timedelta(days=1),
        end_date=today + timedelta(days=7),
        start_time="13:00",
        end_time="15:30",
        day=Day.MONDAY,
        zone=Zone.SEOUL,
    )
    fields.update(overrides)
    return StudyCreate(**fields)


def update_input(today: date = TODAY, **overrides) -> StudyUpdate:
    fields = dict(
        name="Updated readers",
        description="Two chapters a week",
        contact="updated@bookclub.local",
        size=10,
        start_date=today + timedelta(days=1),
        end_date=today + timedelta(days=5),
        start_time="12:00",
        end_time="14:30",
        day=Day.THURSDAY,
        zone=Zone.BUSAN,
    )
    fields.update(overrides)
    return StudyUpdate(**fields)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bookclub.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FixedClock(TODAY)


@pytest.fixture
def locks():
    return StudyLockRegistry()


@pytest.fixture
async def accounts(session_factory):
    """Five accounts: admin, alice, bob, carol, dave."""
    async with session_factory() as session:
        created = [
            Account(name="Admin", email="admin@bookclub.local", nickname="admin"),
            Account(name="Alice", email="alice@bookclub.local", nickname="alice"),
            Account(name="Bob", email="bob@bookclub.local", nickname="bob"),
            Account(name="Carol", email="carol@bookclub.local", nickname="carol"),
            Account(name="Dave", email="dave@bookclub.local", nickname="dave"),
        ]
        session.add_all(created)
        await session.commit()
        return {account.nickname: account for account in created}


@pytest.fixture
async def study(session_factory, clock, locks, accounts):
    """An OPEN study with five seats managed by ``admin``."""
    async with session_factory() as session:
        return await StudyService(session, clock=clock, locks=locks).create_study(
            accounts["admin"].email, study_input()
        )


async def reload_study(session_factory, study_id):
    async with session_factory() as session:
        return await StudyRepository(session).find_by_id(study_id)


async def reload_account(session_factory, account_id):
    async with session_factory() as session:
        return await session.get(Account, account_id)
