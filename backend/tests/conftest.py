"""Shared test fixtures for all test groups."""

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from tutordesk.db.base import Base, build_engine
from tutordesk.db.models.admin import Admin
from tutordesk.services.inquiry_service import InquiryService


def sample_inquiry_data(**overrides) -> dict:
    data = {
        "course_name": "Organic Chemistry II",
        "assignment_details": "Weekly problem set on reaction mechanisms, 12 questions.",
        "service_type": "assignment",
        "urgency": "normal",
        "contact_email": "Student@Example.com",
        "name": "Jamie Rivera",
        "phone_number": "5551234567",
        "client_type": "first-time",
    }
    data.update(overrides)
    return data


@pytest.fixture
async def engine(tmp_path) -> AsyncEngine:
    """File-backed SQLite engine so each session gets its own connection."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'tutordesk_test.db'}")

    import tutordesk.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def make_admin(session_factory):
    """Factory that persists an Admin and returns it."""

    async def _make(username: str = "agent_a", role: str = "AGENT", **fields) -> Admin:
        admin = Admin(username=username, email=f"{username}@tutordesk.test", role=role, **fields)
        async with session_factory() as session:
            session.add(admin)
            await session.commit()
        return admin

    return _make


@pytest.fixture
async def admin(make_admin) -> Admin:
    return await make_admin("agent_a")


@pytest.fixture
def make_inquiry(session_factory):
    """Factory that creates a PENDING inquiry through the intake service."""

    async def _make(**overrides):
        return await InquiryService(session_factory).create_inquiry(sample_inquiry_data(**overrides))

    return _make


@pytest.fixture
async def inquiry(make_inquiry):
    return await make_inquiry()
