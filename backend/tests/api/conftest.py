"""API-specific test fixtures."""

import asyncio
from contextlib import asynccontextmanager

import pytest
from fakeredis import FakeAsyncRedis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tutordesk.core.auth import PERMISSION_FLAGS, AdminPrincipal, require_admin
from tutordesk.db.base import Base, build_engine
from tutordesk.db.models.admin import Admin
from tutordesk.services.email_service import ContactMailer, EmailMessage, StatusEmailNotifier
from tutordesk.services.notifications import InquiryEventPublisher


class RecordingPublisher(InquiryEventPublisher):
    """Publisher that keeps events in memory instead of hitting Redis."""

    def __init__(self):
        super().__init__(redis=None, channel="admin:inquiries:events")
        self.events: list[dict] = []

    async def publish(self, event: dict) -> bool:
        self.events.append(event)
        return True


class RecordingTransport:
    def __init__(self):
        self.sent: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        self.sent.append(message)


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'tutordesk_api.db'}"


@pytest.fixture
def run_db(db_url):
    """Run ``fn(session_factory)`` on a short-lived engine in its own loop.

    TestClient runs the app in a separate event loop, so seeding and
    inspection go through their own engine rather than a shared one.
    """

    def _run(fn):
        async def _go():
            engine = build_engine(db_url)
            import tutordesk.db.models  # noqa: F401

            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            try:
                return await fn(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))
            finally:
                await engine.dispose()

        return asyncio.run(_go())

    return _run


@pytest.fixture
def seed_admin(run_db):
    def _seed(username: str = "agent_a", **fields) -> AdminPrincipal:
        async def _create(factory):
            admin = Admin(username=username, email=f"{username}@tutordesk.test", **fields)
            async with factory() as session:
                session.add(admin)
                await session.commit()
            return admin

        admin = run_db(_create)
        return AdminPrincipal(
            admin_id=admin.id,
            username=admin.username,
            role=admin.role,
            permissions=frozenset(flag for flag in PERMISSION_FLAGS if admin.has_permission(flag)),
        )

    return _seed


@pytest.fixture
def admin_principal(seed_admin) -> AdminPrincipal:
    return seed_admin("agent_a")


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def email_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def app(db_url, publisher, email_transport) -> FastAPI:
    """Test app wired like create_app() with the database initialised in TestClient's loop."""
    from tutordesk.api.deps import get_contact_mailer, get_email_notifier, get_event_publisher
    from tutordesk.api.routes import api_router
    from tutordesk.db import close_db, close_redis, init_db, init_redis
    from tutordesk.main import register_exception_handlers
    from tutordesk.middleware.correlation import setup_correlation_middleware

    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        import tutordesk.db.base as db_mod
        import tutordesk.db.redis as redis_mod

        db_mod._engine = None
        db_mod._session_factory = None
        redis_mod._redis = None
        await init_db(db_url)
        await init_redis(client=FakeAsyncRedis(decode_responses=True))
        yield
        await close_redis()
        await close_db()

    test_app = FastAPI(title="TutorDesk - Test Client", lifespan=test_lifespan)
    test_app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_correlation_middleware(test_app)
    register_exception_handlers(test_app)
    test_app.include_router(api_router, prefix="/api")

    test_app.dependency_overrides[get_event_publisher] = lambda: publisher
    test_app.dependency_overrides[get_email_notifier] = lambda: StatusEmailNotifier(
        transport=email_transport, enabled=True
    )
    test_app.dependency_overrides[get_contact_mailer] = lambda: ContactMailer(transport=email_transport)
    return test_app


@pytest.fixture
def client(app) -> TestClient:
    """Unauthenticated client."""
    with TestClient(app) as test_client:
        yield test_client


def as_admin(app: FastAPI, principal: AdminPrincipal) -> None:
    async def _override():
        return principal

    app.dependency_overrides[require_admin] = _override


@pytest.fixture
def admin_client(app, admin_principal) -> TestClient:
    as_admin(app, admin_principal)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
