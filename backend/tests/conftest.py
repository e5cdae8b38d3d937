"""
Pytest configuration and shared fixtures for backend tests.
"""

import sys
from pathlib import Path

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator
from uuid import uuid4

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Import after path is set
from infrastructure.database.models import Base, Category, User
from infrastructure.database.models.user import UserRole, UserStatus
from infrastructure.database.connection import configure_sqlite_transactions, get_db
from core.security import PasswordHasher, TokenService
from infrastructure.config import Settings, get_settings
from services.announcements import AnnouncementService

# Initialize security services (low bcrypt cost keeps the suite fast)
password_hasher = PasswordHasher(rounds=4)
settings = get_settings()
token_service = TokenService(secret_key=settings.jwt_secret_key)

TEST_PASSWORD = "testpassword123"
TEST_CRON_SECRET = "test-cron-secret"


# Database URL for testing (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def make_settings(**overrides) -> Settings:
    """Settings for tests: scheduler loop off, known cron secret."""
    values = {
        "scheduler_enabled": False,
        "cron_secret": TEST_CRON_SECRET,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture
def override_settings():
    """Swap the settings the app sees for the rest of the test."""
    from main import app

    def _override(**overrides) -> Settings:
        overridden = make_settings(**overrides)
        app.dependency_overrides[get_settings] = lambda: overridden
        return overridden

    return _override


@pytest.fixture
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite_transactions(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


async def _create_user(db_session: AsyncSession, email: str, name: str, role: UserRole) -> User:
    user = User(
        id=str(uuid4()),
        email=email,
        password_hash=password_hasher.hash(TEST_PASSWORD),
        name=name,
        role=role.value,
        status=UserStatus.ACTIVE.value,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create an active editor."""
    return await _create_user(db_session, "editor@example.com", "Test Editor", UserRole.EDITOR)


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create an active administrator."""
    return await _create_user(db_session, "admin@example.com", "Test Admin", UserRole.ADMIN)


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Create authentication headers for the editor."""
    access_token = token_service.create_access_token(
        user_id=test_user.id, email=test_user.email, role=test_user.role
    )
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    """Create authentication headers for the administrator."""
    access_token = token_service.create_access_token(
        user_id=admin_user.id, email=admin_user.email, role=admin_user.role
    )
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
async def category(db_session: AsyncSession) -> Category:
    """Create the default category."""
    category = Category(name="Company News", slug="company-news", color="#dc2626", sort_order=1)
    db_session.add(category)
    await db_session.commit()
    await db_session.refresh(category)
    return category


@pytest.fixture
def announcement_service(db_session: AsyncSession, test_settings: Settings) -> AnnouncementService:
    return AnnouncementService(db_session, test_settings)


@pytest.fixture
def make_announcement(announcement_service: AnnouncementService, category: Category, db_session: AsyncSession):
    """Factory that creates and commits announcements through the service."""
    counter = {"n": 0}

    async def _make(actor_id=None, **overrides):
        counter["n"] += 1
        values = {
            "title": f"Announcement {counter['n']}",
            "content": f"<p>Body of announcement {counter['n']}</p>",
            "category_id": category.id,
        }
        values.update(overrides)
        announcement = await announcement_service.create(actor_id=actor_id, **values)
        await db_session.commit()
        return announcement

    return _make


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def past(now) -> datetime:
    return now - timedelta(hours=1)


@pytest.fixture
def future(now) -> datetime:
    return now + timedelta(hours=1)


@pytest.fixture
async def async_client(db_session: AsyncSession, test_settings: Settings) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    from main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings

    # Reset rate limiter storage between tests
    app.state.limiter.reset()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()
