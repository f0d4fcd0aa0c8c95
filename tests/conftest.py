"""Shared fixtures and utilities for tests."""

import io
import os

# Settings are read at import time; configure before importing app modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-min-32-chars-long-for-security")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SESSION_COOKIE_SECURE", "false")
os.environ.setdefault("JSON_LOGS", "false")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

import uuid
from datetime import datetime, timedelta
from typing import Optional

import httpx
import pytest
import pytest_asyncio
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import database.models  # noqa: F401
from api.main import app
from core.config import settings
from core.security import create_access_token, hash_password
from core.utils.datetime import now
from database.engine import Base, get_db
from database.models.companies import Company, CompanyAccess, CompanyLogo
from database.models.jobs import Job, JobStatus, Seniority
from database.models.users import AppRole, AppUser, User, UserSession

TEST_PASSWORD = "password123"


# ==================== Database ===================== #

@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory SQLite database per test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Session used by tests to seed and inspect data."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def api_client(session_factory):
    """HTTP client bound to the app with get_db pointed at the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()


# ==================== Factories ===================== #

@pytest.fixture(scope="session")
def password_hash():
    """bcrypt hash of TEST_PASSWORD, computed once."""
    return hash_password(TEST_PASSWORD)


@pytest_asyncio.fixture
async def make_user(db_session, password_hash):
    """Create an identity, optionally with an app_users profile."""

    async def _make(
        role: Optional[AppRole] = AppRole.OPS,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
        is_active: bool = True,
    ) -> User:
        user = User(
            id=uuid.uuid4(),
            email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
            password_hash=password_hash,
            is_active=is_active,
        )
        db_session.add(user)
        if role is not None:
            db_session.add(AppUser(id=user.id, role=role, display_name=display_name))
        await db_session.commit()
        return user

    return _make


@pytest_asyncio.fixture
async def make_token(db_session):
    """Open a server-side session for a user and return its bearer token."""

    async def _make(user: User, expires_in: timedelta = timedelta(hours=1)) -> str:
        session = UserSession(id=uuid.uuid4(), user_id=user.id, expires_at=now() + expires_in)
        db_session.add(session)
        await db_session.commit()
        return create_access_token(
            user.id,
            session.id,
            secret_key=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

    return _make


@pytest_asyncio.fixture
async def auth_headers(make_user, make_token):
    """Create a user with `role` and return Authorization headers for it."""

    async def _make(role: Optional[AppRole] = AppRole.OPS, **kwargs) -> dict:
        user = await make_user(role=role, **kwargs)
        token = await make_token(user)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest_asyncio.fixture
async def make_company(db_session):
    async def _make(
        ref_id: str,
        name: Optional[str] = None,
        industry: Optional[str] = None,
        logo: Optional[tuple[bytes, str]] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> Company:
        company = Company(
            id=uuid.uuid4(),
            ref_id=ref_id,
            name=name or f"Company {ref_id}",
            industry=industry,
        )
        if created_at is not None:
            company.created_at = created_at
        if updated_at is not None:
            company.updated_at = updated_at
        if logo is not None:
            company.logo = CompanyLogo(data=logo[0], mime=logo[1])
        db_session.add(company)
        await db_session.commit()
        return company

    return _make


@pytest_asyncio.fixture
async def make_job(db_session):
    async def _make(
        company: Company,
        position_title: str = "Backend Engineer",
        job_ref: Optional[str] = None,
        status: JobStatus = JobStatus.ACTIVE,
        updated_at: Optional[datetime] = None,
        inactivated_reason: Optional[str] = None,
    ) -> Job:
        job = Job(
            id=uuid.uuid4(),
            company_id=company.id,
            job_ref=job_ref,
            position_title=position_title,
            job_description="Build and run the services behind our product.",
            seniority=Seniority.MID_LEVEL,
            job_basis=["FULL_TIME"],
            salary_bands=[],
            categories=[],
            status=status,
        )
        if status == JobStatus.INACTIVE:
            job.inactivated_reason = inactivated_reason or "Filled"
            job.inactivated_at = now()
        if updated_at is not None:
            job.updated_at = updated_at
        db_session.add(job)
        await db_session.commit()
        return job

    return _make


@pytest_asyncio.fixture
async def grant(db_session):
    """Grant a user access to companies."""

    async def _grant(user: User, *companies: Company) -> None:
        for company in companies:
            db_session.add(CompanyAccess(user_id=user.id, company_id=company.id))
        await db_session.commit()

    return _grant


# ==================== Logo images ===================== #

def _image_bytes(fmt: str, size: tuple[int, int] = (16, 16)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return _image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _image_bytes("JPEG")
