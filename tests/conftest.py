"""Pytest configuration for the sharing API tests."""
import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-with-enough-bytes-for-hs256"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["APP_URL"] = "http://app.test"
os.environ["DEBUG"] = "false"
os.environ["EMAIL_SERVICE"] = "console"

from datetime import timedelta

import jwt
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.database import Base, get_db
from app.core.errors import NotificationFailure
from app.models import (
    Collaborator,
    CollaboratorRole,
    Folder,
    Folio,
    Note,
    PublishedPage,
    Share,
    SharePermission,
    ShareStatus,
    User,
)
from app.services import access_tokens
from app.services.notifications import NotificationService, get_notifier
from app.services.rate_limit import AccessRateLimiter, get_access_rate_limiter
from app.utils.datetime_helper import utcnow
from main import app


def identity_token(user_id, expires_delta=timedelta(minutes=30)):
    """Sign a token the way the identity service does"""
    payload = {"sub": user_id, "exp": utcnow() + expires_delta, "type": "access"}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


class RecordingMailer:
    """Keeps every message instead of sending it"""

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    async def send(self, to_email, subject, html):
        if to_email in self.fail_for:
            raise NotificationFailure(f"mailbox {to_email} unavailable")
        self.sent.append({"to": to_email, "subject": subject, "html": html})

    def subjects_for(self, to_email):
        return [message["subject"] for message in self.sent if message["to"] == to_email]


class FakeRedis:
    """The slice of the Redis client used by the rate limiter"""

    def __init__(self):
        self.counters = {}
        self.ttls = {}

    async def incr(self, name):
        self.counters[name] = self.counters.get(name, 0) + 1
        return self.counters[name]

    async def expire(self, name, seconds):
        self.ttls[name] = seconds
        return True


class Factory:
    """Builds rows directly in the store, bypassing the API"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self._count = 0

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.commit()
        return obj

    def _next(self) -> int:
        self._count += 1
        return self._count

    async def user(self, email=None, name=None) -> User:
        n = self._next()
        return await self._save(User(email=email or f"user{n}@example.com", name=name))

    async def folio(self, owner: User, name="My Folio", is_system=False) -> Folio:
        return await self._save(Folio(name=name, owner_id=owner.id, is_system=is_system))

    async def folder(self, folio: Folio, name=None, parent: Folder = None) -> Folder:
        return await self._save(
            Folder(
                name=name or f"Folder {self._next()}",
                folio_id=folio.id,
                parent_id=parent.id if parent else None,
            )
        )

    async def note(self, folio: Folio, title=None, folder: Folder = None, content=None) -> Note:
        return await self._save(
            Note(
                title=title or f"Note {self._next()}",
                content=content if content is not None else {"type": "doc", "blocks": []},
                folio_id=folio.id,
                folder_id=folder.id if folder else None,
            )
        )

    async def page(self, note: Note, slug=None, is_published=True) -> PublishedPage:
        return await self._save(
            PublishedPage(
                note_id=note.id,
                slug=slug or f"page-{self._next()}",
                is_published=is_published,
                published_at=utcnow(),
            )
        )

    async def share(
        self,
        page: PublishedPage,
        inviter: User,
        email=None,
        permission=SharePermission.READ,
        status=ShareStatus.ACTIVE,
        expires_at=None,
    ) -> Share:
        share = Share(
            page_id=page.id,
            invited_email=email or f"invitee{self._next()}@example.com",
            invited_by=inviter.id,
            permission=permission,
            status=status,
            expires_at=expires_at,
            access_count=0,
            created_at=utcnow(),
        )
        await access_tokens.issue(share, self.db)
        return await self._save(share)

    async def collaborator(self, page: PublishedPage, user: User, role=CollaboratorRole.VIEWER, share=None):
        return await self._save(
            Collaborator(page_id=page.id, user_id=user.id, role=role, share_id=share.id if share else None)
        )

    async def expired_share(self, page, inviter, email=None, **kwargs) -> Share:
        return await self.share(page, inviter, email=email, expires_at=utcnow() - timedelta(days=1), **kwargs)


@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    # aiosqlite needs explicit BEGIN for SAVEPOINT support
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _explicit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def notifier(mailer):
    return NotificationService(mailer, app_url="http://app.test")


@pytest.fixture
def redis_counter():
    return FakeRedis()


@pytest.fixture
def rate_limit():
    """Per-test override of the allowed attempts per window"""
    return {"limit": 30}


@pytest.fixture
async def client(db, notifier, redis_counter, rate_limit):
    async def override_get_db():
        yield db

    async def override_get_notifier():
        return notifier

    async def override_get_access_rate_limiter():
        return AccessRateLimiter(redis_counter, limit=rate_limit["limit"], window_seconds=60)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = override_get_notifier
    app.dependency_overrides[get_access_rate_limiter] = override_get_access_rate_limiter

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def bearer():
    """Bearer headers for a raw user id"""
    def _headers(user_id: str) -> dict:
        return {"Authorization": f"Bearer {identity_token(user_id)}"}
    return _headers


@pytest.fixture
def auth(bearer):
    """Bearer headers for a stored user"""
    def _headers(user: User) -> dict:
        return bearer(user.id)
    return _headers


@pytest.fixture
async def owner(factory):
    return await factory.user(email="owner@example.com", name="Olivia Owner")


@pytest.fixture
async def owner_folio(factory, owner):
    return await factory.folio(owner)


@pytest.fixture
async def published(factory, owner_folio):
    """A published note owned by ``owner``; returns (note, page)"""
    note = await factory.note(owner_folio, title="Team Handbook", content={"type": "doc", "text": "hello"})
    page = await factory.page(note, slug="team-handbook")
    return note, page


@pytest.fixture
def make_notifier():
    """Notifier over a fresh mailer that fails for the given addresses"""
    def _make(fail_for=()):
        mailer = RecordingMailer(fail_for)
        return NotificationService(mailer, app_url="http://app.test"), mailer
    return _make


@pytest.fixture
async def file_store(tmp_path):
    """Database file with a session maker, for tests that need separate connections.

    Yields ``(sessions, factory)``; the factory writes through its own session.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    sessions = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with sessions() as setup:
        yield sessions, Factory(setup)
    await engine.dispose()
