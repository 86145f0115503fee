from __future__ import annotations

import os

# settings are read at import time
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ["ADMIN_ACCESS_KEY"] = "LinoAdmin2025"
os.environ["GEMINI_API_KEY"] = ""
os.environ["NOTIFY_RELAY_URL"] = ""

from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

import studio.models  # noqa: F401  (registers every table on Base.metadata)
from studio.core.database import Base, build_session_factory
from studio.core.security import get_password_hash
from studio.models.admin_user import AdminUser
from studio.models.site_settings import SiteSettings
from studio.services.local_cache import LocalCache
from studio.services.remote_store import RemoteStore
from studio.services.session_gate import AdminSessionGate
from studio.services.site_context import SiteContext

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "s3cret-pass"
ADMIN_KEY = "LinoAdmin2025"


class FakeRedis:
    """In-memory stand-in for the redis.asyncio calls the cache makes."""

    def __init__(self, fail: bool = False):
        self.values: Dict[str, str] = {}
        self.lists: Dict[str, List[str]] = {}
        self.fail = fail

    def _check(self) -> None:
        if self.fail:
            raise ConnectionError("redis unavailable")

    async def get(self, key: str) -> Optional[str]:
        self._check()
        return self.values.get(key)

    async def set(self, key: str, value: str) -> bool:
        self._check()
        self.values[key] = value
        return True

    async def rpush(self, key: str, *values: str) -> int:
        self._check()
        self.lists.setdefault(key, []).extend(values)
        return len(self.lists[key])

    async def lrange(self, key: str, start: int, end: int) -> List[str]:
        self._check()
        items = self.lists.get(key, [])
        return items[start:] if end == -1 else items[start:end + 1]


class FakeEnrichment:
    def __init__(self, result: Any = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls = 0

    async def enrich(self, submission, site_name, prefix, suffix_length):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


async def seed_settings(session_factory, **row: Any) -> None:
    """Write the settings row directly, bypassing the row policy."""
    async with session_factory() as db:
        db.add(SiteSettings(id=1, **row))
        await db.commit()


async def read_settings_row(session_factory) -> Optional[dict]:
    async with session_factory() as db:
        res = await db.execute(select(SiteSettings.__table__).where(SiteSettings.id == 1))
        row = res.first()
        return dict(row._mapping) if row else None


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def admin_user(session_factory):
    async with session_factory() as db:
        db.add(AdminUser(email=ADMIN_EMAIL, hashed_password=get_password_hash(ADMIN_PASSWORD)))
        await db.commit()
    return ADMIN_EMAIL, ADMIN_PASSWORD


@pytest.fixture
def store(session_factory):
    return RemoteStore(session_factory)


@pytest.fixture
def unreachable_store(tmp_path, store):
    """Store whose database cannot be opened; shares the auth API with ``store``."""
    bad = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'studio.db'}")
    return RemoteStore(build_session_factory(bad), auth=store.auth)


@pytest.fixture
def redis():
    return FakeRedis()


@pytest.fixture
def cache(redis):
    return LocalCache(redis, prefix="test")


@pytest.fixture
def context(store, cache):
    return SiteContext(store, cache)


@pytest.fixture
async def gate(store, admin_user):
    g = AdminSessionGate(store.auth, access_key=ADMIN_KEY)
    await g.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
    return g


@pytest.fixture
def editor(context, gate):
    return context.open_workspace(gate)
