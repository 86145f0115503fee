"""
Remote store client

Table-style access to the hosted database plus its auth API:

    await store.table("settings").select().eq("id", 1).maybe_single().execute()
    await store.as_user(token).table("projects").insert(row).execute()

Every call answers with a StoreResult (data / error) and never raises.

Row policy (mirrors the hosted row-level security):
- settings / projects / services: public read, writes need a valid session
- leads: anonymous insert, reads need a valid session
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import asyncio
import logging

from sqlalchemy import Table, delete, func, insert, select, update
from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import async_sessionmaker

from studio.core.database import Base
from studio.core.result import StoreError, StoreResult
from studio.core.security import (
    create_access_token,
    new_session_id,
    verify_password,
    verify_token,
)
from studio.models.admin_user import AdminUser

logger = logging.getLogger(__name__)

WRITE_PROTECTED_TABLES = {"settings", "projects", "services"}
READ_PROTECTED_TABLES = {"leads"}


def store_error_from_exception(e: BaseException) -> StoreError:
    """Classify a driver/ORM failure."""
    if isinstance(e, (OperationalError, InterfaceError, DisconnectionError, ConnectionError, OSError, asyncio.TimeoutError)):
        return StoreError("network", f"Remote store unreachable: {_safe_exc(e)}")
    if isinstance(e, IntegrityError):
        return StoreError("validation", f"Rejected by the remote store: {_safe_exc(e)}")
    if isinstance(e, DBAPIError) and getattr(e, "connection_invalidated", False):
        return StoreError("network", f"Remote store connection lost: {_safe_exc(e)}")
    return StoreError("backend", f"Remote store error: {_safe_exc(e)}")


def _safe_exc(e: BaseException) -> str:
    """Single-line, bounded exception text."""
    s = str(e or "").replace("\n", " ").replace("\r", " ").strip()
    if len(s) > 300:
        s = s[:300] + "..."
    return s


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

class AuthChangeEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


@dataclass(frozen=True)
class Session:
    """Opaque admin session handed out by the auth API"""
    access_token: str
    session_id: str
    email: str
    role: str
    expires_at: datetime

    @property
    def expired(self) -> bool:
        return self.expires_at <= datetime.now(timezone.utc)


@dataclass
class AuthResult:
    session: Optional[Session] = None
    error: Optional[StoreError] = None


AuthListener = Callable[[AuthChangeEvent, Session], None]


class StoreAuth:
    """Password sign-in, session lookup and session-change notifications."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory
        self._listeners: List[AuthListener] = []
        self._active: Dict[str, Session] = {}
        # session id -> expiry of its last token; rejected until then
        self._revoked: Dict[str, datetime] = {}

    def on_auth_state_change(self, callback: AuthListener) -> Callable[[], None]:
        """Subscribe to session changes, returns the unsubscribe function."""
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    def _emit(self, event: AuthChangeEvent, session: Session) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception:
                logger.exception(f"[store.auth] listener failed on {event.value}")

    def _issue(self, email: str, role: str, session_id: Optional[str] = None) -> Session:
        sid = session_id or new_session_id()
        token, expires_at = create_access_token(subject=email, session_id=sid, role=role)
        session = Session(access_token=token, session_id=sid, email=email, role=role, expires_at=expires_at)
        self._active[sid] = session
        return session

    async def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        normalized = (email or "").strip().lower()
        try:
            async with self._session_factory() as db:
                res = await db.execute(select(AdminUser).where(func.lower(AdminUser.email) == normalized))
                user = res.scalar_one_or_none()
        except Exception as e:
            error = store_error_from_exception(e)
            logger.warning(f"[store.auth] sign-in lookup failed: {error.message}")
            if error.kind != "network":
                error = StoreError("network", error.message)
            return AuthResult(error=error)

        if user is None or not user.is_active or not verify_password(password or "", user.hashed_password):
            return AuthResult(error=StoreError("authorization", "Invalid login credentials"))

        session = self._issue(user.email, "admin")
        self._emit(AuthChangeEvent.SIGNED_IN, session)
        return AuthResult(session=session)

    def issue_service_session(self, subject: str = "legacy-admin") -> Session:
        """Session for callers already verified outside the store (shared admin key)."""
        session = self._issue(subject, "service")
        self._emit(AuthChangeEvent.SIGNED_IN, session)
        return session

    async def get_session(self, access_token: Optional[str]) -> Optional[Session]:
        """Current session for a token, None when expired, revoked or unknown."""
        if not access_token:
            return None
        payload = verify_token(access_token, "access")
        if payload is None:
            return None
        sid = payload.get("sid")
        if not sid or sid in self._revoked:
            return None
        session = self._active.get(sid)
        if session is None or session.access_token != access_token or session.expired:
            return None
        return session

    async def refresh_session(self, access_token: str) -> AuthResult:
        current = await self.get_session(access_token)
        if current is None:
            return AuthResult(error=StoreError("authorization", "Session expired or revoked"))
        session = self._issue(current.email, current.role, session_id=current.session_id)
        self._emit(AuthChangeEvent.TOKEN_REFRESHED, session)
        return AuthResult(session=session)

    def prune(self) -> int:
        """Forget expired sessions and revocations whose tokens can no longer verify."""
        now = datetime.now(timezone.utc)
        expired = [sid for sid, s in self._active.items() if s.expires_at <= now]
        for sid in expired:
            self._active.pop(sid, None)
        for sid in [sid for sid, until in self._revoked.items() if until <= now]:
            del self._revoked[sid]
        return len(expired)

    async def sign_out(self, access_token: str, scope: str = "local") -> StoreResult:
        """Revoke one session ("local") or every session of the same account ("global")."""
        current = await self.get_session(access_token)
        if current is None:
            return StoreResult(error=StoreError("authorization", "Session expired or revoked"))
        if scope == "global":
            targets = [s for s in self._active.values() if s.email == current.email]
        else:
            targets = [current]
        for session in targets:
            self._revoked[session.session_id] = session.expires_at
            self._active.pop(session.session_id, None)
            self._emit(AuthChangeEvent.SIGNED_OUT, session)
        return StoreResult(data={"revoked": len(targets)})


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

class TableQuery:
    """Builder for one table operation, finished with ``await execute()``."""

    def __init__(self, store: "RemoteStore", table: Table):
        self._store = store
        self._table = table
        self._op = "select"
        self._columns: Tuple[str, ...] = ()
        self._payload: Any = None
        self._filters: List[Tuple[str, Any]] = []
        self._order: Optional[Tuple[str, bool]] = None
        self._limit: Optional[int] = None
        self._single: Optional[str] = None  # "single" | "maybe"

    def select(self, *columns: str) -> "TableQuery":
        self._op = "select"
        self._columns = tuple(c for c in columns if c and c != "*")
        return self

    def insert(self, rows: Union[dict, List[dict]]) -> "TableQuery":
        self._op = "insert"
        self._payload = [rows] if isinstance(rows, dict) else list(rows)
        return self

    def update(self, values: dict) -> "TableQuery":
        self._op = "update"
        self._payload = dict(values)
        return self

    def delete(self) -> "TableQuery":
        self._op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "TableQuery":
        self._filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False) -> "TableQuery":
        self._order = (column, desc)
        return self

    def limit(self, count: int) -> "TableQuery":
        self._limit = count
        return self

    def single(self) -> "TableQuery":
        """Exactly one row, error otherwise."""
        self._single = "single"
        return self

    def maybe_single(self) -> "TableQuery":
        """One row or None."""
        self._single = "maybe"
        return self

    # -- execution -------------------------------------------------------

    def _unknown_columns(self, names) -> List[str]:
        return [n for n in names if n not in self._table.c]

    def _where(self, stmt):
        for column, value in self._filters:
            stmt = stmt.where(self._table.c[column] == value)
        return stmt

    def _validate(self) -> Optional[StoreError]:
        names = [c for c, _ in self._filters] + list(self._columns)
        if self._order:
            names.append(self._order[0])
        if self._op == "insert":
            for row in self._payload:
                names.extend(row.keys())
        elif self._op == "update":
            names.extend(self._payload.keys())
        unknown = self._unknown_columns(names)
        if unknown:
            return StoreError("validation", f"Unknown column(s) on {self._table.name}: {', '.join(sorted(set(unknown)))}")
        if self._op in ("update", "delete") and not self._filters:
            return StoreError("validation", f"{self._op} on {self._table.name} requires a filter")
        if self._op == "insert" and not self._payload:
            return StoreError("validation", f"Nothing to insert into {self._table.name}")
        return None

    async def _authorize(self) -> Optional[StoreError]:
        name = self._table.name
        needs_session = (
            (self._op != "select" and name in WRITE_PROTECTED_TABLES)
            or (self._op == "select" and name in READ_PROTECTED_TABLES)
            or (self._op in ("update", "delete") and name in READ_PROTECTED_TABLES)
        )
        if not needs_session:
            return None
        session = await self._store.auth.get_session(self._store.access_token)
        if session is None:
            return StoreError("authorization", f"A signed-in session is required for {self._op} on {name}")
        return None

    async def execute(self) -> StoreResult:
        error = self._validate() or await self._authorize()
        if error is not None:
            return StoreResult(error=error)
        try:
            async with self._store.session_factory() as db:
                try:
                    rows = await self._run(db)
                    if self._op != "select":
                        await db.commit()
                except Exception:
                    await db.rollback()
                    raise
        except Exception as e:
            error = store_error_from_exception(e)
            logger.warning(f"[store] {self._op} {self._table.name} failed: {error.message}")
            return StoreResult(error=error)

        if self._single is not None:
            if len(rows) > 1:
                return StoreResult(error=StoreError("validation", f"Expected one row from {self._table.name}, got {len(rows)}"))
            if not rows:
                if self._single == "single":
                    return StoreResult(error=StoreError("not_found", f"No row in {self._table.name}"))
                return StoreResult(data=None)
            return StoreResult(data=rows[0])
        return StoreResult(data=rows)

    async def _run(self, db) -> List[dict]:
        table = self._table
        if self._op == "select":
            cols = [table.c[c] for c in self._columns] or [table]
            stmt = self._where(select(*cols))
            if self._order:
                column, desc = self._order
                stmt = stmt.order_by(table.c[column].desc() if desc else table.c[column].asc())
            if self._limit is not None:
                stmt = stmt.limit(self._limit)
            res = await db.execute(stmt)
            return [dict(r._mapping) for r in res.fetchall()]

        if self._op == "insert":
            out = []
            for row in self._payload:
                res = await db.execute(insert(table).values(**row).returning(*table.c))
                out.extend(dict(r._mapping) for r in res.fetchall())
            return out

        if self._op == "update":
            stmt = self._where(update(table)).values(**self._payload).returning(*table.c)
            res = await db.execute(stmt)
            return [dict(r._mapping) for r in res.fetchall()]

        stmt = self._where(delete(table)).returning(*table.c)
        res = await db.execute(stmt)
        return [dict(r._mapping) for r in res.fetchall()]


class RemoteStore:
    """Thin client over the hosted database."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        auth: Optional[StoreAuth] = None,
        access_token: Optional[str] = None,
    ):
        self.session_factory = session_factory
        self.auth = auth or StoreAuth(session_factory)
        self.access_token = access_token

    def as_user(self, access_token: Optional[str]) -> "RemoteStore":
        """Same store acting with a signed-in session."""
        return RemoteStore(self.session_factory, auth=self.auth, access_token=access_token)

    def table(self, name: str) -> TableQuery:
        table = Base.metadata.tables.get(name)
        if table is None:
            raise KeyError(f"Unknown table: {name}")
        return TableQuery(self, table)
