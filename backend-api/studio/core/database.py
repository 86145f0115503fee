"""
Database settings and connection
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import MetaData, types
import logging
import ssl
from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

from studio.core.config import settings

logger = logging.getLogger(__name__)


# JSON type working on both SQLite and PostgreSQL
class JSON(types.TypeDecorator):
    """Platform-independent JSON type."""
    impl = types.JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            from sqlalchemy.dialects.postgresql import JSONB
            return dialect.type_descriptor(JSONB())
        else:
            return dialect.type_descriptor(types.JSON())


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine for a SQLite or PostgreSQL URL."""
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo, future=True)

    # PostgreSQL goes through asyncpg
    raw_url = database_url.replace("postgresql://", "postgresql+asyncpg://")
    # asyncpg rejects the sslmode query parameter that Supabase URLs carry,
    # so sslmode/ssl are stripped from the URL and passed as an SSLContext.
    parts = urlsplit(raw_url)
    query_items = parse_qsl(parts.query, keep_blank_values=True)
    sslmode = next((v for (k, v) in query_items if k.lower() == "sslmode"), None)
    ssl_param = next((v for (k, v) in query_items if k.lower() == "ssl"), None)
    query_filtered = [(k, v) for (k, v) in query_items if k.lower() not in ("sslmode", "ssl")]
    engine_url = urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query_filtered), parts.fragment))

    ssl_required = False
    ssl_verify = False
    if ssl_param is not None:
        v = str(ssl_param).strip().lower()
        if v in ("1", "true", "yes", "on", "require"):
            ssl_required = True
        elif v in ("0", "false", "no", "off", "disable"):
            ssl_required = False
    if sslmode is not None:
        v = str(sslmode).strip().lower()
        # libpq semantics: require/prefer encrypt without verifying, verify-* verify
        if v in ("require", "prefer"):
            ssl_required = True
            ssl_verify = False
        elif v in ("verify-ca", "verify-full"):
            ssl_required = True
            ssl_verify = True
        elif v in ("disable", "allow"):
            ssl_required = False

    connect_args = {}
    if ssl_required:
        ctx = ssl.create_default_context()
        if not ssl_verify:
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = ctx

    return create_async_engine(
        engine_url,
        echo=echo,
        future=True,
        pool_pre_ping=True,
        pool_recycle=300,
        connect_args=connect_args,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
AsyncSessionLocal = build_session_factory(engine)


class Base(DeclarativeBase):
    """SQLAlchemy base class"""
    metadata = MetaData(
        naming_convention={
            "ix": "ix_%(column_0_label)s",
            "uq": "uq_%(table_name)s_%(column_0_name)s",
            "ck": "ck_%(table_name)s_%(constraint_name)s",
            "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
            "pk": "pk_%(table_name)s"
        }
    )


async def check_db_connection(bind: AsyncEngine = engine) -> bool:
    """Check that the database answers"""
    try:
        async with bind.begin() as conn:
            await conn.exec_driver_sql("SELECT 1")
        return True
    except Exception as e:
        logger.warning(f"Database connection failed: {e}")
        return False
