"""
Lino Studio NG - FastAPI application
Public site content, lead intake and the admin panel API
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from sqlalchemy import select
import logging

from studio.core.config import settings
from studio.core.database import AsyncSessionLocal, Base, check_db_connection, engine
from studio.core.security import get_password_hash
from studio.models.admin_user import AdminUser
from studio.models.site_settings import SiteSettings
from studio.services.defaults import default_site_config
from studio.services.field_mapping import SETTINGS_ROW_ID, settings_to_row
from studio.services.lead_service import build_lead_pipeline
from studio.services.site_context import build_site_context

from studio.api.site import router as site_router
from studio.api.leads import router as leads_router
from studio.api.auth import router as auth_router
from studio.api.admin import router as admin_router

# logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def seed_defaults() -> None:
    """Settings row and the admin account from the environment (idempotent)"""
    async with AsyncSessionLocal() as db:
        if await db.get(SiteSettings, SETTINGS_ROW_ID) is None:
            db.add(SiteSettings(**settings_to_row(default_site_config())))
            logger.info("settings row seeded with defaults")
        if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
            res = await db.execute(select(AdminUser).where(AdminUser.email == settings.ADMIN_EMAIL.lower()))
            if res.scalar_one_or_none() is None:
                db.add(AdminUser(
                    email=settings.ADMIN_EMAIL.lower(),
                    hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
                ))
                logger.info(f"admin account created: {settings.ADMIN_EMAIL}")
        await db.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown"""
    logger.info("Lino Studio API starting")

    # tables (development only)
    if settings.ENVIRONMENT == "development":
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("database tables ready")
            await seed_defaults()
        except Exception as e:
            logger.warning(f"database setup skipped: {e}")

    # contexts injected beforehand (tests) are kept
    if getattr(app.state, "site_context", None) is None:
        app.state.site_context = build_site_context()
        await app.state.site_context.bootstrap()
    if getattr(app.state, "lead_pipeline", None) is None:
        app.state.lead_pipeline = build_lead_pipeline(app.state.site_context)

    yield

    notifier = getattr(app.state.lead_pipeline, "notifier", None)
    if notifier is not None:
        await notifier.drain()
    logger.info("Lino Studio API stopped")


app = FastAPI(
    title="Lino Studio NG API",
    description="Site content, lead intake and admin panel for Lino Studio NG",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT == "development" else None,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(site_router, prefix="/site", tags=["site"])
app.include_router(leads_router, prefix="/leads", tags=["leads"])
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(admin_router, prefix="/admin", tags=["admin"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Lino Studio NG API",
        "version": "1.0.0",
        "docs": "/docs",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check"""
    database_ok = await check_db_connection()
    return {
        "status": "healthy" if database_ok else "degraded",
        "environment": settings.ENVIRONMENT,
        "database": "connected" if database_ok else "unreachable",
        "config_loading": app.state.site_context.loader.loading if getattr(app.state, "site_context", None) else None,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "studio.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True if settings.ENVIRONMENT == "development" else False
    )
