"""
Config loader

remote settings row + collections -> per-field merge with the bundled
defaults -> SiteConfig, mirrored into the local cache. On any remote failure
the local cache snapshot wins, then the defaults. ``load()`` never raises.
"""

from typing import Callable, Optional
import asyncio
import logging

from studio.schemas.site import SiteConfig
from studio.services.defaults import default_site_config
from studio.services.field_mapping import SETTINGS_ROW_ID, merge_settings
from studio.services.local_cache import LocalCache
from studio.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)


class ConfigLoader:
    def __init__(
        self,
        store: RemoteStore,
        cache: LocalCache,
        defaults_factory: Callable[[], SiteConfig] = default_site_config,
    ):
        self.store = store
        self.cache = cache
        self.defaults_factory = defaults_factory
        self.loading = False
        self._inflight: Optional[asyncio.Task] = None

    async def load(self) -> SiteConfig:
        """Resolve the site config; a concurrent call joins the load already running."""
        if self._inflight is not None:
            return await asyncio.shield(self._inflight)
        self.loading = True
        self._inflight = asyncio.ensure_future(self._load())
        try:
            return await asyncio.shield(self._inflight)
        finally:
            self.loading = False
            self._inflight = None

    async def _load(self) -> SiteConfig:
        defaults = self.defaults_factory()
        try:
            record = await (
                self.store.table("settings").select().eq("id", SETTINGS_ROW_ID).maybe_single().execute()
            )
            if not record.ok:
                logger.warning(f"[config] settings fetch failed ({record.error.kind}): {record.error.message}")
                return await self._fallback(defaults)

            projects = await self.store.table("projects").select().order("created_at", desc=True).execute()
            if not projects.ok:
                logger.warning(f"[config] projects fetch failed, keeping defaults: {projects.error.message}")
            services = await self.store.table("services").select().order("created_at").execute()
            if not services.ok:
                logger.warning(f"[config] services fetch failed, keeping defaults: {services.error.message}")

            config = merge_settings(
                record.data,
                defaults,
                projects=projects.data if projects.ok else None,
                services=services.data if services.ok else None,
            )
            logger.info(f"[config] loaded from remote store (row={'yes' if record.data else 'no'})")
            await self.cache.write_config(config)
            return config
        except Exception:
            logger.exception("[config] unexpected failure while loading, using fallback")
            return await self._fallback(defaults)

    async def _fallback(self, defaults: SiteConfig) -> SiteConfig:
        cached = await self.cache.read_config()
        if cached is not None:
            logger.info("[config] using local cache snapshot")
            return cached
        logger.info("[config] using bundled defaults")
        return defaults
