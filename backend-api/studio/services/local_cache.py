"""
Local cache (Redis)

Two well-known keys:
- ``<prefix>_config``: JSON snapshot of the last known SiteConfig
- ``<prefix>_leads``:  list of JSON leads that could not reach the remote store

Best effort only: every failure is logged and swallowed.
"""

from typing import List, Optional
import logging

from pydantic import ValidationError

from studio.core.config import settings
from studio.schemas.lead import Lead
from studio.schemas.site import SiteConfig

logger = logging.getLogger(__name__)


class LocalCache:
    def __init__(self, redis_client=None, prefix: Optional[str] = None):
        self._redis = redis_client
        self.prefix = prefix or settings.CACHE_KEY_PREFIX

    @property
    def redis(self):
        if self._redis is None:
            from studio.core.redis_client import get_redis_client
            self._redis = get_redis_client()
        return self._redis

    @property
    def config_key(self) -> str:
        return f"{self.prefix}_config"

    @property
    def leads_key(self) -> str:
        return f"{self.prefix}_leads"

    async def read_config(self) -> Optional[SiteConfig]:
        try:
            raw = await self.redis.get(self.config_key)
        except Exception as e:
            logger.warning(f"[cache] config read failed: {e}")
            return None
        if not raw:
            return None
        try:
            return SiteConfig.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"[cache] stale config snapshot ignored: {e.error_count()} error(s)")
            return None

    async def write_config(self, config: SiteConfig) -> bool:
        try:
            await self.redis.set(self.config_key, config.model_dump_json())
            return True
        except Exception as e:
            logger.warning(f"[cache] config write failed: {e}")
            return False

    async def read_leads(self) -> List[Lead]:
        try:
            raw_items = await self.redis.lrange(self.leads_key, 0, -1)
        except Exception as e:
            logger.warning(f"[cache] leads read failed: {e}")
            return []
        leads: List[Lead] = []
        for raw in raw_items or []:
            try:
                leads.append(Lead.model_validate_json(raw))
            except ValidationError:
                logger.warning("[cache] malformed cached lead skipped")
        # newest first, like the remote inbox
        leads.sort(key=lambda l: l.createdAt, reverse=True)
        return leads

    async def append_lead(self, lead: Lead) -> bool:
        try:
            await self.redis.rpush(self.leads_key, lead.model_dump_json())
            return True
        except Exception as e:
            logger.warning(f"[cache] lead append failed: {e}")
            return False

