"""
Site context

Holds the published SiteConfig and the admin workspaces. Readers take
``context.config``; only ``publish()`` replaces it (called by the loader
bootstrap and by the config editor).
"""

from typing import Dict, Optional
import logging

from studio.core.config import settings
from studio.schemas.site import SiteConfig, SiteMeta
from studio.services.config_editor import ConfigEditor
from studio.services.config_loader import ConfigLoader
from studio.services.defaults import default_site_config
from studio.services.local_cache import LocalCache
from studio.services.remote_store import RemoteStore
from studio.services.session_gate import AdminSessionGate, GateState

logger = logging.getLogger(__name__)


class SiteContext:
    def __init__(self, store: RemoteStore, cache: LocalCache, loader: Optional[ConfigLoader] = None):
        self.store = store
        self.cache = cache
        self.loader = loader or ConfigLoader(store, cache)
        self.config: SiteConfig = default_site_config()
        self.document_title = ""
        self.dark_mode = False
        # access token -> admin workspace
        self.workspaces: Dict[str, ConfigEditor] = {}
        self.publish(self.config)

    @property
    def meta(self) -> SiteMeta:
        return SiteMeta(
            documentTitle=self.document_title,
            theme=self.config.theme,
            darkMode=self.dark_mode,
            loading=self.loader.loading,
        )

    async def bootstrap(self) -> SiteConfig:
        """Load the config once and publish it."""
        config = await self.loader.load()
        self.publish(config)
        return config

    def publish(self, config: SiteConfig) -> None:
        self.config = config
        self.document_title = config.seo.metaTitle or config.siteName
        self.dark_mode = config.theme == "dark"

    # -- admin workspaces -------------------------------------------------

    def new_gate(self) -> AdminSessionGate:
        return AdminSessionGate(self.store.auth, access_key=settings.ADMIN_ACCESS_KEY)

    def open_workspace(self, gate: AdminSessionGate) -> ConfigEditor:
        """Editor for an authenticated gate, registered under its token."""
        gate.require_authenticated()
        self.prune_workspaces()
        editor = ConfigEditor(self, gate)
        self.workspaces[gate.access_token] = editor
        gate.on_change(lambda g: self._follow_gate(editor))
        return editor

    def _follow_gate(self, editor: ConfigEditor) -> None:
        gate = editor.gate
        stale = [token for token, e in self.workspaces.items() if e is editor and token != gate.access_token]
        for token in stale:
            self.workspaces.pop(token, None)
        if gate.state == GateState.ANONYMOUS:
            logger.info("[context] admin workspace closed")
            gate.close()
        elif gate.authenticated:
            self.workspaces[gate.access_token] = editor

    def prune_workspaces(self) -> int:
        """Close workspaces whose session has expired or is gone."""
        stale = [
            token for token, e in self.workspaces.items()
            if e.gate.session is None or e.gate.session.expired
        ]
        for token in stale:
            editor = self.workspaces.pop(token)
            editor.gate.close()
        self.store.auth.prune()
        if stale:
            logger.info(f"[context] pruned {len(stale)} expired admin workspace(s)")
        return len(stale)

    def workspace_for(self, access_token: Optional[str]) -> Optional[ConfigEditor]:
        if not access_token:
            return None
        return self.workspaces.get(access_token)


def build_site_context() -> SiteContext:
    from studio.core.database import AsyncSessionLocal

    store = RemoteStore(AsyncSessionLocal)
    return SiteContext(store, LocalCache())
