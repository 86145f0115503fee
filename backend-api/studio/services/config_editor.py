"""
Config editor / save pipeline

The admin edits a draft; the public site keeps reading ``SiteContext.config``
until ``save()`` succeeds. Projects and services are separate tables and are
written immediately by their own operations.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, List
import logging
import secrets
import time

from pydantic import BaseModel, ValidationError

from studio.core.exceptions import AuthorizationError
from studio.core.result import Err, Ok, Outcome
from studio.schemas.lead import Lead
from studio.schemas.site import (
    Project,
    ProjectCreate,
    ProjectUpdate,
    Service,
    ServiceCreate,
    ServiceUpdate,
    SiteConfig,
    StudioStats,
)
from studio.services.field_mapping import (
    SETTINGS_ROW_ID,
    lead_from_row,
    project_from_row,
    project_to_row,
    service_from_row,
    service_to_row,
    settings_to_row,
)
from studio.services.remote_store import RemoteStore
from studio.services.session_gate import AdminSessionGate

if TYPE_CHECKING:
    from studio.services.site_context import SiteContext

logger = logging.getLogger(__name__)

# Saved through their own immediate operations, never through the draft
SEPARATE_COLLECTIONS = ("projects", "services")


def _timestamp_id(prefix: str = "") -> str:
    return f"{prefix}{int(time.time() * 1000)}{secrets.token_hex(2)}"


def _created_key(lead: Lead) -> datetime:
    # SQLite hands back naive UTC timestamps
    ts = lead.createdAt
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def _set_path(data: Any, parts: List[str], value: Any, path: str) -> None:
    """Assign into nested dicts/lists following already existing keys only."""
    target = data
    for i, part in enumerate(parts):
        last = i == len(parts) - 1
        if isinstance(target, dict):
            if part not in target:
                raise ValueError(f"Unknown field: {path}")
            if last:
                target[part] = value
            else:
                target = target[part]
        elif isinstance(target, list):
            try:
                index = int(part)
            except ValueError:
                raise ValueError(f"Expected a list index in {path}, got {part!r}")
            if not 0 <= index < len(target):
                raise ValueError(f"Index out of range in {path}")
            if last:
                target[index] = value
            else:
                target = target[index]
        else:
            raise ValueError(f"Cannot descend into {path}")


class ConfigEditor:
    def __init__(self, context: "SiteContext", gate: AdminSessionGate):
        self.context = context
        self.gate = gate
        self.baseline: SiteConfig = context.config.model_copy(deep=True)
        self.draft: SiteConfig = self.baseline.model_copy(deep=True)
        self.saving = False

    @property
    def store(self) -> RemoteStore:
        return self.context.store.as_user(self.gate.access_token)

    @property
    def dirty(self) -> bool:
        return self.draft != self.baseline

    def _authorized(self):
        """None when the gate is open, else the authorization Err."""
        try:
            self.gate.require_authenticated()
        except AuthorizationError as e:
            return Err("authorization", str(e))
        return None

    # -- draft -----------------------------------------------------------

    def update_field(self, path: str, value: Any) -> SiteConfig:
        """In-memory edit of the draft by dotted path (``seo.metaTitle``, ``skills.2.level``)."""
        parts = [p for p in (path or "").split(".") if p]
        if not parts:
            raise ValueError("Empty field path")
        if parts[0] in SEPARATE_COLLECTIONS:
            raise ValueError(f"{parts[0]} are edited through their own operations")
        data = self.draft.model_dump()
        _set_path(data, parts, value, path)
        try:
            self.draft = SiteConfig.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid value for {path}: {e.errors()[0].get('msg', 'invalid')}") from e
        return self.draft

    def _with_published_collections(self, config: SiteConfig) -> SiteConfig:
        """Projects and services as currently published; save() never writes them."""
        public = self.context.config
        return config.model_copy(update={name: list(getattr(public, name)) for name in SEPARATE_COLLECTIONS})

    def discard(self) -> SiteConfig:
        self.draft = self.baseline.model_copy(deep=True)
        return self.draft

    async def save(self) -> Outcome[SiteConfig]:
        """Persist the whole draft to the singleton settings row."""
        if self.saving:
            return Err("in_flight", "A save is already in progress")
        denied = self._authorized()
        if denied is not None:
            return denied

        self.saving = True
        snapshot = self.draft.model_copy(deep=True)
        try:
            row = settings_to_row(snapshot)
            values = {k: v for k, v in row.items() if k != "id"}
            store = self.store
            res = await store.table("settings").update(values).eq("id", SETTINGS_ROW_ID).execute()
            if res.ok and not res.data:
                logger.info("[editor] settings row missing, inserting it")
                res = await store.table("settings").insert(row).execute()
            if not res.ok:
                logger.warning(f"[editor] save failed ({res.error.kind}): {res.error.message}")
                await self.context.cache.write_config(self._with_published_collections(snapshot))
                return Err.from_store(res.error)

            snapshot = self._with_published_collections(snapshot)
            self.baseline = snapshot
            self.draft = self._with_published_collections(self.draft)
            self.context.publish(snapshot.model_copy(deep=True))
            await self.context.cache.write_config(snapshot)
            logger.info("[editor] settings saved")
            return Ok(snapshot)
        finally:
            self.saving = False

    # -- projects / services ----------------------------------------------

    def _apply(self, name: str, change: Callable[[list], list]) -> None:
        """Apply a persisted collection change to draft, baseline and the public config."""
        for attr in ("draft", "baseline"):
            model = getattr(self, attr)
            setattr(self, attr, model.model_copy(update={name: change(list(getattr(model, name)))}))
        public = self.context.config
        self.context.publish(public.model_copy(update={name: change(list(getattr(public, name)))}))

    async def _insert(self, table: str, item: BaseModel, to_row, from_row, collection: str) -> Outcome:
        denied = self._authorized()
        if denied is not None:
            return denied
        res = await self.store.table(table).insert(to_row(item)).execute()
        if not res.ok:
            return Err.from_store(res.error)
        saved = from_row(res.data[0]) if res.data else item
        self._apply(collection, lambda items: items + [saved])
        return Ok(saved)

    async def _update(self, table: str, item_id: str, changes: dict, model, to_row, from_row, collection: str) -> Outcome:
        denied = self._authorized()
        if denied is not None:
            return denied
        current = next((i for i in getattr(self.context.config, collection) if i.id == item_id), None)
        if current is None:
            return Err("not_found", f"No {table[:-1]} with id {item_id}")
        try:
            merged = model.model_validate({**current.model_dump(), **changes})
        except ValidationError as e:
            return Err("validation", f"Invalid {table[:-1]}: {e.errors()[0].get('msg', 'invalid')}")
        values = {k: v for k, v in to_row(merged).items() if k != "id"}
        res = await self.store.table(table).update(values).eq("id", item_id).execute()
        if not res.ok:
            return Err.from_store(res.error)
        if not res.data:
            return Err("not_found", f"{table[:-1].capitalize()} {item_id} is not stored remotely")
        saved = from_row(res.data[0])
        self._apply(collection, lambda items: [saved if i.id == item_id else i for i in items])
        return Ok(saved)

    async def _delete(self, table: str, item_id: str, collection: str) -> Outcome[str]:
        denied = self._authorized()
        if denied is not None:
            return denied
        res = await self.store.table(table).delete().eq("id", item_id).execute()
        if not res.ok:
            return Err.from_store(res.error)
        if not res.data:
            return Err("not_found", f"No {table[:-1]} with id {item_id}")
        self._apply(collection, lambda items: [i for i in items if i.id != item_id])
        return Ok(item_id)

    async def add_project(self, data: ProjectCreate) -> Outcome[Project]:
        project = Project.model_validate({**data.model_dump(), "id": data.id or _timestamp_id()})
        return await self._insert("projects", project, project_to_row, project_from_row, "projects")

    async def update_project(self, project_id: str, data: ProjectUpdate) -> Outcome[Project]:
        changes = data.model_dump(exclude_unset=True)
        return await self._update("projects", project_id, changes, Project, project_to_row, project_from_row, "projects")

    async def delete_project(self, project_id: str) -> Outcome[str]:
        return await self._delete("projects", project_id, "projects")

    async def add_service(self, data: ServiceCreate) -> Outcome[Service]:
        service = Service.model_validate({**data.model_dump(), "id": data.id or _timestamp_id("s")})
        return await self._insert("services", service, service_to_row, service_from_row, "services")

    async def update_service(self, service_id: str, data: ServiceUpdate) -> Outcome[Service]:
        changes = data.model_dump(exclude_unset=True)
        return await self._update("services", service_id, changes, Service, service_to_row, service_from_row, "services")

    async def delete_service(self, service_id: str) -> Outcome[str]:
        return await self._delete("services", service_id, "services")

    # -- leads -----------------------------------------------------------

    async def list_leads(self) -> Outcome[List[Lead]]:
        """Lead inbox, newest first, including leads only held in the cache; the cached list alone when the store is unreachable."""
        denied = self._authorized()
        if denied is not None:
            return denied
        res = await self.store.table("leads").select().order("created_at", desc=True).execute()
        if res.ok:
            # leads accepted while the store was down only live in the cache
            leads = {l.id: l for l in await self.context.cache.read_leads()}
            leads.update((r["id"], lead_from_row(r)) for r in res.data)
            return Ok(sorted(leads.values(), key=_created_key, reverse=True))
        if res.error.kind == "network":
            logger.warning(f"[editor] lead inbox unreachable, showing cached leads: {res.error.message}")
            return Ok(await self.context.cache.read_leads())
        return Err.from_store(res.error)

    async def stats(self) -> Outcome[StudioStats]:
        """Dashboard counters: leads received, projects live, services offered."""
        leads = await self.list_leads()
        if not leads.ok:
            return leads
        public = self.context.config
        return Ok(StudioStats(
            totalLeads=len(leads.value),
            projectsLive=len(public.projects),
            servicesOffered=len(public.services),
        ))
