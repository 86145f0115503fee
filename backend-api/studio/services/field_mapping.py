"""
Remote (snake_case) <-> internal (camelCase) field mapping

One table per record type, evaluated by a single merge function:

    remote field -> internal field -> default (from the bundled config)

The config loader and the save pipeline are the only callers; nothing else
translates field names.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence, TypeVar
import logging

from pydantic import BaseModel, TypeAdapter, ValidationError

from studio.schemas.site import (
    FAQItem,
    PricingPlan,
    Project,
    SEOConfig,
    Service,
    SiteConfig,
    Skill,
)
from studio.schemas.lead import Lead

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class FieldMap:
    remote: str
    internal: str
    # values failing the check count as absent and fall back to the default
    accepts: Optional[Callable[[Any], bool]] = None

    def usable(self, value: Any) -> bool:
        if value is None:
            return False
        if self.accepts is not None and not self.accepts(value):
            return False
        return True


def _is_theme(value: Any) -> bool:
    return value in ("light", "dark")


def _is_short_text(value: Any) -> bool:
    return isinstance(value, str) and len(value) <= 20


SETTINGS_FIELDS: Sequence[FieldMap] = (
    FieldMap("site_name", "siteName"),
    FieldMap("tagline", "tagline"),
    FieldMap("hero_headline", "heroHeadline"),
    FieldMap("hero_subtext", "heroSubtext"),
    FieldMap("contact_email", "contactEmail"),
    FieldMap("contact_phone", "contactPhone"),
    FieldMap("location", "location"),
    FieldMap("instagram_url", "instagramUrl"),
    FieldMap("linkedin_url", "linkedInUrl"),
    FieldMap("theme", "theme", _is_theme),
    FieldMap("coupon_prefix", "couponPrefix", _is_short_text),
)

SEO_FIELDS: Sequence[FieldMap] = (
    FieldMap("meta_title", "metaTitle"),
    FieldMap("meta_description", "metaDescription"),
    FieldMap("keywords", "keywords"),
)

# Collections embedded in the settings row (item keys are identical on both sides)
EMBEDDED_COLLECTIONS = (
    ("skills", Skill),
    ("faqs", FAQItem),
    ("plans", PricingPlan),
)

PROJECT_FIELDS: Sequence[FieldMap] = (
    FieldMap("id", "id"),
    FieldMap("title", "title"),
    FieldMap("category", "category"),
    FieldMap("thumbnail", "thumbnail"),
    FieldMap("description", "description"),
    FieldMap("project_url", "projectUrl"),
)

SERVICE_FIELDS: Sequence[FieldMap] = (
    FieldMap("id", "id"),
    FieldMap("title", "title"),
    FieldMap("icon", "icon"),
    FieldMap("description", "description"),
    FieldMap("items", "items"),
)

LEAD_FIELDS: Sequence[FieldMap] = (
    FieldMap("id", "id"),
    FieldMap("name", "name"),
    FieldMap("email", "email"),
    FieldMap("type", "type"),
    FieldMap("budget", "budget"),
    FieldMap("message", "message"),
    FieldMap("reference_code", "referenceCode"),
    FieldMap("summary", "summary"),
    FieldMap("created_at", "createdAt"),
)


def to_internal(row: dict, fields: Iterable[FieldMap]) -> dict:
    """Rename the mapped keys of a remote row, dropping unusable values."""
    out = {}
    for f in fields:
        value = row.get(f.remote)
        if f.usable(value):
            out[f.internal] = value
    return out


def to_remote(data: dict, fields: Iterable[FieldMap]) -> dict:
    return {f.remote: data.get(f.internal) for f in fields}


def _merge_fields(record: Optional[dict], defaults: dict, fields: Iterable[FieldMap]) -> dict:
    """Per-field fallback: each absent/None/unusable field takes the default."""
    record = record or {}
    merged = {}
    for f in fields:
        value = record.get(f.remote)
        merged[f.internal] = value if f.usable(value) else defaults.get(f.internal)
    return merged


def _validated_items(raw: Any, model: type[M], label: str) -> Optional[List[M]]:
    """Validate a remote collection, None when it is absent, empty or malformed."""
    if not isinstance(raw, list) or not raw:
        return None
    try:
        return TypeAdapter(List[model]).validate_python(raw)
    except ValidationError as e:
        logger.warning(f"[field_mapping] remote {label} ignored: {e.error_count()} invalid item(s)")
        return None


def merge_collection(rows: Any, default: List[M], model: type[M], fields: Optional[Sequence[FieldMap]] = None, label: str = "") -> List[M]:
    """Whole-collection fallback: a present, non-empty remote list replaces the default."""
    if fields is not None and isinstance(rows, list):
        rows = [to_internal(r, fields) for r in rows if isinstance(r, dict)]
    items = _validated_items(rows, model, label or model.__name__)
    if items is None:
        return [item.model_copy(deep=True) for item in default]
    return items


def merge_settings(
    record: Optional[dict],
    defaults: SiteConfig,
    projects: Any = None,
    services: Any = None,
) -> SiteConfig:
    """Build the internal SiteConfig from a remote settings row and collection rows."""
    base = defaults.model_dump()
    merged = _merge_fields(record, base, SETTINGS_FIELDS)
    seo_record = (record or {}).get("seo")
    merged["seo"] = SEOConfig.model_validate(
        _merge_fields(seo_record if isinstance(seo_record, dict) else None, base["seo"], SEO_FIELDS)
    )
    for name, model in EMBEDDED_COLLECTIONS:
        merged[name] = merge_collection((record or {}).get(name), getattr(defaults, name), model, label=name)
    merged["projects"] = merge_collection(projects, defaults.projects, Project, PROJECT_FIELDS, "projects")
    merged["services"] = merge_collection(services, defaults.services, Service, SERVICE_FIELDS, "services")
    return SiteConfig.model_validate(merged)


def settings_to_row(config: SiteConfig) -> dict:
    """Full settings row for the singleton update (projects/services excluded)."""
    data = config.model_dump()
    row = to_remote(data, SETTINGS_FIELDS)
    row["id"] = SETTINGS_ROW_ID
    row["seo"] = to_remote(data["seo"], SEO_FIELDS)
    for name, _model in EMBEDDED_COLLECTIONS:
        row[name] = data[name]
    return row


def project_to_row(project: Project) -> dict:
    return to_remote(project.model_dump(), PROJECT_FIELDS)


def project_from_row(row: dict) -> Project:
    return Project.model_validate(to_internal(row, PROJECT_FIELDS))


def service_to_row(service: Service) -> dict:
    return to_remote(service.model_dump(), SERVICE_FIELDS)


def service_from_row(row: dict) -> Service:
    return Service.model_validate(to_internal(row, SERVICE_FIELDS))


def lead_to_row(lead: Lead) -> dict:
    return to_remote(lead.model_dump(), LEAD_FIELDS)


def lead_from_row(row: dict) -> Lead:
    return Lead.model_validate(to_internal(row, LEAD_FIELDS))
