"""
Site content schemas (SiteConfig and its collections)

camelCase field names are kept as-is: the admin front end reads and writes
them verbatim. The snake_case row shape lives in services/field_mapping.py.
"""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Any, Optional, List, Literal
import re


ProjectCategory = Literal["Graphic Design", "Web Development"]
SkillCategory = Literal["Design", "Development"]
Theme = Literal["light", "dark"]


def _sanitize_text(value: Optional[str], max_length: Optional[int] = None) -> Optional[str]:
    """Strip tags and surrounding whitespace from admin-entered text."""
    if value is None:
        return None
    text = re.sub(r"<[^>]*>", "", str(value)).strip()
    if max_length is not None and len(text) > max_length:
        raise ValueError(f"At most {max_length} characters allowed.")
    return text


class Project(BaseModel):
    """Portfolio item"""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1, max_length=64)
    title: str = Field(..., max_length=200)
    category: ProjectCategory = "Graphic Design"
    thumbnail: str = Field("", max_length=2000)
    description: str = ""
    projectUrl: Optional[str] = Field(None, max_length=2000)

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize_strings(cls, v):
        out = _sanitize_text(v)
        return out if out is not None else ""


class Service(BaseModel):
    """Service card"""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1, max_length=64)
    title: str = Field(..., max_length=200)
    icon: str = Field("", max_length=20)
    description: str = ""
    items: List[str] = Field(default_factory=list)

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize_strings(cls, v):
        out = _sanitize_text(v)
        return out if out is not None else ""


class Skill(BaseModel):
    name: str
    level: int = 0
    category: SkillCategory

    @field_validator("level", mode="before")
    @classmethod
    def clamp_level(cls, v):
        # bars render as percentages
        try:
            level = int(v)
        except (TypeError, ValueError):
            raise ValueError("level must be an integer")
        return max(0, min(100, level))


class Testimonial(BaseModel):
    id: str
    quote: str
    author: str
    role: str


class PricingPlan(BaseModel):
    name: str
    price: str  # display string, no currency arithmetic
    features: List[str] = Field(default_factory=list)
    highlighted: bool = False


class FAQItem(BaseModel):
    question: str
    answer: str


class SEOConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    metaTitle: str = ""
    metaDescription: str = ""
    keywords: str = ""


class SiteConfig(BaseModel):
    """Everything the public site renders"""

    model_config = ConfigDict(extra="ignore")

    siteName: str
    tagline: str = ""
    heroHeadline: str = ""
    heroSubtext: str = ""
    contactEmail: str = ""
    contactPhone: str = ""
    location: str = ""
    instagramUrl: str = ""
    linkedInUrl: str = ""
    theme: Theme = "light"
    couponPrefix: str = Field("", max_length=20)
    seo: SEOConfig = Field(default_factory=SEOConfig)
    projects: List[Project] = Field(default_factory=list)
    services: List[Service] = Field(default_factory=list)
    skills: List[Skill] = Field(default_factory=list)
    faqs: List[FAQItem] = Field(default_factory=list)
    plans: List[PricingPlan] = Field(default_factory=list)


class SiteMeta(BaseModel):
    """Presentation state derived from the loaded config"""
    documentTitle: str
    theme: Theme
    darkMode: bool
    loading: bool = False


class ProjectCreate(BaseModel):
    """Add project request (admin)"""

    id: Optional[str] = Field(None, min_length=1, max_length=64)
    title: str = Field("New Project", min_length=1, max_length=200)
    category: ProjectCategory = "Graphic Design"
    thumbnail: str = Field("https://picsum.photos/600/400", max_length=2000)
    description: str = "Project Description"
    projectUrl: Optional[str] = Field(None, max_length=2000)


class ProjectUpdate(BaseModel):
    """Field-level project edit (admin)"""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[ProjectCategory] = None
    thumbnail: Optional[str] = Field(None, max_length=2000)
    description: Optional[str] = None
    projectUrl: Optional[str] = Field(None, max_length=2000)


class ServiceCreate(BaseModel):
    """Add service request (admin)"""

    id: Optional[str] = Field(None, min_length=1, max_length=64)
    title: str = Field("New Service", min_length=1, max_length=200)
    icon: str = Field("✨", max_length=20)
    description: str = "Description"
    items: List[str] = Field(default_factory=lambda: ["Feature 1"])


class ServiceUpdate(BaseModel):
    """Field-level service edit (admin)"""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    icon: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = None
    items: Optional[List[str]] = None


class DraftFieldUpdate(BaseModel):
    """Dotted-path draft edit, e.g. {"path": "seo.metaTitle", "value": "..."}"""

    path: str = Field(..., min_length=1, max_length=200)
    value: Any = None


class DraftState(BaseModel):
    """Admin draft as seen by the editor"""
    draft: SiteConfig
    dirty: bool
    saving: bool = False


class StudioStats(BaseModel):
    """Admin dashboard counters"""
    totalLeads: int
    projectsLive: int
    servicesOffered: int
