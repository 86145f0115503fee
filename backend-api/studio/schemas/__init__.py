"""
Schema package
"""

from .site import (
    Project,
    Service,
    Skill,
    Testimonial,
    PricingPlan,
    FAQItem,
    SEOConfig,
    SiteConfig,
    SiteMeta,
    StudioStats,
)
from .lead import Lead, LeadSubmission, LeadReceipt, EnrichmentResult

__all__ = [
    "Project",
    "Service",
    "Skill",
    "Testimonial",
    "PricingPlan",
    "FAQItem",
    "SEOConfig",
    "SiteConfig",
    "SiteMeta",
    "StudioStats",
    "Lead",
    "LeadSubmission",
    "LeadReceipt",
    "EnrichmentResult",
]
