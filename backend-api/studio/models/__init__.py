"""
Model package
"""

from .site_settings import SiteSettings
from .project import Project
from .service import Service
from .lead import Lead
from .admin_user import AdminUser

__all__ = [
    "SiteSettings",
    "Project",
    "Service",
    "Lead",
    "AdminUser",
]
