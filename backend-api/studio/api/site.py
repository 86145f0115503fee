"""
Public site content API

Read-only. Always answers with a usable config: the loader already fell back
to the cache snapshot or the defaults when the remote store was down.
"""

from fastapi import APIRouter, Depends
from typing import List

from studio.dependencies import get_site_context
from studio.schemas.site import SiteConfig, SiteMeta, Testimonial
from studio.services.defaults import default_testimonials
from studio.services.site_context import SiteContext

router = APIRouter()


@router.get("/config", response_model=SiteConfig)
async def get_site_config(context: SiteContext = Depends(get_site_context)):
    """Published site configuration"""
    return context.config


@router.get("/meta", response_model=SiteMeta)
async def get_site_meta(context: SiteContext = Depends(get_site_context)):
    """Document title / theme"""
    return context.meta


@router.get("/testimonials", response_model=List[Testimonial])
async def get_testimonials():
    return default_testimonials()
