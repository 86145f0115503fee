"""
Admin panel API (draft editing, projects, services, lead inbox, stats)

Every route needs a bearer session opened through /auth.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
import logging

from studio.dependencies import get_admin_editor, raise_for_error
from studio.schemas.lead import Lead
from studio.schemas.site import (
    DraftFieldUpdate,
    DraftState,
    Project,
    ProjectCreate,
    ProjectUpdate,
    Service,
    ServiceCreate,
    ServiceUpdate,
    SiteConfig,
    StudioStats,
)
from studio.services.config_editor import ConfigEditor

logger = logging.getLogger(__name__)

router = APIRouter()


def _draft_state(editor: ConfigEditor) -> DraftState:
    return DraftState(draft=editor.draft, dirty=editor.dirty, saving=editor.saving)


# ---- draft ----

@router.get("/draft", response_model=DraftState)
async def get_draft(editor: ConfigEditor = Depends(get_admin_editor)):
    return _draft_state(editor)


@router.patch("/draft", response_model=DraftState)
async def update_draft_field(
    body: DraftFieldUpdate,
    editor: ConfigEditor = Depends(get_admin_editor),
):
    """Edit one field of the draft (not visible publicly until saved)"""
    try:
        editor.update_field(body.path, body.value)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return _draft_state(editor)


@router.post("/draft/save", response_model=SiteConfig)
async def save_draft(editor: ConfigEditor = Depends(get_admin_editor)):
    outcome = await editor.save()
    if not outcome.ok:
        raise_for_error(outcome)
    return outcome.value


@router.post("/draft/discard", response_model=DraftState)
async def discard_draft(editor: ConfigEditor = Depends(get_admin_editor)):
    editor.discard()
    return _draft_state(editor)


# ---- projects ----

@router.post("/projects", response_model=Project, status_code=status.HTTP_201_CREATED)
async def add_project(
    body: ProjectCreate,
    editor: ConfigEditor = Depends(get_admin_editor),
):
    outcome = await editor.add_project(body)
    if not outcome.ok:
        raise_for_error(outcome)
    return outcome.value


@router.patch("/projects/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    editor: ConfigEditor = Depends(get_admin_editor),
):
    outcome = await editor.update_project(project_id, body)
    if not outcome.ok:
        raise_for_error(outcome)
    return outcome.value


@router.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: str, editor: ConfigEditor = Depends(get_admin_editor)):
    outcome = await editor.delete_project(project_id)
    if not outcome.ok:
        raise_for_error(outcome)
    return None


# ---- services ----

@router.post("/services", response_model=Service, status_code=status.HTTP_201_CREATED)
async def add_service(
    body: ServiceCreate,
    editor: ConfigEditor = Depends(get_admin_editor),
):
    outcome = await editor.add_service(body)
    if not outcome.ok:
        raise_for_error(outcome)
    return outcome.value


@router.patch("/services/{service_id}", response_model=Service)
async def update_service(
    service_id: str,
    body: ServiceUpdate,
    editor: ConfigEditor = Depends(get_admin_editor),
):
    outcome = await editor.update_service(service_id, body)
    if not outcome.ok:
        raise_for_error(outcome)
    return outcome.value


@router.delete("/services/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(service_id: str, editor: ConfigEditor = Depends(get_admin_editor)):
    outcome = await editor.delete_service(service_id)
    if not outcome.ok:
        raise_for_error(outcome)
    return None


# ---- leads ----

@router.get("/leads", response_model=List[Lead])
async def list_leads(editor: ConfigEditor = Depends(get_admin_editor)):
    """Lead inbox, newest first"""
    outcome = await editor.list_leads()
    if not outcome.ok:
        raise_for_error(outcome)
    return outcome.value


@router.get("/stats", response_model=StudioStats)
async def get_stats(editor: ConfigEditor = Depends(get_admin_editor)):
    """Dashboard counters"""
    outcome = await editor.stats()
    if not outcome.ok:
        raise_for_error(outcome)
    return outcome.value
