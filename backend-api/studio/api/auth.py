"""
Admin authentication API

Each successful sign-in opens an admin workspace (draft editor) keyed by the
returned bearer token.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials
from typing import Literal, Optional
import logging

from studio.core.exceptions import AuthorizationError, InvalidCredentialsError, ServiceUnavailableError
from studio.dependencies import bearer_token, get_admin_editor, get_site_context, security
from studio.schemas.auth import GateStatus, LoginRequest, SessionResponse, UnlockRequest
from studio.services.config_editor import ConfigEditor
from studio.services.remote_store import Session
from studio.services.session_gate import AdminSessionGate
from studio.services.site_context import SiteContext

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_response(session: Session, mode: Optional[str]) -> SessionResponse:
    return SessionResponse(
        access_token=session.access_token,
        expires_at=session.expires_at,
        mode=mode or "password",
    )


def _open(context: SiteContext, gate: AdminSessionGate, session: Optional[Session]) -> SessionResponse:
    if session is None:
        gate.close()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Sign-in already in progress")
    context.open_workspace(gate)
    return _session_response(session, gate.mode)


@router.post("/login", response_model=SessionResponse)
async def login(
    body: LoginRequest,
    context: SiteContext = Depends(get_site_context),
):
    """Email/password sign-in"""
    gate = context.new_gate()
    try:
        session = await gate.sign_in(body.email, body.password)
    except InvalidCredentialsError as e:
        gate.close()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except ServiceUnavailableError as e:
        gate.close()
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    logger.info(f"[auth] admin signed in: {body.email}")
    return _open(context, gate, session)


@router.post("/unlock", response_model=SessionResponse)
async def unlock(
    body: UnlockRequest,
    context: SiteContext = Depends(get_site_context),
):
    """Legacy shared admin key"""
    gate = context.new_gate()
    try:
        session = await gate.unlock_with_key(body.key)
    except InvalidCredentialsError as e:
        gate.close()
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except ServiceUnavailableError as e:
        gate.close()
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return _open(context, gate, session)


@router.post("/refresh", response_model=SessionResponse)
async def refresh(editor: ConfigEditor = Depends(get_admin_editor)):
    """New token for the same session (old token stops working)"""
    try:
        session = await editor.gate.refresh()
    except AuthorizationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    return _session_response(session, editor.gate.mode)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    scope: Literal["local", "global"] = Query("local"),
    editor: ConfigEditor = Depends(get_admin_editor),
):
    """Sign out this session, or every session of the account with scope=global"""
    await editor.gate.sign_out(scope=scope)
    return None


@router.get("/session", response_model=GateStatus)
async def session_status(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    context: SiteContext = Depends(get_site_context),
):
    editor = context.workspace_for(bearer_token(credentials))
    if editor is None or not await editor.gate.verify():
        return GateStatus(state="anonymous")
    gate = editor.gate
    return GateStatus(
        state=gate.state.value,
        email=gate.session.email if gate.session else None,
        expires_at=gate.session.expires_at if gate.session else None,
        error=gate.error,
    )
