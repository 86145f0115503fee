from typing import NoReturn, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from studio.core.result import Err
from studio.services.config_editor import ConfigEditor
from studio.services.lead_service import LeadIntakePipeline
from studio.services.site_context import SiteContext

# auto_error=False: a missing header is answered with 401 below, not 403
security = HTTPBearer(auto_error=False)

_STATUS_BY_KIND = {
    "authorization": status.HTTP_401_UNAUTHORIZED,
    "network": status.HTTP_503_SERVICE_UNAVAILABLE,
    "in_flight": status.HTTP_409_CONFLICT,
    "validation": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "not_found": status.HTTP_404_NOT_FOUND,
}


def get_site_context(request: Request) -> SiteContext:
    return request.app.state.site_context


def get_lead_pipeline(request: Request) -> LeadIntakePipeline:
    return request.app.state.lead_pipeline


def bearer_token(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    return credentials.credentials if credentials else None


async def get_admin_editor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    context: SiteContext = Depends(get_site_context),
) -> ConfigEditor:
    """Admin workspace of the bearer session"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Admin session required",
        headers={"WWW-Authenticate": "Bearer"},
    )
    context.prune_workspaces()
    editor = context.workspace_for(bearer_token(credentials))
    if editor is None:
        raise credentials_exception
    if not await editor.gate.verify():
        raise credentials_exception
    return editor


def raise_for_error(err: Err) -> NoReturn:
    """Translate a tagged failure into the HTTP answer."""
    code = _STATUS_BY_KIND.get(err.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    raise HTTPException(status_code=code, detail=err.message, headers=headers)


__all__ = ["get_site_context", "get_lead_pipeline", "get_admin_editor", "raise_for_error", "security"]
