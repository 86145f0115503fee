"""
Auth schemas
"""

from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime


class LoginRequest(BaseModel):
    """Email/password sign-in"""
    email: str
    password: str


class UnlockRequest(BaseModel):
    """Legacy shared admin key"""
    key: str = Field(..., min_length=1)


class SessionResponse(BaseModel):
    """Issued admin session"""
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    mode: Literal["password", "key"]


class GateStatus(BaseModel):
    state: Literal["anonymous", "authenticating", "authenticated"]
    email: Optional[str] = None
    expires_at: Optional[datetime] = None
    error: Optional[str] = None
