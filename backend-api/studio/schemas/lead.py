"""
Lead schemas
"""

from pydantic import BaseModel, Field, EmailStr, field_validator
from typing import Optional, Literal
from datetime import datetime
import re


LeadType = Literal["HIRE_ME", "CONTACT_FORM"]


def _sanitize_lead_text(value: Optional[str], max_length: Optional[int] = None) -> Optional[str]:
    """Visitor input is stored and mailed, so tags are stripped first."""
    if value is None:
        return None
    text = re.sub(r"<[^>]*>", "", str(value)).strip()
    if max_length is not None and len(text) > max_length:
        raise ValueError(f"At most {max_length} characters allowed.")
    return text or None


class LeadSubmission(BaseModel):
    """Contact form / hire-me form payload"""

    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    message: str = Field(..., min_length=1, max_length=5000)
    budget: Optional[str] = Field(None, max_length=100)
    type: LeadType = "CONTACT_FORM"

    @field_validator("name", "message", "budget", mode="before")
    @classmethod
    def sanitize_fields(cls, v, info):
        max_map = {"name": 200, "message": 5000, "budget": 100}
        return _sanitize_lead_text(v, max_map.get(info.field_name))


class Lead(BaseModel):
    """Persisted lead"""

    id: str
    name: str
    email: str
    type: LeadType
    budget: Optional[str] = None
    message: str
    referenceCode: str
    createdAt: datetime
    summary: Optional[str] = None


class LeadReceipt(BaseModel):
    """What the visitor gets back after a submission"""

    state: Literal["success", "error"]
    referenceCode: Optional[str] = None
    followUpUrl: Optional[str] = None
    storedLocally: bool = False
    message: str


class EnrichmentResult(BaseModel):
    """Structured output declared to the enrichment model"""

    success: bool
    emailFormatted: str = Field(..., min_length=1)
    referenceCode: str = Field(..., min_length=1)
