"""
Lead intake API (contact form / hire-me form)
"""

from fastapi import APIRouter, Depends, HTTPException, status
import logging

from studio.dependencies import get_lead_pipeline
from studio.schemas.lead import LeadReceipt, LeadSubmission
from studio.services.lead_service import LeadForm, LeadIntakePipeline

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=LeadReceipt, status_code=status.HTTP_201_CREATED)
async def submit_lead(
    submission: LeadSubmission,
    pipeline: LeadIntakePipeline = Depends(get_lead_pipeline),
):
    """Submit a lead; the reference code and follow-up link come back on success"""
    form = LeadForm(pipeline, submission.type)
    form.fill(
        name=submission.name,
        email=str(submission.email),
        message=submission.message,
        budget=submission.budget,
    )
    outcome = await form.submit()
    if outcome is None or not outcome.ok:
        kind = getattr(outcome, "kind", "backend")
        code = status.HTTP_503_SERVICE_UNAVAILABLE if kind == "network" else status.HTTP_500_INTERNAL_SERVER_ERROR
        raise HTTPException(status_code=code, detail=form.receipt().message)
    return form.receipt()
