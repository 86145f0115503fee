"""
Lead intake pipeline

submission -> local reference code -> optional enrichment -> persist
(remote store, else local cache) -> background notification -> outcome.
Only persistence decides the outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Union
from urllib.parse import quote
import logging
import re
import secrets
import string
import uuid

from pydantic import ValidationError

from studio.core.config import settings
from studio.core.exceptions import EnrichmentError
from studio.schemas.lead import Lead, LeadReceipt, LeadSubmission, LeadType
from studio.schemas.site import SiteConfig
from studio.services.field_mapping import lead_to_row
from studio.services.notification_relay import BackgroundNotifier, RelayClient

if TYPE_CHECKING:
    from studio.services.enrichment_service import GeminiEnrichmentClient
    from studio.services.site_context import SiteContext

logger = logging.getLogger(__name__)

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
MIN_SUFFIX, MAX_SUFFIX = 6, 8

SAVE_FAILED_MESSAGE = "We could not send your message. Please try again."


def generate_reference_code(prefix: str, length: Optional[int] = None) -> str:
    """prefix + fixed-length random [A-Z0-9] suffix"""
    length = length or settings.REFERENCE_CODE_LENGTH
    if not MIN_SUFFIX <= length <= MAX_SUFFIX:
        raise ValueError(f"Reference code suffix must be {MIN_SUFFIX}..{MAX_SUFFIX} characters")
    return prefix + "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(length))


def reference_code_pattern(prefix: str, length: Optional[int] = None) -> "re.Pattern[str]":
    """Exact suffix length when given, else any allowed length"""
    suffix = f"{{{length}}}" if length else f"{{{MIN_SUFFIX},{MAX_SUFFIX}}}"
    return re.compile(rf"^{re.escape(prefix)}[A-Z0-9]{suffix}$")


def build_follow_up_link(config: SiteConfig, lead: Lead) -> str:
    """Pre-filled WhatsApp chat with the studio."""
    text = (
        f"Hello {config.siteName}! I am {lead.name}. "
        f"I'm interested in a project with a budget of {lead.budget or 'Not specified'}. "
        f"Details: {lead.message} (Ref: {lead.referenceCode})"
    )
    digits = re.sub(r"\D", "", config.contactPhone or "")
    # placeholder numbers like "+234 XXX XXX XXXX" leave too few digits
    target = digits if len(digits) >= 8 else ""
    return f"https://wa.me/{target}?text={quote(text, safe='')}"


@dataclass(frozen=True)
class LeadAccepted:
    reference_code: str
    lead: Lead
    follow_up_url: str
    stored_locally: bool = False
    ok: bool = True


@dataclass(frozen=True)
class LeadRejected:
    message: str
    kind: str = "backend"
    ok: bool = False


LeadOutcome = Union[LeadAccepted, LeadRejected]


class LeadIntakePipeline:
    def __init__(
        self,
        context: "SiteContext",
        enrichment: Optional["GeminiEnrichmentClient"] = None,
        notifier: Optional[BackgroundNotifier] = None,
        code_length: Optional[int] = None,
    ):
        self.context = context
        self.enrichment = enrichment
        self.notifier = notifier
        self.code_length = code_length or settings.REFERENCE_CODE_LENGTH

    async def _enrich(self, submission: LeadSubmission, config: SiteConfig, local_code: str):
        """(reference_code, summary); the local code and no summary on any failure"""
        if self.enrichment is None:
            return local_code, None
        prefix = config.couponPrefix
        try:
            result = await self.enrichment.enrich(submission, config.siteName, prefix, self.code_length)
        except EnrichmentError as e:
            logger.warning(f"[lead] enrichment skipped: {e}")
            return local_code, None
        except Exception:
            logger.exception("[lead] enrichment crashed")
            return local_code, None
        if not reference_code_pattern(prefix, self.code_length).match(result.referenceCode):
            logger.warning(f"[lead] enrichment code rejected: {result.referenceCode!r}")
            return local_code, None
        return result.referenceCode, result.emailFormatted

    async def submit(self, submission: LeadSubmission) -> LeadOutcome:
        config = self.context.config
        local_code = generate_reference_code(config.couponPrefix, self.code_length)
        code, summary = await self._enrich(submission, config, local_code)

        lead = Lead(
            id=uuid.uuid4().hex,
            name=submission.name,
            email=str(submission.email),
            type=submission.type,
            budget=submission.budget,
            message=submission.message,
            referenceCode=code,
            createdAt=datetime.now(timezone.utc),
            summary=summary,
        )

        stored_locally = False
        res = await self.context.store.table("leads").insert(lead_to_row(lead)).execute()
        if not res.ok:
            logger.warning(f"[lead] remote insert failed ({res.error.kind}), caching lead {code}")
            if not await self.context.cache.append_lead(lead):
                logger.error(f"[lead] lead {code} lost: remote store and local cache both failed")
                return LeadRejected(SAVE_FAILED_MESSAGE, kind=res.error.kind)
            stored_locally = True

        if self.notifier is not None:
            self.notifier.schedule({
                "name": lead.name,
                "email": lead.email,
                "budget": lead.budget,
                "message": lead.message,
                "referenceCode": lead.referenceCode,
                "summary": lead.summary,
            })

        logger.info(f"[lead] accepted {code} ({lead.type})")
        return LeadAccepted(
            reference_code=code,
            lead=lead,
            follow_up_url=build_follow_up_link(config, lead),
            stored_locally=stored_locally,
        )


class FormState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


class LeadForm:
    """One contact or hire-me form: IDLE -> SUBMITTING -> SUCCESS | ERROR"""

    FIELDS = ("name", "email", "message", "budget")

    def __init__(self, pipeline: LeadIntakePipeline, form_type: LeadType = "CONTACT_FORM"):
        self.pipeline = pipeline
        self.form_type = form_type
        self.fields: Dict[str, Any] = {name: None for name in self.FIELDS}
        self.state = FormState.IDLE
        self.outcome: Optional[LeadOutcome] = None

    def fill(self, **values: Any) -> None:
        for name, value in values.items():
            if name not in self.FIELDS:
                raise ValueError(f"Unknown form field: {name}")
            self.fields[name] = value

    def _clear(self) -> None:
        self.fields = {name: None for name in self.FIELDS}

    async def submit(self) -> Optional[LeadOutcome]:
        """None when a submission is already running."""
        if self.state == FormState.SUBMITTING:
            logger.info("[lead] form submit ignored, already submitting")
            return None
        self.state = FormState.SUBMITTING
        try:
            submission = LeadSubmission(**{k: v for k, v in self.fields.items() if v is not None}, type=self.form_type)
        except ValidationError as e:
            outcome: LeadOutcome = LeadRejected(f"Please check the form: {e.errors()[0].get('msg', 'invalid')}", kind="validation")
        else:
            try:
                outcome = await self.pipeline.submit(submission)
            except Exception:
                logger.exception("[lead] submission crashed")
                outcome = LeadRejected(SAVE_FAILED_MESSAGE)

        self.outcome = outcome
        if outcome.ok:
            self.state = FormState.SUCCESS
            self._clear()
        else:
            self.state = FormState.ERROR
        return outcome

    def receipt(self) -> LeadReceipt:
        outcome = self.outcome
        if isinstance(outcome, LeadAccepted):
            return LeadReceipt(
                state="success",
                referenceCode=outcome.reference_code,
                followUpUrl=outcome.follow_up_url,
                storedLocally=outcome.stored_locally,
                message="Thanks! We'll be in touch shortly.",
            )
        return LeadReceipt(state="error", message=outcome.message if outcome else SAVE_FAILED_MESSAGE)


def build_lead_pipeline(context: "SiteContext") -> LeadIntakePipeline:
    from studio.services.enrichment_service import build_enrichment_client

    relay = RelayClient()
    return LeadIntakePipeline(
        context,
        enrichment=build_enrichment_client(),
        notifier=BackgroundNotifier(relay.notify),
    )
