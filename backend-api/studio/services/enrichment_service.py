"""
Lead enrichment (Gemini)

Asks the model for a formatted inquiry email plus a reference code, using
JSON structured output. The caller validates the reference code; anything
malformed raises EnrichmentError and the lead keeps its local code.
"""

from typing import Optional
import asyncio
import logging

import google.generativeai as genai
from pydantic import ValidationError

from studio.core.config import settings
from studio.core.exceptions import EnrichmentError
from studio.schemas.lead import EnrichmentResult, LeadSubmission

logger = logging.getLogger(__name__)

# Declared structured-output schema
RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "success": {"type": "boolean"},
        "emailFormatted": {"type": "string"},
        "referenceCode": {"type": "string"},
    },
    "required": ["success", "emailFormatted", "referenceCode"],
}


def build_enrichment_prompt(submission: LeadSubmission, site_name: str, prefix: str, suffix_length: int) -> str:
    return (
        f"You are the inquiry desk of {site_name}, a design and web development studio.\n"
        "Turn the submission below into a short, well formatted email for the studio inbox "
        "that summarizes who the client is and what they need.\n"
        f"Also create a reference code: \"{prefix}\" followed by exactly {suffix_length} "
        "uppercase letters or digits.\n"
        "Answer with JSON only: success, emailFormatted, referenceCode.\n\n"
        f"Type: {submission.type}\n"
        f"Name: {submission.name}\n"
        f"Email: {submission.email}\n"
        f"Budget: {submission.budget or 'Not specified'}\n"
        f"Message: {submission.message}\n"
    )


class GeminiEnrichmentClient:
    """Thin wrapper around google-generativeai for lead enrichment"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key or settings.GEMINI_API_KEY
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY environment variable or api_key parameter required")
        genai.configure(api_key=self.api_key)
        self.model_name = model or settings.GEMINI_MODEL
        self.timeout = timeout or settings.ENRICHMENT_TIMEOUT_SECONDS

    async def enrich(self, submission: LeadSubmission, site_name: str, prefix: str, suffix_length: int) -> EnrichmentResult:
        prompt = build_enrichment_prompt(submission, site_name, prefix, suffix_length)
        gemini_model = genai.GenerativeModel(self.model_name)
        generation_config = genai.types.GenerationConfig(
            temperature=0.4,
            max_output_tokens=1024,
            response_mime_type="application/json",
            response_schema=RESPONSE_SCHEMA,
        )
        try:
            response = await asyncio.wait_for(
                gemini_model.generate_content_async(prompt, generation_config=generation_config),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise EnrichmentError(f"Enrichment timed out after {self.timeout}s") from e
        except Exception as e:
            raise EnrichmentError(f"Enrichment call failed: {e}") from e

        # .text raises when the candidate was blocked
        try:
            text = response.text
        except Exception as e:
            raise EnrichmentError("Enrichment returned no text") from e
        return parse_enrichment(text)


def parse_enrichment(text: Optional[str]) -> EnrichmentResult:
    """Validate the model's JSON answer."""
    if not text or not text.strip():
        raise EnrichmentError("Empty enrichment response")
    raw = text.strip()
    # tolerate fenced answers
    if raw.startswith("```"):
        raw = raw.strip("`")
        if raw.lower().startswith("json"):
            raw = raw[4:]
    try:
        result = EnrichmentResult.model_validate_json(raw.strip())
    except ValidationError as e:
        raise EnrichmentError(f"Malformed enrichment response: {e.error_count()} error(s)") from e
    if not result.success:
        raise EnrichmentError("Enrichment reported failure")
    return result


def build_enrichment_client() -> Optional[GeminiEnrichmentClient]:
    """None when no API key is configured."""
    if not settings.GEMINI_API_KEY:
        logger.info("[enrichment] GEMINI_API_KEY not set, enrichment disabled")
        return None
    return GeminiEnrichmentClient()
