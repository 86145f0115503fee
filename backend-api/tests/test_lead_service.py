from __future__ import annotations

import asyncio
import re
from urllib.parse import unquote

import pytest

from conftest import FakeEnrichment
from studio.core.exceptions import EnrichmentError
from studio.schemas.lead import EnrichmentResult, Lead, LeadSubmission
from studio.services.enrichment_service import parse_enrichment
from studio.services.lead_service import (
    FormState,
    LeadForm,
    LeadIntakePipeline,
    build_follow_up_link,
    generate_reference_code,
)
from studio.services.mail_service import _build_lead_email
from studio.services.notification_relay import BackgroundNotifier
from studio.services.site_context import SiteContext

LINO_CODE = re.compile(r"^LINO-[A-Z0-9]{6,8}$")


def _hire(**overrides) -> LeadSubmission:
    data = {
        "name": "Jane",
        "email": "jane@example.com",
        "message": "I need a brand refresh and a new website.",
        "budget": "Premium",
        "type": "HIRE_ME",
    }
    data.update(overrides)
    return LeadSubmission(**data)


async def _stored_leads(store, gate):
    res = await store.as_user(gate.access_token).table("leads").select().execute()
    assert res.ok
    return res.data


# ---- reference codes ----

@pytest.mark.parametrize("length", [6, 7, 8])
def test_reference_code_has_fixed_format(length) -> None:
    for _ in range(50):
        code = generate_reference_code("LINO-", length)
        assert LINO_CODE.match(code)
        assert len(code) == len("LINO-") + length


def test_reference_code_length_is_bounded() -> None:
    with pytest.raises(ValueError):
        generate_reference_code("LINO-", 5)
    with pytest.raises(ValueError):
        generate_reference_code("LINO-", 9)


# ---- pipeline ----

async def test_hire_form_yields_prefixed_reference_code(context) -> None:
    outcome = await LeadIntakePipeline(context).submit(_hire())

    assert outcome.ok
    assert LINO_CODE.match(outcome.reference_code)
    assert outcome.lead.referenceCode == outcome.reference_code


async def test_failed_enrichment_still_persists_exactly_one_lead(context, store, gate) -> None:
    enrichment = FakeEnrichment(error=EnrichmentError("model timed out"))

    outcome = await LeadIntakePipeline(context, enrichment=enrichment).submit(_hire())

    assert outcome.ok
    assert enrichment.calls == 1
    assert LINO_CODE.match(outcome.reference_code)
    rows = await _stored_leads(store, gate)
    assert len(rows) == 1
    row = rows[0]
    assert (row["type"], row["name"], row["email"]) == ("HIRE_ME", "Jane", "jane@example.com")
    assert row["message"] == "I need a brand refresh and a new website."
    assert not row["summary"]


async def test_crashing_enrichment_is_contained(context) -> None:
    enrichment = FakeEnrichment(error=RuntimeError("unexpected"))
    outcome = await LeadIntakePipeline(context, enrichment=enrichment).submit(_hire())
    assert outcome.ok
    assert outcome.lead.summary is None


async def test_valid_enrichment_supplies_code_and_summary(context, store, gate) -> None:
    enrichment = FakeEnrichment(result=EnrichmentResult(
        success=True, emailFormatted="Jane wants a rebrand.", referenceCode="LINO-AB12CD34",
    ))

    outcome = await LeadIntakePipeline(context, enrichment=enrichment, code_length=8).submit(_hire())

    assert outcome.reference_code == "LINO-AB12CD34"
    rows = await _stored_leads(store, gate)
    assert rows[0]["summary"] == "Jane wants a rebrand."
    assert rows[0]["reference_code"] == "LINO-AB12CD34"


@pytest.mark.parametrize("bad_code", ["ACME-123456", "LINO-abc123", "LINO-12345", "LINO-123456789", "LINO-ABCD1234"])
async def test_enrichment_code_in_wrong_format_is_replaced(context, bad_code) -> None:
    enrichment = FakeEnrichment(result=EnrichmentResult(
        success=True, emailFormatted="Summary", referenceCode=bad_code,
    ))

    outcome = await LeadIntakePipeline(context, enrichment=enrichment).submit(_hire())

    assert outcome.reference_code != bad_code
    assert LINO_CODE.match(outcome.reference_code)
    assert outcome.lead.summary is None


async def test_store_failure_falls_back_to_local_cache(unreachable_store, cache) -> None:
    context = SiteContext(unreachable_store, cache)

    outcome = await LeadIntakePipeline(context).submit(_hire())

    assert outcome.ok
    assert outcome.stored_locally is True
    cached = await cache.read_leads()
    assert [l.referenceCode for l in cached] == [outcome.reference_code]


async def test_store_and_cache_failure_rejects_lead(unreachable_store, redis, cache) -> None:
    redis.fail = True
    context = SiteContext(unreachable_store, cache)

    outcome = await LeadIntakePipeline(context).submit(_hire())

    assert not outcome.ok
    assert outcome.kind == "network"


async def test_notification_failure_does_not_affect_outcome(context) -> None:
    async def broken_relay(payload):
        raise ConnectionError("relay down")

    notifier = BackgroundNotifier(broken_relay)
    outcome = await LeadIntakePipeline(context, notifier=notifier).submit(_hire())
    await notifier.drain()

    assert outcome.ok
    assert notifier.pending == 0


async def test_notification_carries_lead_details(context) -> None:
    sent = []

    async def relay(payload):
        sent.append(payload)

    notifier = BackgroundNotifier(relay)
    outcome = await LeadIntakePipeline(context, notifier=notifier).submit(_hire())
    await notifier.drain()

    assert sent == [{
        "name": "Jane",
        "email": "jane@example.com",
        "budget": "Premium",
        "message": "I need a brand refresh and a new website.",
        "referenceCode": outcome.reference_code,
        "summary": None,
    }]


def test_follow_up_link_is_prefilled_whatsapp_chat(context) -> None:
    config = context.config.model_copy(update={"contactPhone": "+234 803 123 4567"})
    lead = _hire()

    url = build_follow_up_link(config, Lead(
        id="1", name=lead.name, email=str(lead.email), type=lead.type, budget=lead.budget,
        message=lead.message, referenceCode="LINO-ABC123", createdAt="2025-01-01T00:00:00Z",
    ))

    assert url.startswith("https://wa.me/2348031234567?text=")
    text = unquote(url.split("text=", 1)[1])
    assert "I am Jane" in text
    assert "budget of Premium" in text
    assert "LINO-ABC123" in text


# ---- form ----

async def test_form_success_clears_fields(context) -> None:
    form = LeadForm(LeadIntakePipeline(context), "HIRE_ME")
    form.fill(name="Jane", email="jane@example.com", message="Hello", budget="Premium")

    outcome = await form.submit()

    assert outcome.ok
    assert form.state == FormState.SUCCESS
    assert all(v is None for v in form.fields.values())
    assert form.receipt().referenceCode == outcome.reference_code


async def test_form_error_keeps_entered_values(unreachable_store, redis, cache) -> None:
    redis.fail = True
    form = LeadForm(LeadIntakePipeline(SiteContext(unreachable_store, cache)))
    form.fill(name="Jane", email="jane@example.com", message="Hello")

    outcome = await form.submit()

    assert not outcome.ok
    assert form.state == FormState.ERROR
    assert form.fields["name"] == "Jane"
    assert form.fields["message"] == "Hello"
    assert form.receipt().state == "error"


async def test_form_invalid_input_is_an_error_state(context) -> None:
    form = LeadForm(LeadIntakePipeline(context))
    form.fill(name="Jane", email="not-an-email", message="Hello")

    outcome = await form.submit()

    assert outcome.kind == "validation"
    assert form.state == FormState.ERROR
    assert form.fields["email"] == "not-an-email"


async def test_form_ignores_submit_while_submitting(context) -> None:
    release = asyncio.Event()

    class SlowPipeline(LeadIntakePipeline):
        async def submit(self, submission):
            await release.wait()
            return await super().submit(submission)

    form = LeadForm(SlowPipeline(context))
    form.fill(name="Jane", email="jane@example.com", message="Hello")

    first = asyncio.create_task(form.submit())
    await asyncio.sleep(0)
    assert form.state == FormState.SUBMITTING

    assert await form.submit() is None
    release.set()
    assert (await first).ok


# ---- enrichment payload parsing ----

def test_parse_enrichment_accepts_valid_json() -> None:
    result = parse_enrichment('{"success": true, "emailFormatted": "Hi", "referenceCode": "LINO-ABC123"}')
    assert result.referenceCode == "LINO-ABC123"


def test_parse_enrichment_accepts_fenced_json() -> None:
    result = parse_enrichment('```json\n{"success": true, "emailFormatted": "Hi", "referenceCode": "LINO-ABC123"}\n```')
    assert result.emailFormatted == "Hi"


@pytest.mark.parametrize(
    "text",
    [
        "",
        "not json",
        '{"success": true, "emailFormatted": "Hi"}',
        '{"success": false, "emailFormatted": "Hi", "referenceCode": "LINO-ABC123"}',
        '{"success": true, "emailFormatted": "", "referenceCode": "LINO-ABC123"}',
    ],
)
def test_parse_enrichment_rejects_malformed_answers(text) -> None:
    with pytest.raises(EnrichmentError):
        parse_enrichment(text)


# ---- studio inbox email ----

def test_lead_email_is_a_notification_with_escaped_content() -> None:
    subject, text, html = _build_lead_email({
        "name": "Jane",
        "email": "jane@example.com",
        "message": "<script>alert(1)</script>",
        "referenceCode": "LINO-ABC123",
    })

    assert subject == "New Project Inquiry from Jane [LINO-ABC123]"
    assert "Message: <script>alert(1)</script>" in text
    assert "New Notification" in html
    assert "<script>" not in html
    assert "LINO-ABC123" in html
