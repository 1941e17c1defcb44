import asyncio

import httpx
import pytest

from repairall.core.errors import FileTooLarge, FormatError, MalformedPlan, TransportError, ValidationError
from repairall.guide.orchestrator import GuideOrchestrator, GuideState
from repairall.guide.sources import FALLBACK_PLAN, FixedFallbackSource, LiveModelSource, plan_source_from_settings
from repairall.images.resolver import ImageResolver
from repairall.llm.router import GeminiClient
from repairall.llm.schemas import DamageReport

from conftest import PLAN, gemini_text_response, make_settings

DESCRIPTION = "The back panel cracked after a fall and a corner is missing."
PHOTO = b"\xff\xd8\xff\xe0fake-jpeg"


def _report(**kw):
    base = dict(description=DESCRIPTION, photo=PHOTO, photo_mime="image/jpeg")
    base.update(kw)
    return DamageReport(**base)


class CountingHandler:
    def __init__(self, response_text=None, status=200, delay=0.0):
        self.calls = 0
        self.response_text = response_text
        self.status = status
        self.delay = delay

    async def __call__(self, request):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.status >= 400:
            return httpx.Response(self.status, text="upstream failure")
        return gemini_text_response(self.response_text)


def _live(handler, **kw):
    client = GeminiClient(
        api_key="k",
        base_url="https://gemini.test/models",
        plan_model="plan",
        image_model="img",
        transport=httpx.MockTransport(handler),
    )
    return GuideOrchestrator(source=LiveModelSource(client), resolver=ImageResolver([], timeout=1), **kw)


# ---------------------------------------------------------------------------
# Fallback guide (no model key)
# ---------------------------------------------------------------------------

def test_without_model_key_returns_fallback_guide(offline_settings):
    orch = GuideOrchestrator.from_settings(offline_settings)
    progress = []

    guide = asyncio.run(orch.generate(_report(), on_progress=progress.append))

    assert guide.title == FALLBACK_PLAN.title
    assert guide.safety == FALLBACK_PLAN.safety
    assert [s.model_dump(exclude={"image"}) for s in guide.steps] == [s.model_dump() for s in FALLBACK_PLAN.steps]
    assert all(s.image for s in guide.steps)
    assert orch.state == GuideState.COMPLETE
    assert orch.guide == guide
    assert progress[0] == "Preparing request"
    assert progress[-1] == "Guide ready"


def test_plan_source_follows_model_key():
    assert isinstance(plan_source_from_settings(make_settings()), FixedFallbackSource)
    assert isinstance(plan_source_from_settings(make_settings(GEMINI_API_KEY="k")), LiveModelSource)


# ---------------------------------------------------------------------------
# Live generation
# ---------------------------------------------------------------------------

def test_live_generation_builds_guide_in_plan_order(plan_json):
    handler = CountingHandler("```json\n" + plan_json + "\n```")
    orch = _live(handler)
    progress = []

    guide = asyncio.run(orch.generate(_report(), on_progress=progress.append))

    assert handler.calls == 1
    assert guide.title == PLAN["title"]
    assert [s.title for s in guide.steps] == [s["title"] for s in PLAN["steps"]]
    assert all(s.image.startswith("data:image/png;base64,") for s in guide.steps)
    assert "Planning repair strategy" in progress
    assert orch.state == GuideState.COMPLETE
    assert orch.is_generating is False


def test_transport_failure_errors_the_session():
    orch = _live(CountingHandler(status=503))
    with pytest.raises(TransportError):
        asyncio.run(orch.generate(_report()))
    assert orch.state == GuideState.ERRORED
    assert "503" in orch.error
    assert orch.guide is None
    assert orch.is_generating is False


def test_malformed_plan_errors_the_session():
    orch = _live(CountingHandler("Sorry, I cannot help with that."))
    with pytest.raises(MalformedPlan) as exc:
        asyncio.run(orch.generate(_report()))
    assert isinstance(exc.value, FormatError)
    assert exc.value.raw_text == "Sorry, I cannot help with that."
    assert orch.state == GuideState.ERRORED


def test_resubmission_after_error_is_allowed(plan_json):
    handler = CountingHandler(status=500)
    orch = _live(handler)
    with pytest.raises(TransportError):
        asyncio.run(orch.generate(_report()))

    handler.status, handler.response_text = 200, plan_json
    guide = asyncio.run(orch.generate(_report()))
    assert guide is not None
    assert orch.error is None


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("description", ["", "   ", "too short", "  ten chars "])
def test_short_description_rejected_before_network(description):
    handler = CountingHandler("{}")
    orch = _live(handler)
    with pytest.raises(ValidationError):
        asyncio.run(orch.generate(_report(description=description)))
    assert handler.calls == 0
    assert orch.state == GuideState.IDLE


def test_missing_photo_rejected():
    handler = CountingHandler("{}")
    with pytest.raises(ValidationError):
        asyncio.run(_live(handler).generate(_report(photo=None)))
    assert handler.calls == 0


def test_oversized_photo_rejected_before_network():
    handler = CountingHandler("{}")
    orch = _live(handler, max_photo_bytes=4 * 1024 * 1024)
    with pytest.raises(FileTooLarge) as exc:
        asyncio.run(orch.generate(_report(photo=b"\0" * (4 * 1024 * 1024 + 1))))
    assert isinstance(exc.value, ValidationError)
    assert handler.calls == 0
    assert orch.state == GuideState.ERRORED


# ---------------------------------------------------------------------------
# Concurrency guard and reset
# ---------------------------------------------------------------------------

def test_second_submission_while_generating_is_noop(plan_json):
    handler = CountingHandler(plan_json, delay=0.05)
    orch = _live(handler)

    async def both():
        return await asyncio.gather(orch.generate(_report()), orch.generate(_report()))

    first, second = asyncio.run(both())

    assert first is not None
    assert second is None
    assert handler.calls == 1


def test_reset_discards_in_flight_result(plan_json):
    handler = CountingHandler(plan_json, delay=0.05)
    orch = _live(handler)

    async def run():
        task = asyncio.create_task(orch.generate(_report()))
        await asyncio.sleep(0.01)
        assert orch.state == GuideState.AWAITING_PLAN
        orch.reset()
        return await task

    assert asyncio.run(run()) is None
    assert orch.state == GuideState.IDLE
    assert orch.guide is None
    assert orch.is_generating is False
    assert orch.status == "Idle"


def test_reset_after_completion_clears_guide(offline_settings):
    orch = GuideOrchestrator.from_settings(offline_settings)
    asyncio.run(orch.generate(_report()))
    orch.reset()
    snap = orch.snapshot()
    assert snap["state"] == "idle"
    assert snap["guide"] is None


def test_failed_regeneration_drops_previous_guide(plan_json):
    handler = CountingHandler(plan_json)
    orch = _live(handler)
    assert asyncio.run(orch.generate(_report())) is not None

    handler.status = 500
    with pytest.raises(TransportError):
        asyncio.run(orch.generate(_report()))

    assert orch.state == GuideState.ERRORED
    assert orch.guide is None
    assert orch.snapshot()["guide"] is None


def test_guide_is_cleared_while_regenerating(plan_json):
    handler = CountingHandler(plan_json)
    orch = _live(handler)
    asyncio.run(orch.generate(_report()))

    async def run():
        handler.delay = 0.05
        task = asyncio.create_task(orch.generate(_report()))
        await asyncio.sleep(0.01)
        seen = orch.guide
        await task
        return seen

    assert asyncio.run(run()) is None
    assert orch.guide is not None


def test_non_string_plan_text_is_empty_response():
    async def handler(request):
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": 5}]}}]})

    orch = _live(handler)
    with pytest.raises(FormatError):
        asyncio.run(orch.generate(_report()))
    assert orch.state == GuideState.ERRORED
    assert orch.is_generating is False
