"""
Where a repair plan comes from.
What it provides:
- LiveModelSource: prompt -> Gemini -> parsed + validated plan
- FixedFallbackSource: the built-in sample plan, used without a model key

Main purpose:
Let the orchestrator branch on a capability instead of on env checks.
"""


from typing import Callable, Optional

from repairall.core.config import Settings
from repairall.core.logging import get_logger
from repairall.llm.json_parse import parse_plan
from repairall.llm.prompts import build_plan_request
from repairall.llm.router import GeminiClient
from repairall.llm.schemas import PlanStep, RepairPlan

log = get_logger("guide.sources")

ProgressFn = Optional[Callable[[str], None]]


FALLBACK_PLAN = RepairPlan(
    title="Stabilize and Patch Damaged Panel",
    safety=(
        "Disconnect power, wear cut-proof gloves, and secure the chassis on a flat surface "
        "before continuing."
    ),
    steps=[
        PlanStep(
            title="Document the damage",
            description=(
                "Capture reference photos and note any cracks or missing hardware so you can "
                "match replacements during reassembly."
            ),
            tools=["Camera", "Painter's tape"],
            caution="Do not touch exposed wiring until you're certain the unit is de-energized.",
        ),
        PlanStep(
            title="Clean and prep the surface",
            description="Brush away debris and degrease the panel so structural adhesive bonds correctly.",
            tools=["Nylon brush", "Isopropyl alcohol"],
        ),
        PlanStep(
            title="Patch + clamp",
            description=(
                "Butter epoxy putty across the fracture, press the backing plate into place, "
                "and clamp until cured."
            ),
            tools=["Epoxy putty", "Clamp", "Backing plate"],
        ),
        PlanStep(
            title="Rebuild finish",
            description="Feather-sand the repair, spot-prime, then apply thin coats of matching paint.",
            tools=["1200 grit paper", "Primer pen", "Color-matched paint"],
        ),
    ],
)


class PlanSource:
    live = False

    async def fetch_plan(self, description: str, photo_uri: Optional[str], on_progress: ProgressFn = None) -> RepairPlan:
        raise NotImplementedError


class FixedFallbackSource(PlanSource):
    async def fetch_plan(self, description, photo_uri, on_progress=None) -> RepairPlan:
        if on_progress:
            on_progress("Gemini key missing. Using the sample repair guide")
        return FALLBACK_PLAN.model_copy(deep=True)


class LiveModelSource(PlanSource):
    live = True

    def __init__(self, client: GeminiClient):
        self.client = client

    async def fetch_plan(self, description, photo_uri, on_progress=None) -> RepairPlan:
        if on_progress:
            on_progress("Planning repair strategy")
        payload = build_plan_request(description, photo_uri)
        text = await self.client.plan_text(payload)
        plan = parse_plan(text)
        log.info(f"Plan {plan.title!r} with {len(plan.steps)} steps")
        return plan


def plan_source_from_settings(s: Settings, client: Optional[GeminiClient] = None) -> PlanSource:
    if not s.model_ready:
        return FixedFallbackSource()
    return LiveModelSource(client or GeminiClient.from_settings(s))
