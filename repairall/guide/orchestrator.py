"""
Guide generation orchestrator.
What it does:
- Validates the damage report before any network call
- Encodes the photo and asks the plan source for a repair plan
- Resolves one illustration per step (concurrently)
- Tracks the state machine and the latest status line
- Drops results of a generation that was reset while in flight

States:
  Idle -> Preparing -> AwaitingPlan -> ResolvingImages -> Complete
  Preparing | AwaitingPlan -> Errored
  Preparing -> Complete (no model key: fixed fallback plan)
  any -> Idle (reset)

And, the main purpose:
Drive report -> plan -> illustrated guide for one technician session.
"""


from enum import Enum
from typing import Callable, Optional

from repairall.core.config import Settings
from repairall.core.datauri import to_data_uri
from repairall.core.errors import FileTooLarge, GuideError, ValidationError
from repairall.core.ids import new_id
from repairall.core.logging import get_logger
from repairall.guide.sources import PlanSource, plan_source_from_settings
from repairall.images.resolver import ImageResolver, build_resolver
from repairall.llm.schemas import DamageReport, RepairGuide

log = get_logger("guide.orchestrator")


class GuideState(str, Enum):
    IDLE = "idle"
    PREPARING = "preparing"
    AWAITING_PLAN = "awaiting_plan"
    RESOLVING_IMAGES = "resolving_images"
    COMPLETE = "complete"
    ERRORED = "errored"


class GuideOrchestrator:
    def __init__(
        self,
        *,
        source: PlanSource,
        resolver: ImageResolver,
        max_photo_bytes: int = 4 * 1024 * 1024,
        min_description_chars: int = 10,
    ):
        self.source = source
        self.resolver = resolver
        self.max_photo_bytes = max_photo_bytes
        self.min_description_chars = min_description_chars

        self.state = GuideState.IDLE
        self.status = "Idle"
        self.error: Optional[str] = None
        self.guide: Optional[RepairGuide] = None
        self.is_generating = False
        self._epoch = 0

    @classmethod
    def from_settings(cls, s: Settings) -> "GuideOrchestrator":
        return cls(
            source=plan_source_from_settings(s),
            resolver=build_resolver(s),
            max_photo_bytes=s.MAX_PHOTO_BYTES,
            min_description_chars=s.MIN_DESCRIPTION_CHARS,
        )

    # ----------------------------
    # input checks
    # ----------------------------
    def validate(self, report: DamageReport) -> None:
        desc = (report.description or "").strip()
        if not desc:
            raise ValidationError("Describe the damage before generating a guide.")
        if len(desc) <= self.min_description_chars:
            raise ValidationError(f"Description must be longer than {self.min_description_chars} characters.")
        if not report.photo:
            raise ValidationError("Attach a photo of the damage.")

    def _check_size(self, report: DamageReport) -> None:
        size = len(report.photo or b"")
        if size > self.max_photo_bytes:
            raise FileTooLarge(size, self.max_photo_bytes)

    def _encode_photo(self, report: DamageReport) -> Optional[str]:
        if not report.photo:
            return None
        self._check_size(report)
        return to_data_uri(report.photo, report.photo_mime or "image/jpeg")

    # ----------------------------
    # state helpers
    # ----------------------------
    def _stale(self, epoch: int) -> bool:
        return epoch != self._epoch

    def _enter(self, state: GuideState, gen_id: str) -> None:
        log.info(f"{gen_id}: {self.state.value} -> {state.value}")
        self.state = state

    def _reporter(self, epoch: int, on_progress: Optional[Callable[[str], None]]) -> Callable[[str], None]:
        def emit(message: str) -> None:
            if self._stale(epoch):
                return
            self.status = message
            if on_progress:
                on_progress(message)
        return emit

    def reset(self) -> None:
        self._epoch += 1
        self.state = GuideState.IDLE
        self.status = "Idle"
        self.error = None
        self.guide = None
        self.is_generating = False

    # ----------------------------
    # generation
    # ----------------------------
    async def generate(
        self,
        report: DamageReport,
        on_progress: Optional[Callable[[str], None]] = None,
    ) -> Optional[RepairGuide]:
        """
        Run one generation. Returns the guide, or None when a generation is
        already in flight or this one was reset before it finished.
        Raises ValidationError for bad input and TransportError / FormatError
        when the plan cannot be obtained.
        """
        if self.is_generating:
            log.warning("Generation already in flight; ignoring submission")
            return None

        self.validate(report)

        epoch = self._epoch
        gen_id = new_id("gen")
        emit = self._reporter(epoch, on_progress)
        self.is_generating = True
        self.error = None
        self.guide = None

        try:
            self._enter(GuideState.PREPARING, gen_id)
            emit("Preparing request")
            photo_uri = self._encode_photo(report)

            if self.source.live:
                self._enter(GuideState.AWAITING_PLAN, gen_id)
            plan = await self.source.fetch_plan(report.description, photo_uri, emit)
            if self._stale(epoch):
                log.info(f"{gen_id}: reset while planning; dropping plan")
                return None

            if self.source.live:
                self._enter(GuideState.RESOLVING_IMAGES, gen_id)
            steps = await self.resolver.illustrate(plan.steps, photo_uri=photo_uri, on_progress=emit)
            if self._stale(epoch):
                log.info(f"{gen_id}: reset while resolving images; dropping guide")
                return None

            guide = RepairGuide(title=plan.title, safety=plan.safety, steps=steps)
            self.guide = guide
            self._enter(GuideState.COMPLETE, gen_id)
            emit("Guide ready")
            return guide

        except GuideError as e:
            if self._stale(epoch):
                log.info(f"{gen_id}: reset before failure surfaced: {e}")
                return None
            log.error(f"{gen_id}: generation failed: {type(e).__name__}: {e}")
            self._enter(GuideState.ERRORED, gen_id)
            self.error = str(e)
            self.status = "Generation failed"
            raise

        finally:
            if not self._stale(epoch):
                self.is_generating = False

    def snapshot(self) -> dict:
        return {
            "state": self.state.value,
            "status": self.status,
            "error": self.error,
            "is_generating": self.is_generating,
            "guide": self.guide.model_dump(exclude_none=True) if self.guide else None,
        }
