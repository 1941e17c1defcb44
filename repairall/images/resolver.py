"""
Per-step image resolution.
What it does:
- Tries an ordered list of ImageProviders for one step
- Time-boxes each provider and isolates its failures
- Falls through to the synthetic placeholder, which always answers
- Resolves every step of a plan concurrently, keeping plan order

And, the main purpose:
Best-effort illustrations that never abort or delay a guide's availability.
"""


import asyncio
from dataclasses import dataclass
from typing import Callable, List, Optional

from repairall.core.datauri import to_data_uri
from repairall.core.logging import get_logger
from repairall.images.keywords import keyword_query
from repairall.images.placeholder import build_placeholder_image
from repairall.images.stock import StockPhotoClient
from repairall.llm.prompts import build_step_image_request
from repairall.llm.router import GeminiClient
from repairall.llm.schemas import IllustratedStep, PlanStep

log = get_logger("images.resolver")


@dataclass(frozen=True)
class ImageRequest:
    step: PlanStep
    index: int
    photo_uri: Optional[str] = None


class ImageProvider:
    name = "provider"

    async def fetch(self, req: ImageRequest) -> Optional[str]:
        raise NotImplementedError


class GenerativeImageProvider(ImageProvider):
    name = "generative"

    def __init__(self, client: GeminiClient):
        self.client = client

    async def fetch(self, req: ImageRequest) -> Optional[str]:
        payload = build_step_image_request(req.step.title, req.step.description, req.photo_uri)
        mime, data = await self.client.image(payload)
        return f"data:{mime};base64,{data}"


class KeywordSearchProvider(ImageProvider):
    name = "keyword_search"

    def __init__(self, client: StockPhotoClient):
        self.client = client

    async def fetch(self, req: ImageRequest) -> Optional[str]:
        q = keyword_query(req.step.title, req.step.tools)
        if not q:
            return None
        body, content_type = await self.client.fetch(q, req.index)
        if not body:
            return None
        return to_data_uri(body, content_type)


class PlaceholderProvider(ImageProvider):
    name = "placeholder"

    async def fetch(self, req: ImageRequest) -> Optional[str]:
        return build_placeholder_image(req.index)


class ImageResolver:
    def __init__(self, providers: List[ImageProvider], *, timeout: float = 8.0):
        self.providers = list(providers)
        self.timeout = timeout
        self.terminal = PlaceholderProvider()

    async def _attempt(self, provider: ImageProvider, req: ImageRequest) -> Optional[str]:
        try:
            return await asyncio.wait_for(provider.fetch(req), timeout=self.timeout)
        except asyncio.TimeoutError:
            log.warning(f"{provider.name} timed out after {self.timeout:.0f}s for step {req.index + 1}")
        except Exception as e:
            log.warning(f"{provider.name} failed for step {req.index + 1}: {type(e).__name__}: {e}")
        return None

    async def resolve(self, req: ImageRequest) -> str:
        for provider in self.providers:
            image = await self._attempt(provider, req)
            if image:
                log.info(f"Step {req.index + 1}: image from {provider.name}")
                return image
        log.warning(f"Using placeholder for step {req.index + 1}")
        return await self.terminal.fetch(req)

    async def illustrate(
        self,
        steps: List[PlanStep],
        *,
        photo_uri: Optional[str] = None,
        on_progress: Optional[Callable[[str], None]] = None,
    ) -> List[IllustratedStep]:
        async def one(index: int, step: PlanStep) -> IllustratedStep:
            if on_progress:
                on_progress(f"Fetching image for step {index + 1}")
            image = await self.resolve(ImageRequest(step=step, index=index, photo_uri=photo_uri))
            return IllustratedStep(**step.model_dump(), image=image)

        # gather keeps submission order, not completion order
        return list(await asyncio.gather(*(one(i, s) for i, s in enumerate(steps))))


def build_resolver(s, *, gemini: Optional[GeminiClient] = None, stock: Optional[StockPhotoClient] = None) -> ImageResolver:
    providers: List[ImageProvider] = []
    if s.model_ready and s.ENABLE_GENERATIVE_IMAGES:
        providers.append(GenerativeImageProvider(gemini or GeminiClient.from_settings(s)))
    if s.image_search_ready:
        providers.append(KeywordSearchProvider(stock or StockPhotoClient.from_settings(s)))
    return ImageResolver(providers, timeout=s.IMAGE_TIMEOUT_SECONDS)
