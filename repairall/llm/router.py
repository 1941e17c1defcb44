"""
Gemini REST wrapper and it does:
- Sends generateContent payloads to the plan and image models
- Turns non-2xx statuses and network failures into TransportError
- Pulls the plan text / inline image out of the candidates

Main purpose:
Central interface for all model calls. No retries: a failed call is
reported once and the caller decides what happens next.
"""


from typing import Optional

import httpx

from repairall.core.config import Settings
from repairall.core.errors import EmptyResponse, TransportError
from repairall.core.logging import get_logger, safe_snippet

log = get_logger("llm.router")


class GeminiClient:
    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        plan_model: str,
        image_model: str,
        plan_timeout: float = 60.0,
        image_timeout: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.plan_model = plan_model
        self.image_model = image_model
        self.plan_timeout = plan_timeout
        self.image_timeout = image_timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, s: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "GeminiClient":
        return cls(
            api_key=s.GEMINI_API_KEY,
            base_url=s.GEMINI_BASE_URL,
            plan_model=s.PLAN_MODEL,
            image_model=s.IMAGE_MODEL,
            plan_timeout=s.PLAN_TIMEOUT_SECONDS,
            image_timeout=s.IMAGE_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def generate_content(self, model: str, payload: dict, *, timeout: float) -> dict:
        url = f"{self.base_url}/{model}:generateContent"
        t = httpx.Timeout(timeout, connect=min(timeout, 10.0))
        try:
            async with httpx.AsyncClient(timeout=t, transport=self.transport) as client:
                r = await client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            raise TransportError(f"{model} request failed: {type(e).__name__}: {e}") from e

        if r.status_code >= 400:
            log.error(f"{model} error {r.status_code}: {safe_snippet(r.text)}")
            raise TransportError(f"{model} request failed ({r.status_code})", status_code=r.status_code, body=r.text)

        try:
            return r.json()
        except ValueError as e:
            raise TransportError(f"{model} returned a non-JSON body", status_code=r.status_code, body=r.text) from e

    async def plan_text(self, payload: dict) -> str:
        data = await self.generate_content(self.plan_model, payload, timeout=self.plan_timeout)
        for part in _candidate_parts(data):
            text = part.get("text") if isinstance(part, dict) else None
            if isinstance(text, str) and text.strip():
                return text
        raise EmptyResponse("Gemini response did not include plan text.", raw_text=safe_snippet(str(data)))

    async def image(self, payload: dict) -> tuple[str, str]:
        """Returns (mime_type, base64_data) of the first inline image part."""
        data = await self.generate_content(self.image_model, payload, timeout=self.image_timeout)
        for part in _candidate_parts(data):
            inline = part.get("inlineData") if isinstance(part, dict) else None
            if isinstance(inline, dict) and inline.get("data"):
                return inline.get("mimeType") or "image/png", inline["data"]
        raise EmptyResponse("Image response missing inline data")


def _candidate_parts(data: dict) -> list:
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return []
    return parts if isinstance(parts, list) else []
