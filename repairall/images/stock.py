"""
Stock photo search (Pexels) and it does:
- Shapes a comma keyword list into a device-aware search query
- Searches Pexels and downloads one landscape photo per step index
- Builds the SVG placeholder served when the upstream fails

Main purpose:
Back the keyword image tier and the /fetch-image proxy route.
"""

from __future__ import annotations

import re
from typing import Optional

import httpx

from repairall.core.config import Settings
from repairall.core.errors import TransportError
from repairall.core.logging import get_logger

log = get_logger("images.stock")

_LAPTOP_RE = re.compile(r"macbook|laptop|computer|screen|display|keyboard|trackpad|battery|logic|board", re.I)
_PHONE_RE = re.compile(r"phone|iphone|android|mobile|smartphone|cell", re.I)

SVG_COLORS = ["#2B4C7E", "#E8642C", "#4A5568", "#D4552A", "#6B6B6B"]


class StockPhotoError(TransportError):
    pass


def build_search_query(q: str) -> str:
    keywords = [re.sub(r"[^a-z0-9\s]", "", k.strip().lower()) for k in (q or "").split(",")]
    joined = " ".join([k for k in keywords if k][:3])

    if _PHONE_RE.search(joined):
        return f"{joined} smartphone mobile phone repair technician"
    if _LAPTOP_RE.search(joined):
        return f"{joined} laptop computer repair technician"
    return f"{joined} repair technology electronics tools"


def svg_placeholder(index: int) -> str:
    color = SVG_COLORS[index % len(SVG_COLORS)]
    return f"""<svg width="800" height="480" xmlns="http://www.w3.org/2000/svg">
  <defs>
    <linearGradient id="g{index}" x1="0%" y1="0%" x2="100%" y2="100%">
      <stop offset="0%" style="stop-color:{color};stop-opacity:1" />
      <stop offset="100%" style="stop-color:{color}dd;stop-opacity:1" />
    </linearGradient>
  </defs>
  <rect width="800" height="480" fill="url(#g{index})"/>
</svg>"""


class StockPhotoClient:
    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.pexels.com/v1",
        timeout: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, s: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "StockPhotoClient":
        return cls(
            api_key=s.PEXELS_API_KEY,
            base_url=s.PEXELS_BASE_URL,
            timeout=s.IMAGE_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def fetch(self, q: str, index: int = 0) -> tuple[bytes, str]:
        """
        Returns (image_bytes, content_type) for the photo picked by index.
        Raises StockPhotoError when the search or the download fails.
        """
        if not self.api_key:
            raise StockPhotoError("PEXELS_API_KEY is not configured")

        query = build_search_query(q)
        log.info(f"Step {index}: searching {query!r}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport, follow_redirects=True) as client:
                r = await client.get(
                    f"{self.base_url}/search",
                    params={"query": query, "per_page": 5, "orientation": "landscape"},
                    headers={"Authorization": self.api_key},
                )
                if r.status_code >= 400:
                    raise StockPhotoError(f"Pexels search error {r.status_code}", status_code=r.status_code, body=r.text)

                photos = (r.json() or {}).get("photos") or []
                if not photos:
                    raise StockPhotoError(f"No photos found for {query!r}")

                photo = photos[index % len(photos)]
                image_url = ((photo.get("src") or {}).get("large")) or ""
                if not image_url:
                    raise StockPhotoError("Pexels photo has no src.large")

                img = await client.get(image_url)
                if img.status_code >= 400:
                    raise StockPhotoError(f"Photo download error {img.status_code}", status_code=img.status_code)
        except httpx.HTTPError as e:
            raise StockPhotoError(f"Pexels request failed: {type(e).__name__}: {e}") from e
        except ValueError as e:
            raise StockPhotoError(f"Pexels returned a non-JSON body: {e}") from e

        content_type = img.headers.get("content-type", "").split(";")[0].strip() or "image/jpeg"
        log.info(f"Step {index}: fetched {len(img.content) / 1024:.1f}KB by {photo.get('photographer', 'unknown')}")
        return img.content, content_type
