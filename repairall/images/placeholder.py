"""
SYNTHETIC PLACEHOLDER IMAGES

Terminal tier of the image chain. The output depends only on the seed
(the step index), so the same seed always yields the same PNG bytes.

    - hue = (seed * 57) mod 360
    - diagonal gradient hsl(hue, 70%, 18%) -> hsl(hue + 40, 85%, 32%)
    - wordmark + "Image unavailable" caption in 15% white
"""

from __future__ import annotations

import colorsys
import io

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from repairall.core.datauri import to_data_uri

WIDTH = 800
HEIGHT = 480
WORDMARK = "RepairAll"
CAPTION = "Image unavailable"
TEXT_FILL = (255, 255, 255, 38)


def _hsl(hue: float, sat: float, light: float) -> np.ndarray:
    r, g, b = colorsys.hls_to_rgb((hue % 360) / 360.0, light, sat)
    return np.array([r, g, b], dtype=np.float64) * 255.0


def _gradient(hue: int) -> Image.Image:
    start = _hsl(hue, 0.70, 0.18)
    end = _hsl(hue + 40, 0.85, 0.32)

    # projection of each pixel onto the (0,0)->(W,H) diagonal
    xs = np.arange(WIDTH, dtype=np.float64)[None, :]
    ys = np.arange(HEIGHT, dtype=np.float64)[:, None]
    t = (xs * WIDTH + ys * HEIGHT) / float(WIDTH * WIDTH + HEIGHT * HEIGHT)
    t = np.clip(t, 0.0, 1.0)[..., None]

    rgb = start + (end - start) * t
    return Image.fromarray(np.rint(rgb).astype(np.uint8))


def _font(size: int) -> ImageFont.ImageFont:
    return ImageFont.load_default(size=size)


def render_placeholder(seed: int = 0) -> bytes:
    hue = (int(seed) * 57) % 360
    base = _gradient(hue).convert("RGBA")

    overlay = Image.new("RGBA", base.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    draw.text((36, 48), WORDMARK, font=_font(48), fill=TEXT_FILL)
    draw.text((36, 118), CAPTION, font=_font(28), fill=TEXT_FILL)

    out = Image.alpha_composite(base, overlay).convert("RGB")
    buf = io.BytesIO()
    out.save(buf, format="PNG")
    return buf.getvalue()


def build_placeholder_image(seed: int = 0) -> str:
    return to_data_uri(render_placeholder(seed), "image/png")
