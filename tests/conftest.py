import json

import httpx
import pytest

from repairall.core.config import Settings


PLAN = {
    "title": "Replace cracked phone screen",
    "safety": "Power the phone off and discharge the battery below 25%.",
    "steps": [
        {"title": "Remove the pentalobe screws", "description": "Unscrew both bottom screws.", "tools": ["P2 pentalobe driver"]},
        {"title": "Lift the display", "description": "Use a suction handle and opening pick.", "tools": ["Suction handle", "Opening pick"], "caution": "Do not pry near the flex cables."},
        {"title": "Install the new display", "description": "Reconnect the flex cables and press the panel home."},
    ],
}


def make_settings(**overrides) -> Settings:
    base = dict(
        GEMINI_API_KEY="",
        PEXELS_API_KEY="",
        AUTH0_DOMAIN="",
        AUTH0_CLIENT_ID="",
        ENABLE_GENERATIVE_IMAGES=True,
    )
    base.update(overrides)
    return Settings(_env_file=None, **base)


def gemini_text_response(text: str, status: int = 200) -> httpx.Response:
    return httpx.Response(status, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


@pytest.fixture
def plan_json() -> str:
    return json.dumps(PLAN)


@pytest.fixture
def offline_settings() -> Settings:
    return make_settings()
