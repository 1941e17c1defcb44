"""
Prompt builders for the generative endpoints.
What it builds:
- The plan request (inline photo part + strict JSON instruction)
- The per-step image request (inline photo part + photo instruction)

Main purpose:
Turn a damage report into a generateContent payload. No side effects.
"""


from typing import Optional

from repairall.core.datauri import split_data_uri


PLAN_INSTRUCTION = """You are a meticulous repair technician. Analyze the user's damage report and optional photo.

Respond with strict JSON ONLY (no markdown, no code fences) matching exactly this schema:
{
  "title": "string",
  "safety": "optional string",
  "steps": [
    {
      "title": "string",
      "description": "string",
      "caution": "optional string",
      "tools": ["string"]
    }
  ]
}

Rules:
- Steps should be concise instructions tailored to household and hardware repairs.
- Keep steps in the order they must be performed.
- List the most important tool first in "tools".
- When unsure, make safe assumptions and mention them in the description.

User report: {description}
"""


STEP_IMAGE_INSTRUCTION = (
    "Generate an instructional product photo showing the result of this step. "
    "Keep the tool layout realistic. Step title: {title}. Step details: {description}."
)


def inline_image_part(photo_uri: str) -> dict:
    mime, data = split_data_uri(photo_uri)
    return {"inlineData": {"mimeType": mime, "data": data}}


def _user_payload(parts: list) -> dict:
    return {"contents": [{"role": "user", "parts": parts}]}


def build_plan_request(description: str, photo_uri: Optional[str] = None) -> dict:
    parts = []
    if photo_uri:
        parts.append(inline_image_part(photo_uri))
    # str.replace keeps the JSON braces of the schema intact
    parts.append({"text": PLAN_INSTRUCTION.replace("{description}", description.strip())})
    return _user_payload(parts)


def build_step_image_request(title: str, description: str, photo_uri: Optional[str] = None) -> dict:
    parts = []
    if photo_uri:
        parts.append(inline_image_part(photo_uri))
    parts.append({"text": STEP_IMAGE_INSTRUCTION.format(title=title, description=description)})
    return _user_payload(parts)
