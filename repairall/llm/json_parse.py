import json
import re

from pydantic import ValidationError as SchemaError

from repairall.core.errors import EmptyResponse, MalformedPlan
from repairall.llm.schemas import RepairPlan

_FENCE_RE = re.compile(r"^```(?:[\w-]+)?\s*([\s\S]*?)\s*```$")


def _strip_code_fences(s: str) -> str:
    s = (s or "").strip()
    # ```json ... ``` or ``` ... ```
    m = _FENCE_RE.match(s)
    if m:
        s = m.group(1)
    return s.strip()


def _first_violation(err: SchemaError) -> str:
    errors = err.errors()
    if not errors:
        return str(err)
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ())) or "<root>"
    return f"{loc}: {first.get('msg', 'invalid')}"


def parse_plan(text: str) -> RepairPlan:
    """
    Extract the repair plan from raw model text and validate it.
    Raises EmptyResponse for blank text and MalformedPlan (with the raw
    text attached) when the body is not JSON or does not match the schema.
    """
    if not (text or "").strip():
        raise EmptyResponse("Model response did not include plan text.")

    candidate = _strip_code_fences(text)
    try:
        raw = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise MalformedPlan(
            "Model returned an unexpected format.",
            raw_text=text,
            violation=f"invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})",
        ) from e

    try:
        return RepairPlan.model_validate(raw)
    except SchemaError as e:
        raise MalformedPlan(
            "Model returned a plan that does not match the expected schema.",
            raw_text=text,
            violation=_first_violation(e),
        ) from e
