import pytest

from repairall.core.errors import EmptyResponse, FormatError, MalformedPlan
from repairall.llm.json_parse import _strip_code_fences, parse_plan

from conftest import PLAN

# ---------------------------------------------------------------------------
# Fence handling
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("fence", ["```json\n{body}\n```", "```\n{body}\n```", "  ```JSON {body}```  "])
def test_fenced_plan_matches_unfenced(plan_json, fence):
    fenced = fence.replace("{body}", plan_json)
    assert parse_plan(fenced) == parse_plan(plan_json)


def test_strip_code_fences_leaves_plain_text_alone():
    assert _strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


def test_parse_plan_keeps_step_order_and_optional_fields(plan_json):
    plan = parse_plan(plan_json)
    assert [s.title for s in plan.steps] == [s["title"] for s in PLAN["steps"]]
    assert plan.steps[1].tools == ["Suction handle", "Opening pick"]
    assert plan.steps[2].tools is None
    assert plan.steps[2].caution is None


# ---------------------------------------------------------------------------
# Rejections
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("text", ["", "   \n\t", None])
def test_blank_text_is_empty_response(text):
    with pytest.raises(EmptyResponse) as exc:
        parse_plan(text)
    assert isinstance(exc.value, FormatError)


def test_malformed_json_inside_fence_keeps_raw_text():
    raw = '```json\n{"title": "Broken", "steps": [\n```'
    with pytest.raises(MalformedPlan) as exc:
        parse_plan(raw)
    assert isinstance(exc.value, FormatError)
    assert exc.value.raw_text == raw
    assert exc.value.violation.startswith("invalid JSON")


def test_schema_violation_reports_first_problem():
    raw = '{"title": "No step title", "steps": [{"description": "missing title"}]}'
    with pytest.raises(MalformedPlan) as exc:
        parse_plan(raw)
    assert exc.value.violation.startswith("steps.0.title")
    assert exc.value.raw_text == raw


def test_json_array_is_not_a_plan():
    with pytest.raises(MalformedPlan):
        parse_plan("[1, 2, 3]")
