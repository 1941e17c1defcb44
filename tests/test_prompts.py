from repairall.core.datauri import split_data_uri, to_data_uri
from repairall.llm.prompts import build_plan_request, build_step_image_request


def test_plan_request_with_photo_has_inline_part_first():
    uri = to_data_uri(b"\x89PNG fake", "image/webp")
    payload = build_plan_request("The hinge snapped off my laptop lid", uri)

    content = payload["contents"][0]
    assert content["role"] == "user"
    inline, text = content["parts"]
    assert inline["inlineData"]["mimeType"] == "image/webp"
    assert inline["inlineData"]["data"] == uri.split(",", 1)[1]
    assert "The hinge snapped off my laptop lid" in text["text"]


def test_plan_request_without_photo_is_text_only():
    payload = build_plan_request("Water stain spreading on drywall ceiling")
    parts = payload["contents"][0]["parts"]
    assert len(parts) == 1
    assert "strict JSON" in parts[0]["text"]
    # the schema braces survive prompt templating
    assert '"steps": [' in parts[0]["text"]


def test_step_image_request_mentions_step():
    payload = build_step_image_request("Patch + clamp", "Press the backing plate into place.")
    text = payload["contents"][0]["parts"][-1]["text"]
    assert "Step title: Patch + clamp." in text
    assert "Press the backing plate into place." in text


def test_split_data_uri_defaults_mime():
    assert split_data_uri("data:;base64,QUJD") == ("image/png", "QUJD")
    assert split_data_uri("data:image/jpeg;base64,QUJD") == ("image/jpeg", "QUJD")
