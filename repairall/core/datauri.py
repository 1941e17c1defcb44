import base64
import re

_HEADER_RE = re.compile(r"data:(.*);base64")


def to_data_uri(data: bytes, mime: str) -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def split_data_uri(uri: str, default_mime: str = "image/png") -> tuple[str, str]:
    """
    Split a base64 data URI into (mime_type, base64_body).
    A header without a recognisable MIME type falls back to default_mime.
    """
    meta, _, data = (uri or "").partition(",")
    m = _HEADER_RE.match(meta)
    mime = m.group(1) if m and m.group(1) else default_mime
    return mime, data
