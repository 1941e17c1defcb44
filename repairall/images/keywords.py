import re
from typing import Iterable, Optional

STOP_WORDS = {"step", "with", "from", "that", "this"}
CONTEXT_TERMS = ["repair", "tool", "fix", "hardware", "maintenance"]
MAX_KEYWORDS = 4
MAX_TOOLS = 2


def _clean(text: str) -> str:
    return re.sub(r"[^a-z0-9\s]", "", (text or "").lower())


def _dedupe(words: Iterable[str]) -> list[str]:
    seen = set()
    out = []
    for w in words:
        if w and w not in seen:
            seen.add(w)
            out.append(w)
    return out


def extract_keywords(title: str, tools: Optional[list[str]] = None) -> list[str]:
    """
    Search keywords for a step: meaningful title words, then the leading
    tools, then fixed repair context terms. At most MAX_KEYWORDS, in order.
    """
    words = [w for w in _clean(title).split() if len(w) > 3 and w not in STOP_WORDS]
    words += [_clean(t).strip() for t in (tools or [])[:MAX_TOOLS]]
    words += CONTEXT_TERMS
    return _dedupe(words)[:MAX_KEYWORDS]


def keyword_query(title: str, tools: Optional[list[str]] = None) -> str:
    return ",".join(extract_keywords(title, tools))
