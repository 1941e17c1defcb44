import uuid

def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"

"""
ID generation utilities & it provides:
- Generation IDs (one per guide request)
- Session IDs

The main purpose:
Consistent identifiers to correlate log lines of one generation.
"""
