import re

TAG_RE = re.compile(r"<[^>]*>")
CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def sanitize_string(v):
    """Strip markup and control characters from user-supplied text; non-strings pass through."""
    if not isinstance(v, str):
        return v
    v = TAG_RE.sub("", v)
    v = CONTROL_RE.sub("", v)
    return v.strip()
