import html
import re

_TAG_RE = re.compile(r"<[^>]*>")


def sanitize_text(value):
    """Drop HTML tags and escape what is left."""
    if not value:
        return ""
    return html.escape(_TAG_RE.sub("", value), quote=True)


def sanitize_payload(payload):
    if not isinstance(payload, dict):
        return {}
    sanitized = {}
    for key, value in payload.items():
        if isinstance(value, str):
            sanitized[key] = sanitize_text(value)
        elif isinstance(value, dict):
            sanitized[key] = sanitize_payload(value)
        else:
            sanitized[key] = value
    return sanitized


def missing_fields(payload, required):
    return [name for name in required if not payload.get(name)]
