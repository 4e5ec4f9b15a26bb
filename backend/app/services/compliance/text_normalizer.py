"""Sanitizing and bounding of user-supplied document text."""

import re

from app.services.compliance.constants import MODEL_CONTENT_LIMIT, TRUNCATION_MARKER

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_LINE_SEPARATORS = re.compile("[\u2028\u2029]")
_LINE_ENDINGS = re.compile(r"\r\n?")


def normalize(raw: str) -> str:
    """Strip control characters and unify line endings.

    Unicode line/paragraph separators become a single space, ``\\r\\n`` and
    bare ``\\r`` become ``\\n``. Tabs and line feeds are kept.
    """
    text = _LINE_ENDINGS.sub("\n", raw)
    text = _CONTROL_CHARS.sub("", text)
    text = _LINE_SEPARATORS.sub(" ", text)
    return text.strip()


def truncate_for_model(text: str, limit: int = MODEL_CONTENT_LIMIT) -> str:
    """Cut *text* to *limit* characters, appending the truncation marker if cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER
