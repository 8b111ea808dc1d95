from __future__ import annotations

from typing import Any

from slugify import slugify as _transliterate

DEFAULT_SEPARATOR = "-"


def slugify(value: Any, separator: str = DEFAULT_SEPARATOR) -> str:
    """Normalize a value into a URL-safe slug.

    Accented characters are transliterated to ASCII, everything outside
    ``[a-z0-9]`` collapses into a single ``separator`` and the result is
    trimmed. ``None`` and blank input give an empty string.
    """
    if value is None:
        return ""
    text = str(value).strip()
    if not text:
        return ""
    return _transliterate(text, separator=separator, lowercase=True)
