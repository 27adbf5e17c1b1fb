"""Field checks shared by the entity services.

Request bodies arrive as parsed JSON, so any field may hold a list, an
object or a number; every check here rejects non-strings with a
``ValidationError`` before the value reaches a set lookup or a column.
"""

from __future__ import annotations

from ideaforge.core.exceptions import ValidationError

MAX_CHANGELOG_LENGTH = 500
MAX_EFFORT_LENGTH = 50


def check_choice(value, allowed, field: str, *, sort: bool = True):
    """Accept ``None`` or one of ``allowed``."""
    if value is None:
        return
    if not isinstance(value, str) or value not in allowed:
        options = sorted(allowed) if sort else list(allowed)
        raise ValidationError(f"{field} must be one of: {', '.join(options)}")


def optional_text(data: dict, field: str, max_length: int | None = None):
    """Stripped string value of ``field``, or ``None`` when absent or blank."""
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    value = value.strip()
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return value or None


def changelog_from(data: dict, default: str) -> str:
    return optional_text(data, "changelog", MAX_CHANGELOG_LENGTH) or default
