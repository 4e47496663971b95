# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

import re
from uuid import UUID

_WHITESPACE = re.compile(r"\s+")


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Handles both string and UUID objects, ensuring consistent string output.

    Example:
        case_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        case_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


# =============================================================================
# Text Utilities
# =============================================================================

def collapse_whitespace(text: str) -> str:
    """Replace every whitespace run with a single space and strip the ends."""
    return _WHITESPACE.sub(" ", text).strip()


def normalize_search_text(text: str | None) -> str:
    """
    Normalize a name for search comparison.

    Removes all whitespace (including full-width spaces) and lower-cases,
    so "山田 太郎" and "山田太郎" compare equal.
    """
    if not text:
        return ""
    return _WHITESPACE.sub("", text).lower()
