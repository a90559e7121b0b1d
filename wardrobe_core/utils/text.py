# =============================================================================
# wardrobe_core/utils/text.py
# Display helpers for analysis labels
# =============================================================================

import re
from typing import Optional

_SEPARATORS = re.compile(r"[_-]")
_WORD_START = re.compile(r"\b\w")


def format_label(text: Optional[str]) -> str:
    """
    Convert a snake_case or kebab-case label to Title Case.

    Example: "business_casual" -> "Business Casual"
    """
    if not text:
        return ""
    spaced = _SEPARATORS.sub(" ", text)
    return _WORD_START.sub(lambda m: m.group(0).upper(), spaced)
