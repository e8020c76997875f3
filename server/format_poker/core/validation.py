"""Input validation and sanitization utilities."""

import re
import unicodedata

# Control characters to remove
CONTROL_CHAR_PATTERN = re.compile(r"[\x00-\x1f\x7f]")

MULTI_WHITESPACE_PATTERN = re.compile(r"\s+")

MAX_IDENTIFIER_LENGTH = 64


def normalize_single_line(text: str | None) -> str | None:
    """
    Normalize a single-line text field:
    - Normalizing Unicode to NFC form
    - Removing control characters (newlines included)
    - Collapsing whitespace runs and stripping the ends

    Returns None if input is None.
    """
    if text is None:
        return None

    text = unicodedata.normalize("NFC", text)
    text = text.replace("\n", " ").replace("\r", " ").replace("\t", " ")
    text = CONTROL_CHAR_PATTERN.sub("", text)
    text = MULTI_WHITESPACE_PATTERN.sub(" ", text)
    return text.strip()


def is_safe_string(text: str) -> bool:
    """Check that a string carries no control characters or null bytes."""
    if not text:
        return True
    return CONTROL_CHAR_PATTERN.search(text) is None


def is_valid_identifier(value: str | None, max_len: int = MAX_IDENTIFIER_LENGTH) -> bool:
    """Opaque ids (device ids, format ids): non-blank, bounded, printable."""
    if value is None or not value.strip():
        return False
    if len(value) > max_len:
        return False
    return is_safe_string(value)
