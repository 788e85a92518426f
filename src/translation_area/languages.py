"""Language name to code mapping shared by recognition and translation."""

# Display name -> two-letter code used by the recognizer and the translation API
LANGUAGE_CODES = {
    "HINDI": "hi",
    "ENGLISH": "en",
    "KANNADA": "kn",
    "MALAYALAM": "ml",
}

DEFAULT_LANGUAGE_CODE = "en"


def resolve_language_code(name: str | None) -> str | None:
    """Map a language name (any case) to its code, or None if unknown."""
    if not name:
        return None
    return LANGUAGE_CODES.get(name.strip().upper())
