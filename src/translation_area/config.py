"""
Runtime settings for the translation area.

Settings are read once from the environment (after loading a local ``.env``
file) and passed explicitly to the objects that need them, so tests can build
a ``Settings`` value directly instead of patching module globals.

Environment variables:
    TRANSLATE_API_BASE_URL: Base URL of the hosted translation API
    TRANSLATE_API_SECRET: Bearer credential for the translation API
    TRANSLATE_TIMEOUT_SEC: Request timeout in seconds (default: 10)
    DEFAULT_LANGUAGE_CODE: Recognition language used before config arrives
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from translation_area.languages import DEFAULT_LANGUAGE_CODE

DEFAULT_API_BASE_URL = "https://gc-translate.onrender.com"


@dataclass(frozen=True)
class Settings:
    """Explicit configuration for one translation area."""

    api_base_url: str = DEFAULT_API_BASE_URL
    api_secret: str = ""
    timeout_sec: float = 10.0
    default_language_code: str = DEFAULT_LANGUAGE_CODE

    @property
    def translate_url(self) -> str:
        return f"{self.api_base_url.rstrip('/')}/api/v1/translate"


def load_settings(env_file: str | None = None) -> Settings:
    """Build settings from the environment, loading ``.env`` first if present."""
    load_dotenv(env_file)
    return Settings(
        api_base_url=os.getenv("TRANSLATE_API_BASE_URL", DEFAULT_API_BASE_URL),
        api_secret=os.getenv("TRANSLATE_API_SECRET", ""),
        timeout_sec=float(os.getenv("TRANSLATE_TIMEOUT_SEC", "10.0")),
        default_language_code=os.getenv("DEFAULT_LANGUAGE_CODE", DEFAULT_LANGUAGE_CODE),
    )
