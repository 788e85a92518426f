"""
Client for the hosted translation API.

    POST {base}/api/v1/translate
    Authorization: Bearer <secret>
    {"text": ..., "input_language_code": ..., "output_language_code": ...}
    → {"translated_text": ...}

Every failure (transport, HTTP status, body shape) is raised as
TranslationError; callers decide how to report it.
"""

from __future__ import annotations

import time
from collections import deque

import httpx

from translation_area.config import Settings

# Metrics
_metrics = {
    "translate_times": deque(maxlen=100),
    "failures": 0,
}


def get_metrics() -> dict:
    translate_times = list(_metrics["translate_times"])
    return {
        "avg_translate_time_ms": (
            sum(translate_times) / len(translate_times) * 1000 if translate_times else 0
        ),
        "sample_count": len(translate_times),
        "failure_count": _metrics["failures"],
    }


class TranslationError(Exception):
    """The translation API call did not produce a translated text."""


class TranslationClient:
    """Async client for the translation endpoint."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._client = client or httpx.AsyncClient(timeout=settings.timeout_sec)

    async def translate(
        self, text: str, input_code: str | None, output_code: str | None
    ) -> str:
        payload = {
            "text": text,
            "input_language_code": input_code,
            "output_language_code": output_code,
        }
        headers = {
            "Authorization": f"Bearer {self.settings.api_secret}",
            "Content-Type": "application/json",
        }

        start = time.time()
        try:
            response = await self._client.post(
                self.settings.translate_url, json=payload, headers=headers
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            _metrics["failures"] += 1
            raise TranslationError(f"HTTP {e.response.status_code} from translation API") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            _metrics["failures"] += 1
            raise TranslationError(f"Request failed: {e}") from e
        except ValueError as e:
            _metrics["failures"] += 1
            raise TranslationError("Response is not valid JSON") from e

        translated = data.get("translated_text") if isinstance(data, dict) else None
        if not isinstance(translated, str):
            _metrics["failures"] += 1
            raise TranslationError("Response has no translated_text")

        _metrics["translate_times"].append(time.time() - start)
        return translated

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> TranslationClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
