"""Abstract base classes for pluggable backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import numpy as np

from translation_area.backends.types import (
    ASRResult,
    ASRSegment,
    RecognitionError,
    RecognitionEvent,
)

if TYPE_CHECKING:
    from translation_area.audio import DestinationStream

ResultCallback = Callable[[RecognitionEvent], None]
ErrorCallback = Callable[[RecognitionError], None]
Unsubscribe = Callable[[], None]


class ASRBackend(ABC):
    """Abstract interface for automatic speech recognition backends."""

    @abstractmethod
    def load_model(self) -> None:
        """Load or download the model."""

    @abstractmethod
    def warmup(self) -> None:
        """Run a dummy inference to prime the model."""

    @abstractmethod
    def transcribe(
        self,
        audio: np.ndarray,
        *,
        language: str | None = None,
    ) -> ASRResult:
        """Transcribe audio to text.

        Args:
            audio: Float32 mono audio samples at 16kHz.
            language: ISO 639-1 language hint (None for auto-detect).

        Returns:
            ASRResult with segments and detected language.
        """

    def post_process(self, segments: list[ASRSegment]) -> list[ASRSegment]:
        """Backend-specific post-processing (e.g. hallucination filtering).

        Default implementation: no-op.
        """
        return segments

    def supports_language(self, lang_code: str) -> bool:  # noqa: ARG002
        """Check if this backend supports a given language code."""
        return True


class SpeechRecognizer(ABC):
    """A speech recognition facility bound to one audio output.

    Mirrors the browser facility: set ``lang`` and ``continuous``, subscribe
    for results and errors, then ``start()``. ``stop()`` ends recognition.
    """

    def __init__(self) -> None:
        self.lang: str = "en"
        self.continuous: bool = False
        self._result_callbacks: list[ResultCallback] = []
        self._error_callbacks: list[ErrorCallback] = []

    @abstractmethod
    def start(self) -> None:
        """Begin recognizing audio from the bound output."""

    @abstractmethod
    def stop(self) -> None:
        """Stop recognizing. No events are delivered afterwards."""

    def subscribe(self, on_result: ResultCallback, on_error: ErrorCallback) -> Unsubscribe:
        """Register event callbacks. Returns a callable that removes them."""
        self._result_callbacks.append(on_result)
        self._error_callbacks.append(on_error)

        def unsubscribe() -> None:
            if on_result in self._result_callbacks:
                self._result_callbacks.remove(on_result)
            if on_error in self._error_callbacks:
                self._error_callbacks.remove(on_error)

        return unsubscribe

    def _emit_result(self, event: RecognitionEvent) -> None:
        for callback in list(self._result_callbacks):
            callback(event)

    def _emit_error(self, error: RecognitionError) -> None:
        for callback in list(self._error_callbacks):
            callback(error)


# Builds a recognizer reading from an audio context destination
RecognizerFactory = Callable[["DestinationStream"], SpeechRecognizer]


class CallStore(ABC):
    """Read access to per-call configuration records."""

    @abstractmethod
    async def get_call(self, call_id: str) -> dict[str, Any] | None:
        """Fetch the call record, or None if it does not exist.

        Store and network failures propagate as exceptions.
        """
