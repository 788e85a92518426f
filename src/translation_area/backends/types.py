"""Shared data types for backend interfaces."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ASRSegment:
    """A single transcribed segment from ASR."""

    start: float  # seconds relative to input audio start
    end: float
    text: str
    language: str  # ISO 639-1
    confidence: float = 1.0


@dataclass(frozen=True)
class ASRResult:
    """Result from an ASR transcription call."""

    segments: list[ASRSegment] = field(default_factory=list)
    detected_language: str = "unknown"
    language_probability: float = 0.0

    @property
    def text(self) -> str:
        return " ".join(seg.text for seg in self.segments).strip()


@dataclass(frozen=True)
class RecognitionAlternative:
    """One candidate transcript for an utterance."""

    transcript: str
    confidence: float = 1.0


@dataclass(frozen=True)
class RecognitionResult:
    """All candidates for one utterance, best first."""

    alternatives: tuple[RecognitionAlternative, ...]
    is_final: bool = True


@dataclass(frozen=True)
class RecognitionEvent:
    """Result set delivered by a recognizer.

    ``results`` accumulates every utterance of a continuous session;
    ``result_index`` is the first entry that changed in this event.
    """

    result_index: int
    results: tuple[RecognitionResult, ...]


@dataclass(frozen=True)
class RecognitionError:
    """Error descriptor delivered by a recognizer."""

    error: str
    message: str = ""
