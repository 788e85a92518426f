"""Whisper ASR backend using faster-whisper (CTranslate2).

Transcribes short utterance buffers for the streaming recognizer. Model
loading is lazy so importing this module never pulls in faster-whisper.
"""

from __future__ import annotations

import os

import numpy as np

from translation_area.backends.base import ASRBackend
from translation_area.backends.types import ASRResult, ASRSegment

ASR_MODEL = os.getenv("ASR_MODEL", "Systran/faster-whisper-small")
ASR_DEVICE = os.getenv("ASR_DEVICE", "cpu")
ASR_COMPUTE_TYPE = os.getenv("ASR_COMPUTE_TYPE", "int8")


class WhisperASRBackend(ASRBackend):
    """faster-whisper ASR backend with hallucination filtering."""

    # Common Whisper outputs on silence or line noise
    _hallucination_phrases: frozenset[str] = frozenset(
        phrase.lower()
        for phrase in [
            "Thank you",
            "Thank you.",
            "Thanks for watching",
            "Thanks for watching!",
            "Thank you for watching",
            "Please subscribe",
            "Subtitles by the Amara.org community",
            "Bye",
            "Bye.",
            "So",
            "Okay",
            "Uh",
            "Um",
            "Hmm",
            "...",
            "…",
            "धन्यवाद",  # Hindi "Thank you", emitted on silence
        ]
    )

    # Languages the translation area can ask for, all supported by Whisper
    _supported_languages: frozenset[str] = frozenset(["en", "hi", "kn", "ml"])

    def __init__(self) -> None:
        self._model = None

    def load_model(self) -> None:
        if self._model is not None:
            return
        from faster_whisper import WhisperModel

        print(f"  Loading WhisperModel: {ASR_MODEL}")
        print(f"  Device: {ASR_DEVICE}, Compute type: {ASR_COMPUTE_TYPE}")
        self._model = WhisperModel(
            ASR_MODEL,
            device=ASR_DEVICE,
            compute_type=ASR_COMPUTE_TYPE,
        )
        print("  WhisperModel loaded")

    def warmup(self) -> None:
        self.load_model()
        silence = np.zeros(16000, dtype=np.float32)
        self.transcribe(silence, language="en")
        print("  ASR warmup complete")

    def transcribe(
        self,
        audio: np.ndarray,
        *,
        language: str | None = None,
    ) -> ASRResult:
        self.load_model()

        whisper_lang = language if language and self.supports_language(language) else None
        if language and whisper_lang is None:
            print(f"  Language {language} not supported, using auto-detect")

        segments, info = self._model.transcribe(
            audio,
            language=whisper_lang,
            beam_size=1,
            vad_filter=True,
            vad_parameters={
                "threshold": 0.35,
                "min_silence_duration_ms": 300,
                "min_speech_duration_ms": 200,
            },
            no_speech_threshold=0.3,
            condition_on_previous_text=False,
        )

        result_segments = []
        for seg in segments:
            text = seg.text.strip()
            if len(text) < 2:
                continue
            result_segments.append(
                ASRSegment(
                    start=seg.start,
                    end=seg.end,
                    text=text,
                    language=whisper_lang or info.language,
                    confidence=float(np.exp(seg.avg_logprob)),
                )
            )

        return ASRResult(
            segments=result_segments,
            detected_language=info.language,
            language_probability=info.language_probability,
        )

    def post_process(self, segments: list[ASRSegment]) -> list[ASRSegment]:
        """Drop segments that look like hallucinations."""
        result = []
        for seg in segments:
            is_hal, reason = self._is_hallucination(seg.text, seg.end - seg.start)
            if is_hal:
                print(f"  SKIP hallucination ({reason}): {seg.text[:50]}")
                continue
            result.append(seg)
        return result

    def supports_language(self, lang_code: str) -> bool:
        return lang_code in self._supported_languages

    @staticmethod
    def _is_hallucination(text: str, duration: float) -> tuple[bool, str]:
        """Check if text is likely a hallucination."""
        if not text or not text.strip():
            return True, "empty"

        text_clean = text.strip()
        text_lower = text_clean.lower()

        if text_lower in WhisperASRBackend._hallucination_phrases:
            return True, "boh_exact"

        if text_lower.rstrip(".,!?…।") in WhisperASRBackend._hallucination_phrases:
            return True, "boh_stripped"

        words = text_clean.split()
        if len(words) > 2 and len({w.lower() for w in words}) == 1:
            return True, "single_word_repeat"

        if duration > 3.0 and len(text_clean) < 6:
            return True, "short_text_long_duration"

        return False, ""
