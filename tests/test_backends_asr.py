"""Tests for WhisperASRBackend."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import numpy as np

from translation_area.backends.asr.whisper import WhisperASRBackend
from translation_area.backends.types import ASRSegment


def whisper_segment(text, start=0.0, end=1.0, avg_logprob=-0.1):
    return SimpleNamespace(text=text, start=start, end=end, avg_logprob=avg_logprob)


class TestWhisperASRBackendTranscribe:
    """Tests for transcribe with a mocked model."""

    def _make_backend(self, segments, language="en"):
        backend = WhisperASRBackend()
        backend._model = MagicMock()
        info = SimpleNamespace(language=language, language_probability=0.9)
        backend._model.transcribe.return_value = (iter(segments), info)
        return backend

    def test_language_hint_is_passed(self):
        backend = self._make_backend([whisper_segment(" ನಮಸ್ಕಾರ ")], language="kn")
        result = backend.transcribe(np.zeros(16000, dtype=np.float32), language="kn")

        assert backend._model.transcribe.call_args[1]["language"] == "kn"
        assert result.text == "ನಮಸ್ಕಾರ"
        assert result.segments[0].language == "kn"
        assert result.detected_language == "kn"

    def test_unsupported_language_auto_detects(self):
        backend = self._make_backend([whisper_segment("hello")])
        backend.transcribe(np.zeros(16000, dtype=np.float32), language="xx")
        assert backend._model.transcribe.call_args[1]["language"] is None

    def test_short_segments_dropped(self):
        backend = self._make_backend([whisper_segment("a"), whisper_segment("hello there")])
        result = backend.transcribe(np.zeros(16000, dtype=np.float32), language="en")
        assert [s.text for s in result.segments] == ["hello there"]

    def test_confidence_from_logprob(self):
        backend = self._make_backend([whisper_segment("hello", avg_logprob=0.0)])
        result = backend.transcribe(np.zeros(16000, dtype=np.float32), language="en")
        assert result.segments[0].confidence == 1.0


class TestWhisperASRBackendHallucination:
    """Tests for _is_hallucination."""

    def test_empty_text(self):
        assert WhisperASRBackend._is_hallucination("", 1.0) == (True, "empty")

    def test_known_hallucination(self):
        assert WhisperASRBackend._is_hallucination("Thank you.", 0.5) == (True, "boh_exact")

    def test_hallucination_stripped_punct(self):
        is_hal, reason = WhisperASRBackend._is_hallucination("Thanks for watching!!", 0.5)
        assert is_hal is True
        assert reason == "boh_stripped"

    def test_hindi_thanks_on_silence(self):
        is_hal, _ = WhisperASRBackend._is_hallucination("धन्यवाद।", 0.8)
        assert is_hal is True

    def test_normal_text(self):
        assert WhisperASRBackend._is_hallucination("मुझे मदद चाहिए", 2.0) == (False, "")

    def test_single_word_repeat(self):
        is_hal, reason = WhisperASRBackend._is_hallucination("hello hello hello", 1.0)
        assert is_hal is True
        assert reason == "single_word_repeat"

    def test_short_text_long_duration(self):
        is_hal, reason = WhisperASRBackend._is_hallucination("Hi", 5.0)
        assert is_hal is True
        assert reason == "short_text_long_duration"


class TestWhisperASRBackendPostProcess:
    """Tests for post_process."""

    def test_filters_hallucinations(self):
        backend = WhisperASRBackend()
        segments = [
            ASRSegment(start=0.0, end=0.5, text="Thank you.", language="en"),
            ASRSegment(start=1.0, end=2.0, text="Where is the station?", language="en"),
        ]
        result = backend.post_process(segments)
        assert [s.text for s in result] == ["Where is the station?"]

    def test_supports_language(self):
        backend = WhisperASRBackend()
        assert backend.supports_language("ml") is True
        assert backend.supports_language("de") is False
