"""Pytest configuration and fixtures."""

import pytest

from tests.fakes import CountingAudioContext, FakeCallStore, RecognizerFactory
from translation_area.audio import AudioTrack, MediaStream
from translation_area.config import Settings


@pytest.fixture
def settings():
    return Settings(api_base_url="https://translate.test", api_secret="test-secret")


@pytest.fixture
def recognizer_factory():
    return RecognizerFactory()


@pytest.fixture
def audio_contexts():
    """Track every CountingAudioContext created during the test."""
    CountingAudioContext.instances = []
    yield CountingAudioContext.instances
    CountingAudioContext.instances = []


@pytest.fixture
def audio_stream():
    """A remote stream with one mono 16kHz audio track."""
    return MediaStream([AudioTrack(sample_rate=16000, channels=1)])


@pytest.fixture
def call_store():
    return FakeCallStore(
        {
            "abc123": {"inputLanguage": "Kannada", "outputLanguage": "Malayalam"},
            "hin-eng": {"inputLanguage": "Hindi", "outputLanguage": "English"},
        }
    )
