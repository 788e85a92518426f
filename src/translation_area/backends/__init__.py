"""Pluggable backend factory functions.

Each factory returns a singleton backend based on environment variables.
Only the selected backend is imported (lazy), so missing dependencies for other
backends don't cause ImportError.

Environment variables:
    ASR_BACKEND: "whisper" (default)
    RECOGNIZER_BACKEND: "streaming" (default)
    CALL_STORE_BACKEND: "firestore" (default)
    CALLS_COLLECTION: Collection holding call records (default: "calls")
    FIRESTORE_PROJECT: Optional Google Cloud project for the Firestore client
"""

from __future__ import annotations

import os
from functools import lru_cache

from translation_area.backends.base import ASRBackend, CallStore, RecognizerFactory


@lru_cache(maxsize=1)
def get_asr_backend() -> ASRBackend:
    """Get the configured ASR backend singleton."""
    name = os.getenv("ASR_BACKEND", "whisper")
    if name == "whisper":
        from translation_area.backends.asr.whisper import WhisperASRBackend

        return WhisperASRBackend()
    raise ValueError(f"Unknown ASR backend: {name}")


@lru_cache(maxsize=1)
def get_recognizer_factory() -> RecognizerFactory:
    """Get a factory that builds a recognizer for an audio destination."""
    name = os.getenv("RECOGNIZER_BACKEND", "streaming")
    if name == "streaming":
        from translation_area.backends.recognition.streaming import StreamingRecognizer

        def create_recognizer(audio):
            return StreamingRecognizer(audio, get_asr_backend())

        return create_recognizer
    raise ValueError(f"Unknown recognizer backend: {name}")


@lru_cache(maxsize=1)
def get_call_store() -> CallStore:
    """Get the configured call store singleton."""
    name = os.getenv("CALL_STORE_BACKEND", "firestore")
    if name == "firestore":
        from translation_area.backends.store.firestore import FirestoreCallStore

        return FirestoreCallStore(
            collection=os.getenv("CALLS_COLLECTION", "calls"),
            project=os.getenv("FIRESTORE_PROJECT") or None,
        )
    raise ValueError(f"Unknown call store backend: {name}")
