"""
Recognition bridge between a remote audio stream and a speech recognizer.

State machine:

    IDLE --start(stream with audio tracks)--> ACTIVE
    ACTIVE --stop() / start(new stream)--> IDLE (--> ACTIVE)

An ACTIVE session owns an AudioContext (routing the remote tracks into one
channel) and a started recognizer reading from the context's destination.
Both are released on every way out of ACTIVE: the context is closed in a
``finally`` even if stopping the recognizer fails. At most one session exists
per bridge; starting a new one tears the old one down first.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from translation_area.audio import AudioContext, MediaStream
from translation_area.backends.base import RecognizerFactory, SpeechRecognizer, Unsubscribe
from translation_area.backends.types import RecognitionError, RecognitionEvent
from translation_area.languages import DEFAULT_LANGUAGE_CODE


class BridgeState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class AudioSession:
    """Resources held while recognition is running for one stream."""

    stream: MediaStream
    context: AudioContext
    recognizer: SpeechRecognizer
    unsubscribe: Unsubscribe
    language_code: str


class RecognitionBridge:
    """Runs at most one recognition session and relays its transcripts."""

    def __init__(
        self,
        recognizer_factory: RecognizerFactory,
        on_transcript: Callable[[str], None],
        *,
        audio_context_factory: Callable[[], AudioContext] = AudioContext,
        default_language_code: str = DEFAULT_LANGUAGE_CODE,
    ):
        self._recognizer_factory = recognizer_factory
        self._on_transcript = on_transcript
        self._audio_context_factory = audio_context_factory
        self._default_language_code = default_language_code
        self._session: AudioSession | None = None

    @property
    def state(self) -> BridgeState:
        return BridgeState.ACTIVE if self._session is not None else BridgeState.IDLE

    @property
    def session(self) -> AudioSession | None:
        return self._session

    def start(self, stream: MediaStream | None, language_code: str | None) -> bool:
        """Start recognizing ``stream``. Returns False if it has no audio.

        Any running session is stopped first. If setup fails, whatever was
        acquired is released and the error is raised.
        """
        self.stop()

        if stream is None:
            return False
        tracks = stream.get_audio_tracks()
        if not tracks:
            return False

        lang = language_code or self._default_language_code
        context = self._audio_context_factory()
        recognizer: SpeechRecognizer | None = None
        unsubscribe: Unsubscribe | None = None
        try:
            source = context.create_media_stream_source(MediaStream(tracks))
            destination = context.create_media_stream_destination()
            source.connect(destination)

            recognizer = self._recognizer_factory(destination.stream)
            recognizer.lang = lang
            recognizer.continuous = True
            unsubscribe = recognizer.subscribe(self._handle_result, self._handle_error)
            recognizer.start()
        except Exception:
            try:
                if unsubscribe is not None:
                    unsubscribe()
            finally:
                context.close()
            raise

        self._session = AudioSession(
            stream=stream,
            context=context,
            recognizer=recognizer,
            unsubscribe=unsubscribe,
            language_code=lang,
        )
        print(f"Recognition started: lang={lang}, tracks={len(tracks)}")
        return True

    def stop(self) -> None:
        """Tear down the active session, if any. Safe to call repeatedly."""
        session = self._session
        if session is None:
            return
        self._session = None
        try:
            try:
                session.unsubscribe()
            except Exception as e:
                print(f"Error unsubscribing from recognition: {e}")
            try:
                session.recognizer.stop()
            except Exception as e:
                print(f"Error stopping recognition: {e}")
        finally:
            session.context.close()
        print("Recognition stopped")

    def _handle_result(self, event: RecognitionEvent) -> None:
        if self._session is None or not event.results:
            return
        alternatives = event.results[-1].alternatives
        if not alternatives:
            return
        transcript = alternatives[0].transcript
        if transcript.strip():
            self._on_transcript(transcript)

    def _handle_error(self, error: RecognitionError) -> None:
        print(f"Speech recognition error: {error.error} {error.message}".rstrip())
