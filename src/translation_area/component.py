"""
Translation area for one side of a call.

Wires the pipeline together and keeps the view state:

    call config → language codes
    remote audio stream → RecognitionBridge → transcript
    transcript → TranslationClient → TranscriptList (newest first)

Inputs change through ``update()``, which re-runs only what depends on the
changed inputs: the call config is re-fetched when (call_id, is_caller)
changes, and recognition restarts when the audio stream or the resolved
input language changes.

Translations run as independent tasks and are applied in completion order.
In-flight translations are not cancelled on unmount, but their results are
dropped once the area is unmounted.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from translation_area.audio import AudioContext, MediaStream
from translation_area.backends.base import CallStore, RecognizerFactory
from translation_area.call_config import LanguageSelection, load_call_config
from translation_area.config import Settings
from translation_area.recognition import RecognitionBridge
from translation_area.transcripts import TranscriptList
from translation_area.translator import TranslationClient, TranslationError

LOADING = "Loading..."

StateListener = Callable[[dict], None]

_UNSET = object()


class TranslationArea:
    """Live translation of the remote party's speech.

    Attributes:
        call_id: Document id of the call record
        is_caller: True on the side that placed the call
        remote_audio_stream: Remote audio to recognize (None when absent)
        remote_stream: Combined remote stream; accepted but not used
        languages: Resolved languages, None until the config is loaded
        transcripts: Translation history, newest first
    """

    def __init__(
        self,
        settings: Settings,
        store: CallStore,
        recognizer_factory: RecognizerFactory,
        translator: TranslationClient,
        *,
        audio_context_factory: Callable[[], AudioContext] = AudioContext,
    ):
        self.settings = settings
        self._store = store
        self._translator = translator
        self.bridge = RecognitionBridge(
            recognizer_factory,
            self._on_transcript,
            audio_context_factory=audio_context_factory,
            default_language_code=settings.default_language_code,
        )

        self.call_id: str | None = None
        self.is_caller = False
        self.remote_audio_stream: MediaStream | None = None
        self.remote_stream: MediaStream | None = None

        self.languages: LanguageSelection | None = None
        self.transcripts = TranscriptList()

        self._mounted = False
        self._config_key: tuple[str | None, bool] | None = None
        self._recognition_key: tuple[MediaStream | None, str | None] | None = None
        self._pending: set[asyncio.Task] = set()
        self._listeners: list[StateListener] = []

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def input_code(self) -> str | None:
        return self.languages.input_code if self.languages else None

    @property
    def output_code(self) -> str | None:
        return self.languages.output_code if self.languages else None

    async def mount(
        self,
        call_id: str,
        is_caller: bool,
        remote_audio_stream: MediaStream | None = None,
        remote_stream: MediaStream | None = None,
    ) -> None:
        self._mounted = True
        await self.update(
            call_id=call_id,
            is_caller=is_caller,
            remote_audio_stream=remote_audio_stream,
            remote_stream=remote_stream,
        )

    async def update(
        self,
        *,
        call_id=_UNSET,
        is_caller=_UNSET,
        remote_audio_stream=_UNSET,
        remote_stream=_UNSET,
    ) -> None:
        """Apply changed inputs. Omitted inputs keep their current value."""
        if not self._mounted:
            raise RuntimeError("TranslationArea is not mounted")

        if call_id is not _UNSET:
            self.call_id = call_id
        if is_caller is not _UNSET:
            self.is_caller = bool(is_caller)
        if remote_audio_stream is not _UNSET:
            self.remote_audio_stream = remote_audio_stream
        if remote_stream is not _UNSET:
            self.remote_stream = remote_stream

        config_key = (self.call_id, self.is_caller)
        if config_key != self._config_key:
            self._config_key = config_key
            self.languages = None
            self._sync_recognition()
            self._notify()
            await self._load_languages(config_key)

        self._sync_recognition()

    async def unmount(self) -> None:
        """Stop recognition. Late translation results are discarded."""
        self._mounted = False
        self._recognition_key = None
        self.bridge.stop()

    async def wait_idle(self) -> None:
        """Wait for in-flight translations to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with the rendered state after every change."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def render(self) -> dict:
        languages = self.languages
        return {
            "input_language": (languages.input_language if languages else None) or LOADING,
            "output_language": (languages.output_language if languages else None) or LOADING,
            "translations": self.transcripts.to_list(),
        }

    async def _load_languages(self, config_key: tuple[str | None, bool]) -> None:
        if self.call_id is None:
            return
        selection = await load_call_config(self._store, self.call_id, self.is_caller)
        # Inputs changed or unmounted while fetching
        if not self._mounted or config_key != self._config_key:
            return
        if selection is None:
            return
        self.languages = selection
        print(
            f"Languages for {self.call_id}: "
            f"{selection.input_language} ({selection.input_code}) → "
            f"{selection.output_language} ({selection.output_code})"
        )
        self._notify()

    def _sync_recognition(self) -> None:
        if not self._mounted:
            return
        key = (self.remote_audio_stream, self.input_code)
        if key == self._recognition_key:
            return
        self._recognition_key = key

        if self.remote_audio_stream is None:
            self.bridge.stop()
            return
        try:
            self.bridge.start(self.remote_audio_stream, self.input_code)
        except Exception as e:
            print(f"Failed to start recognition: {e}")

    def _on_transcript(self, text: str) -> None:
        if not self._mounted:
            return
        task = asyncio.get_running_loop().create_task(self._translate(text))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _translate(self, text: str) -> None:
        try:
            translated = await self._translator.translate(text, self.input_code, self.output_code)
        except TranslationError as e:
            print(f"Translation API error: {e}")
            return

        if not self._mounted:
            print(f"Dropping translation after unmount: {translated[:50]}")
            return

        self.transcripts.prepend(translated)
        self._notify()

    def _notify(self) -> None:
        state = self.render()
        for listener in list(self._listeners):
            listener(state)
