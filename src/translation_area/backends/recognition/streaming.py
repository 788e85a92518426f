"""
Continuous speech recognizer over an audio context destination.

Behaves like the browser's speech recognition facility, but runs an ASR
backend on buffered audio:

    every TICK_SEC: drain destination → buffer
    buffer >= UTTERANCE_SEC: transcribe in executor → emit RecognitionEvent

Results accumulate for the lifetime of a continuous session, so each event
carries the full result list and the newest utterance is the last entry.
In non-continuous mode recognition ends after the first result.
"""

from __future__ import annotations

import asyncio
import os
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from translation_area.audio import DestinationStream, resample
from translation_area.backends.base import ASRBackend, SpeechRecognizer
from translation_area.backends.types import (
    RecognitionAlternative,
    RecognitionError,
    RecognitionEvent,
    RecognitionResult,
)

TICK_SEC = float(os.getenv("RECOGNIZER_TICK_SEC", "0.5"))
UTTERANCE_SEC = float(os.getenv("RECOGNIZER_UTTERANCE_SEC", "4.0"))
ASR_SAMPLE_RATE = 16000

_executor = ThreadPoolExecutor(max_workers=1)


class StreamingRecognizer(SpeechRecognizer):
    """Recognizer that feeds destination audio to an ASR backend."""

    def __init__(
        self,
        audio: DestinationStream,
        asr_backend: ASRBackend,
        *,
        tick_sec: float = TICK_SEC,
        utterance_sec: float = UTTERANCE_SEC,
    ):
        super().__init__()
        self._audio = audio
        self._asr = asr_backend
        self._tick_sec = tick_sec
        self._utterance_sec = utterance_sec
        self._task: asyncio.Task | None = None
        self._results: list[RecognitionResult] = []
        self._pending: list[np.ndarray] = []
        self._pending_samples = 0
        self.running = False

    def start(self) -> None:
        if self.running:
            raise RuntimeError("Recognition has already started")
        self.running = True
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        self.running = False
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._pending.clear()
        self._pending_samples = 0

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        utterance_samples = int(self._utterance_sec * self._audio.sample_rate)

        while self.running and not self._audio.closed:
            await asyncio.sleep(self._tick_sec)
            samples = self._audio.read()
            if len(samples):
                self._pending.append(samples)
                self._pending_samples += len(samples)
            if self._pending_samples < utterance_samples:
                continue

            pending = self._pending
            self._pending = []
            self._pending_samples = 0
            try:
                audio = resample(np.concatenate(pending), self._audio.sample_rate, ASR_SAMPLE_RATE)
            except Exception as e:
                self._emit_error(RecognitionError("audio-capture", str(e)))
                continue

            try:
                text, confidence = await loop.run_in_executor(_executor, self._recognize, audio)
            except Exception as e:
                if self.running:
                    self._emit_error(RecognitionError("transcription-failed", str(e)))
                continue

            if not self.running:
                break
            if not text:
                continue

            self._results.append(
                RecognitionResult(
                    alternatives=(RecognitionAlternative(transcript=text, confidence=confidence),),
                    is_final=True,
                )
            )
            self._emit_result(
                RecognitionEvent(
                    result_index=len(self._results) - 1,
                    results=tuple(self._results),
                )
            )

            if not self.continuous:
                self.running = False

    def _recognize(self, audio: np.ndarray) -> tuple[str, float]:
        """Blocking ASR call, runs in the executor."""
        result = self._asr.transcribe(audio, language=self.lang)
        segments = self._asr.post_process(result.segments)
        if not segments:
            return "", 0.0
        text = " ".join(seg.text for seg in segments).strip()
        confidence = sum(seg.confidence for seg in segments) / len(segments)
        return text, confidence
