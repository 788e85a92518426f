"""
Audio processing context for routing remote call audio to a recognizer.

A small, synchronous audio graph modelled on the browser's Web Audio API:

    AudioTrack(s) → MediaStreamSourceNode → MediaStreamDestinationNode

The source downmixes every incoming PCM16 frame to a single float32 channel
and converts it to the context sample rate. The destination buffers samples
until the recognizer drains them with ``read()``. Closing the context
disconnects the source from its tracks, so a closed context never holds
on to a remote stream.

Frames are pushed from the event loop (e.g. the WebSocket handler), so no
locking is needed.
"""

from __future__ import annotations

import uuid
from collections import deque
from collections.abc import Callable, Iterable

import numpy as np

CONTEXT_SAMPLE_RATE = 16000

FrameSink = Callable[["AudioTrack", bytes], None]


def pcm16_to_float32(pcm16_bytes: bytes, channels: int = 1) -> np.ndarray:
    """Convert interleaved PCM16 bytes to mono float32 samples in [-1, 1]."""
    samples = np.frombuffer(pcm16_bytes, dtype=np.int16).astype(np.float32) / 32768.0
    if channels > 1:
        usable = len(samples) - len(samples) % channels
        samples = samples[:usable].reshape(-1, channels).mean(axis=1)
    return samples


def resample(samples: np.ndarray, src_rate: int, dst_rate: int) -> np.ndarray:
    """Linear-interpolation resample. Good enough for speech recognition input."""
    if src_rate == dst_rate or len(samples) == 0:
        return samples
    duration = len(samples) / src_rate
    dst_len = max(1, int(round(duration * dst_rate)))
    src_times = np.arange(len(samples)) / src_rate
    dst_times = np.arange(dst_len) / dst_rate
    return np.interp(dst_times, src_times, samples).astype(np.float32)


class AudioTrack:
    """A live remote audio track delivering PCM16 frames."""

    kind = "audio"

    def __init__(self, sample_rate: int = 16000, channels: int = 1, track_id: str | None = None):
        if sample_rate <= 0 or channels <= 0:
            raise ValueError(f"Invalid audio format: {sample_rate} Hz, {channels} channels")
        self.id = track_id or uuid.uuid4().hex
        self.sample_rate = sample_rate
        self.channels = channels
        self.ready_state = "live"
        self._sinks: list[FrameSink] = []

    def add_sink(self, sink: FrameSink) -> None:
        self._sinks.append(sink)

    def remove_sink(self, sink: FrameSink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    def push(self, pcm16_bytes: bytes) -> None:
        if self.ready_state != "live":
            return
        for sink in list(self._sinks):
            sink(self, pcm16_bytes)

    def stop(self) -> None:
        self.ready_state = "ended"
        self._sinks.clear()


class MediaStream:
    """A set of media tracks from the remote peer."""

    def __init__(self, tracks: Iterable[AudioTrack] = ()):
        self.id = uuid.uuid4().hex
        self._tracks: list[AudioTrack] = list(tracks)

    def get_audio_tracks(self) -> list[AudioTrack]:
        return [t for t in self._tracks if t.kind == "audio"]


class DestinationStream:
    """Single-channel float32 output of a destination node."""

    def __init__(self, sample_rate: int):
        self.sample_rate = sample_rate
        self.closed = False
        self._chunks: deque[np.ndarray] = deque()
        self._buffered = 0

    def write(self, samples: np.ndarray) -> None:
        if self.closed or len(samples) == 0:
            return
        self._chunks.append(samples)
        self._buffered += len(samples)

    def read(self) -> np.ndarray:
        """Drain and return everything buffered since the last read."""
        if not self._chunks:
            return np.array([], dtype=np.float32)
        samples = np.concatenate(list(self._chunks)).astype(np.float32)
        self._chunks.clear()
        self._buffered = 0
        return samples

    def get_buffered_seconds(self) -> float:
        return self._buffered / self.sample_rate

    def close(self) -> None:
        self.closed = True
        self._chunks.clear()
        self._buffered = 0


class MediaStreamDestinationNode:
    def __init__(self, context: AudioContext):
        self.context = context
        self.stream = DestinationStream(context.sample_rate)


class MediaStreamSourceNode:
    """Reads frames from a stream's audio tracks into one channel."""

    def __init__(self, context: AudioContext, stream: MediaStream):
        self.context = context
        self.media_stream = stream
        self._destination: MediaStreamDestinationNode | None = None
        self._tracks: list[AudioTrack] = []

    def connect(self, destination: MediaStreamDestinationNode) -> None:
        if self._destination is not None:
            self.disconnect()
        self._destination = destination
        self._tracks = self.media_stream.get_audio_tracks()
        for track in self._tracks:
            track.add_sink(self._on_frame)

    def disconnect(self) -> None:
        for track in self._tracks:
            track.remove_sink(self._on_frame)
        self._tracks = []
        self._destination = None

    def _on_frame(self, track: AudioTrack, pcm16_bytes: bytes) -> None:
        if self._destination is None:
            return
        samples = pcm16_to_float32(pcm16_bytes, track.channels)
        samples = resample(samples, track.sample_rate, self.context.sample_rate)
        self._destination.stream.write(samples)


class AudioContext:
    """Owns the nodes of one audio graph. Must be closed when done."""

    def __init__(self, sample_rate: int = CONTEXT_SAMPLE_RATE):
        self.sample_rate = sample_rate
        self.state = "running"
        self._sources: list[MediaStreamSourceNode] = []
        self._destinations: list[MediaStreamDestinationNode] = []

    def _check_open(self) -> None:
        if self.state == "closed":
            raise RuntimeError("AudioContext is closed")

    def create_media_stream_source(self, stream: MediaStream) -> MediaStreamSourceNode:
        self._check_open()
        source = MediaStreamSourceNode(self, stream)
        self._sources.append(source)
        return source

    def create_media_stream_destination(self) -> MediaStreamDestinationNode:
        self._check_open()
        destination = MediaStreamDestinationNode(self)
        self._destinations.append(destination)
        return destination

    def close(self) -> None:
        if self.state == "closed":
            return
        for source in self._sources:
            source.disconnect()
        for destination in self._destinations:
            destination.stream.close()
        self._sources.clear()
        self._destinations.clear()
        self.state = "closed"
