"""
WebSocket surface for the translation area.

One WebSocket connection drives one TranslationArea. The client forwards the
remote party's audio and receives the rendered state after every change.

Message protocol:
    Client → Server:
        - {"type": "config", "call_id": "...", "is_caller": true,
           "sample_rate": 16000, "channels": 1}
        - Binary PCM16 audio frames of the remote audio track
        - {"type": "stream_end"} (remote audio went away)

    Server → Client:
        - {"type": "config_ack", "status": "active"}
        - {"type": "state", "input_language": "...", "output_language": "...",
           "translations": [{"text": "...", "is_latest": true}, ...]}
        - {"type": "error", "message": "..."}

The first binary frame after a config message starts a new remote audio
stream; ``stream_end`` or a new config message ends it. Outgoing messages go
through a queue drained by a sender task, so component callbacks never await
the socket.
"""

import asyncio
import contextlib
import json
from collections.abc import Callable
from functools import lru_cache

from fastapi import WebSocket, WebSocketDisconnect

from translation_area.audio import AudioTrack, MediaStream
from translation_area.backends import get_call_store, get_recognizer_factory
from translation_area.component import TranslationArea
from translation_area.config import load_settings
from translation_area.translator import TranslationClient


@lru_cache(maxsize=1)
def get_translation_client() -> TranslationClient:
    """Shared translation client (one HTTP connection pool per process)."""
    return TranslationClient(load_settings())


async def close_translation_client() -> None:
    if get_translation_client.cache_info().currsize:
        await get_translation_client().aclose()
        get_translation_client.cache_clear()


def create_translation_area() -> TranslationArea:
    return TranslationArea(
        settings=load_settings(),
        store=get_call_store(),
        recognizer_factory=get_recognizer_factory(),
        translator=get_translation_client(),
    )


def _parse_audio_format(data: dict) -> tuple[int, int] | None:
    """Read (sample_rate, channels) from a config message, None if invalid."""
    values = []
    for key, default in (("sample_rate", 16000), ("channels", 1)):
        value = data.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            return None
        values.append(value)
    return values[0], values[1]


async def handle_websocket(
    websocket: WebSocket,
    area_factory: Callable[[], TranslationArea] = create_translation_area,
):
    """Run one translation area for the lifetime of the WebSocket."""
    await websocket.accept()

    area: TranslationArea | None = None
    track: AudioTrack | None = None
    sample_rate = 16000
    channels = 1
    outbox: asyncio.Queue[dict] = asyncio.Queue()

    async def send_loop():
        while True:
            message = await outbox.get()
            await websocket.send_text(json.dumps(message, ensure_ascii=False))

    def on_state(state: dict) -> None:
        outbox.put_nowait({"type": "state", **state})

    sender_task = asyncio.create_task(send_loop())
    close_socket = False

    try:
        frames_received = 0
        while True:
            message = await websocket.receive()

            if message["type"] == "websocket.disconnect":
                print(f"WebSocket disconnect after {frames_received} audio frames")
                break

            if message.get("bytes") is not None:
                if area is None:
                    continue
                if track is None:
                    track = AudioTrack(sample_rate=sample_rate, channels=channels)
                    await area.update(remote_audio_stream=MediaStream([track]))
                track.push(message["bytes"])
                frames_received += 1
                continue

            if message.get("text") is None:
                continue

            try:
                data = json.loads(message["text"])
            except json.JSONDecodeError:
                await outbox.put({"type": "error", "message": "Invalid JSON"})
                continue

            msg_type = data.get("type") if isinstance(data, dict) else None

            if msg_type == "config":
                call_id = data.get("call_id")
                if not call_id:
                    await outbox.put({"type": "error", "message": "config requires call_id"})
                    continue
                audio_format = _parse_audio_format(data)
                if audio_format is None:
                    message = "sample_rate and channels must be positive integers"
                    await outbox.put({"type": "error", "message": message})
                    continue
                sample_rate, channels = audio_format
                is_caller = bool(data.get("is_caller", False))

                if track is not None:
                    track.stop()
                    track = None

                await outbox.put({"type": "config_ack", "status": "active"})
                if area is None:
                    area = area_factory()
                    area.add_listener(on_state)
                    await area.mount(call_id, is_caller)
                else:
                    await area.update(
                        call_id=call_id, is_caller=is_caller, remote_audio_stream=None
                    )
                print(
                    f"Translation area configured: call_id={call_id}, is_caller={is_caller}, "
                    f"sample_rate={sample_rate}, channels={channels}"
                )

            elif msg_type == "stream_end":
                if track is not None:
                    track.stop()
                    track = None
                if area is not None:
                    await area.update(remote_audio_stream=None)

            else:
                await outbox.put({"type": "error", "message": f"Unknown message type: {msg_type}"})

    except WebSocketDisconnect:
        print("WebSocket disconnected")
    except Exception as e:
        print(f"WebSocket handler error: {e}")
        close_socket = True
    finally:
        if track is not None:
            track.stop()
        if area is not None:
            await area.unmount()
        sender_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender_task
        if close_socket:
            with contextlib.suppress(RuntimeError):
                await websocket.close()
