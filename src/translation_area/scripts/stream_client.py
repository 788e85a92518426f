"""Stream a WAV file (or silence) to the translation WebSocket and print states.

Usage:
    python -m translation_area.scripts.stream_client --call-id abc123 --wav speech.wav
"""

import argparse
import asyncio
import contextlib
import json
import wave

import numpy as np
import websockets

FRAME_DURATION_MS = 100


def load_frames(wav_path: str | None, sample_rate: int, duration_sec: float) -> list[bytes]:
    """Split a PCM16 WAV into frames, or generate silence if no file is given."""
    if wav_path is None:
        samples_per_frame = int(sample_rate * FRAME_DURATION_MS / 1000)
        total_frames = int(duration_sec * 1000 / FRAME_DURATION_MS)
        silence = np.zeros(samples_per_frame, dtype=np.int16).tobytes()
        return [silence] * total_frames

    with wave.open(wav_path, "rb") as wav:
        if wav.getsampwidth() != 2:
            raise ValueError("Only 16-bit PCM WAV files are supported")
        frame_samples = int(wav.getframerate() * FRAME_DURATION_MS / 1000)
        frames = []
        while True:
            chunk = wav.readframes(frame_samples)
            if not chunk:
                break
            frames.append(chunk)
    return frames


def wav_format(wav_path: str | None, default_rate: int) -> tuple[int, int]:
    if wav_path is None:
        return default_rate, 1
    with wave.open(wav_path, "rb") as wav:
        return wav.getframerate(), wav.getnchannels()


async def main(args: argparse.Namespace):
    sample_rate, channels = wav_format(args.wav, args.sample_rate)
    frames = load_frames(args.wav, sample_rate, args.duration)

    print(f"Connecting to {args.uri}")
    print(f"Streaming {len(frames) * FRAME_DURATION_MS / 1000:.1f}s at {sample_rate}Hz")
    print()

    async with websockets.connect(args.uri) as ws:
        config = {
            "type": "config",
            "call_id": args.call_id,
            "is_caller": args.caller,
            "sample_rate": sample_rate,
            "channels": channels,
        }
        await ws.send(json.dumps(config))
        print(f"Sent config: {config}")

        async def receive_messages():
            try:
                async for message in ws:
                    data = json.loads(message)
                    if data.get("type") == "state":
                        print(f"{data['input_language']} → {data['output_language']}")
                        for t in data["translations"][:3]:
                            marker = "*" if t["is_latest"] else " "
                            print(f"  {marker} {t['text']}")
                    else:
                        print(f"Received: {data}")
            except websockets.exceptions.ConnectionClosed:
                pass

        receiver = asyncio.create_task(receive_messages())

        for i, frame in enumerate(frames):
            await ws.send(frame)
            await asyncio.sleep(FRAME_DURATION_MS / 1000)
            if (i + 1) % 50 == 0:
                print(f"--- Sent {(i + 1) * FRAME_DURATION_MS / 1000:.1f}s of audio ---")

        await ws.send(json.dumps({"type": "stream_end"}))
        print("\nFinished streaming, waiting for final translations...")
        await asyncio.sleep(args.wait)

        receiver.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await receiver


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Translation area stream client")
    parser.add_argument("--uri", default="ws://localhost:8000/ws/translation")
    parser.add_argument("--call-id", required=True)
    parser.add_argument("--caller", action="store_true", help="Join as the caller")
    parser.add_argument("--wav", default=None, help="16-bit PCM WAV to stream")
    parser.add_argument("--sample-rate", type=int, default=16000)
    parser.add_argument("--duration", type=float, default=10.0, help="Silence length")
    parser.add_argument("--wait", type=float, default=10.0)
    return parser.parse_args(argv)


if __name__ == "__main__":
    asyncio.run(main(parse_args()))
