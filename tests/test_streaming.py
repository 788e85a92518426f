"""Tests for the translation WebSocket handler."""

import asyncio

import httpx
import numpy as np
import pytest
from fastapi import FastAPI, WebSocket
from fastapi.testclient import TestClient

from tests.fakes import FakeCallStore, FakeRecognizer, RecognizerFactory
from translation_area.component import LOADING, TranslationArea
from translation_area.streaming import handle_websocket
from translation_area.translator import TranslationClient


class GreetingRecognizer(FakeRecognizer):
    """Recognizes "hello" as soon as it is started."""

    def start(self):
        super().start()
        asyncio.get_running_loop().call_soon(self.say, "hello")


@pytest.fixture
def translate_requests():
    return []


@pytest.fixture
def recognizers():
    return RecognizerFactory(recognizer_class=GreetingRecognizer)


@pytest.fixture
def client(settings, recognizers, translate_requests):
    store = FakeCallStore({"abc123": {"inputLanguage": "Kannada", "outputLanguage": "Malayalam"}})

    def handler(request: httpx.Request) -> httpx.Response:
        translate_requests.append(request.content)
        return httpx.Response(200, json={"translated_text": "ನಮಸ್ಕಾರ"})

    def area_factory():
        translator = TranslationClient(
            settings, client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )
        return TranslationArea(settings, store, recognizers, translator)

    app = FastAPI()

    @app.websocket("/ws/translation")
    async def endpoint(websocket: WebSocket):
        await handle_websocket(websocket, area_factory)

    with TestClient(app) as client:
        yield client


def receive_until(ws, predicate, limit=10):
    for _ in range(limit):
        message = ws.receive_json()
        if predicate(message):
            return message
    raise AssertionError("Expected message not received")


def silence(samples=1600):
    return np.zeros(samples, dtype=np.int16).tobytes()


class TestConfig:
    """Tests for the config handshake."""

    def test_config_ack_and_languages(self, client):
        with client.websocket_connect("/ws/translation") as ws:
            ws.send_json({"type": "config", "call_id": "abc123", "is_caller": False})

            assert ws.receive_json() == {"type": "config_ack", "status": "active"}
            loading = ws.receive_json()
            assert loading["type"] == "state"
            assert loading["input_language"] == LOADING

            state = ws.receive_json()
            assert state["input_language"] == "Malayalam"
            assert state["output_language"] == "Kannada"
            assert state["translations"] == []

    def test_config_requires_call_id(self, client):
        with client.websocket_connect("/ws/translation") as ws:
            ws.send_json({"type": "config", "is_caller": True})
            assert ws.receive_json() == {"type": "error", "message": "config requires call_id"}

    def test_invalid_json(self, client):
        with client.websocket_connect("/ws/translation") as ws:
            ws.send_text("{not json")
            assert ws.receive_json() == {"type": "error", "message": "Invalid JSON"}

    def test_unknown_message_type(self, client):
        with client.websocket_connect("/ws/translation") as ws:
            ws.send_json({"type": "bogus"})
            assert ws.receive_json()["message"] == "Unknown message type: bogus"

    @pytest.mark.parametrize(
        "audio_format",
        [{"sample_rate": "abc"}, {"sample_rate": 0}, {"channels": -1}, {"channels": 1.5}],
    )
    def test_invalid_audio_format_keeps_session(self, client, recognizers, audio_format):
        with client.websocket_connect("/ws/translation") as ws:
            ws.send_json({"type": "config", "call_id": "abc123", **audio_format})
            error = ws.receive_json()
            assert error["type"] == "error"
            assert "sample_rate and channels" in error["message"]

            ws.send_bytes(silence())
            ws.send_json({"type": "bogus"})
            assert ws.receive_json()["message"] == "Unknown message type: bogus"
            assert recognizers.recognizers == []

            ws.send_json({"type": "config", "call_id": "abc123", "is_caller": True})
            assert ws.receive_json() == {"type": "config_ack", "status": "active"}

    def test_audio_before_config_is_ignored(self, client, recognizers):
        with client.websocket_connect("/ws/translation") as ws:
            ws.send_bytes(silence())
            ws.send_json({"type": "bogus"})
            ws.receive_json()
            assert recognizers.recognizers == []


class TestAudio:
    """Tests for audio → recognition → translation over the socket."""

    def test_translation_is_pushed(self, client, recognizers, translate_requests):
        with client.websocket_connect("/ws/translation") as ws:
            ws.send_json({"type": "config", "call_id": "abc123", "is_caller": False})
            receive_until(ws, lambda m: m.get("input_language") == "Malayalam")

            ws.send_bytes(silence())
            state = receive_until(ws, lambda m: m.get("translations"))

            assert state["translations"] == [{"text": "ನಮಸ್ಕಾರ", "is_latest": True}]
            assert recognizers.last.lang == "ml"
            assert b'"input_language_code":"ml"' in translate_requests[0].replace(b" ", b"")

    def test_audio_reaches_recognizer(self, client, recognizers):
        with client.websocket_connect("/ws/translation") as ws:
            ws.send_json({"type": "config", "call_id": "abc123", "is_caller": True})
            receive_until(ws, lambda m: m.get("input_language") == "Kannada")

            ws.send_bytes(silence(1600))
            ws.send_bytes(silence(1600))
            ws.send_json({"type": "bogus"})
            receive_until(ws, lambda m: m["type"] == "error")

            assert len(recognizers.recognizers) == 1
            assert recognizers.last.audio.get_buffered_seconds() == pytest.approx(0.2)

    def test_stream_end_stops_recognition(self, client, recognizers):
        with client.websocket_connect("/ws/translation") as ws:
            ws.send_json({"type": "config", "call_id": "abc123", "is_caller": True})
            receive_until(ws, lambda m: m.get("input_language") == "Kannada")
            ws.send_bytes(silence())
            receive_until(ws, lambda m: m.get("translations"))

            ws.send_json({"type": "stream_end"})
            ws.send_json({"type": "bogus"})
            receive_until(ws, lambda m: m["type"] == "error")

            assert recognizers.last.stop_calls == 1
            assert recognizers.last.audio.closed

    def test_new_audio_after_stream_end_starts_new_session(self, client, recognizers):
        with client.websocket_connect("/ws/translation") as ws:
            ws.send_json({"type": "config", "call_id": "abc123", "is_caller": True})
            receive_until(ws, lambda m: m.get("input_language") == "Kannada")
            ws.send_bytes(silence())
            ws.send_json({"type": "stream_end"})
            ws.send_bytes(silence())
            ws.send_json({"type": "bogus"})
            receive_until(ws, lambda m: m["type"] == "error")

            assert len(recognizers.recognizers) == 2
            assert recognizers.recognizers[0].stop_calls == 1
            assert recognizers.recognizers[1].stop_calls == 0
