"""
FastAPI application serving live call translation.

Endpoints:
    GET  /health          - Health check
    GET  /metrics         - Translation API latency and failures
    WS   /ws/translation  - One translation area per connection

Startup:
    The ASR model is warmed up in the lifespan handler so the first utterance
    of the first call is not delayed by model loading. The shared translation
    HTTP client is closed on shutdown.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket

from translation_area.backends import get_asr_backend
from translation_area.streaming import close_translation_client, handle_websocket
from translation_area.translator import get_metrics

WARMUP_ON_STARTUP = os.getenv("WARMUP_ON_STARTUP", "true").lower() == "true"


def warmup_models():
    """Load the ASR model and run one transcription of silence."""
    print("Warming up ASR model...")
    get_asr_backend().warmup()
    print("ASR model ready")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if WARMUP_ON_STARTUP:
        warmup_models()
    yield
    await close_translation_client()


app = FastAPI(
    title="Translation Area",
    description="Live speech translation for calls",
    lifespan=lifespan,
)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    return get_metrics()


@app.websocket("/ws/translation")
async def translation_websocket(websocket: WebSocket):
    await handle_websocket(websocket)
