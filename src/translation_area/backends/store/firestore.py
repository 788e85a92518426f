"""Firestore-backed call store.

Reads ``<collection>/<call_id>`` documents with the async Firestore client.
The client is created on first use so that importing this module does not
require Google Cloud credentials.
"""

from __future__ import annotations

from typing import Any

from translation_area.backends.base import CallStore


class FirestoreCallStore(CallStore):
    """Call records stored as Firestore documents."""

    def __init__(self, collection: str = "calls", project: str | None = None, client=None) -> None:
        self.collection = collection
        self.project = project
        self._client = client

    def _get_client(self):
        if self._client is None:
            from google.cloud import firestore

            self._client = firestore.AsyncClient(project=self.project)
        return self._client

    async def get_call(self, call_id: str) -> dict[str, Any] | None:
        doc_ref = self._get_client().collection(self.collection).document(call_id)
        snapshot = await doc_ref.get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}
