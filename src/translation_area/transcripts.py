"""
Rolling translation history for the translation area.

The history is newest-first. Only the head entry is flagged as latest; every
prepend demotes the previous head. Entries are never removed.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class Transcript:
    """One translated utterance."""

    text: str
    is_latest: bool = False


class TranscriptList:
    """Newest-first sequence of transcripts with a single latest entry."""

    def __init__(self) -> None:
        self._items: tuple[Transcript, ...] = ()

    def prepend(self, text: str) -> Transcript:
        """Add a new latest transcript, demoting the previous one.

        The new sequence is built from the list as it is now, so back-to-back
        calls never overwrite each other.
        """
        entry = Transcript(text=text, is_latest=True)
        demoted = tuple(replace(t, is_latest=False) if t.is_latest else t for t in self._items)
        self._items = (entry, *demoted)
        return entry

    @property
    def items(self) -> tuple[Transcript, ...]:
        return self._items

    @property
    def latest(self) -> Transcript | None:
        return self._items[0] if self._items else None

    def to_list(self) -> list[dict]:
        return [{"text": t.text, "is_latest": t.is_latest} for t in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Transcript]:
        return iter(self._items)
