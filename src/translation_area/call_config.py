"""
Per-call language configuration.

A call record stores the languages from the caller's point of view:
``inputLanguage`` is what the caller speaks, ``outputLanguage`` what they
read. The callee sees the pair swapped. Names are resolved to codes here;
unknown names resolve to None and the caller falls back to a default.
"""

from __future__ import annotations

from dataclasses import dataclass

from translation_area.backends.base import CallStore
from translation_area.languages import resolve_language_code


@dataclass(frozen=True)
class CallConfig:
    """A call record as stored."""

    call_id: str
    input_language: str | None
    output_language: str | None

    @classmethod
    def from_document(cls, call_id: str, data: dict) -> CallConfig:
        return cls(
            call_id=call_id,
            input_language=data.get("inputLanguage"),
            output_language=data.get("outputLanguage"),
        )


@dataclass(frozen=True)
class LanguageSelection:
    """Languages as seen by one side of the call."""

    input_language: str | None
    output_language: str | None
    input_code: str | None
    output_code: str | None


def select_languages(config: CallConfig, is_caller: bool) -> LanguageSelection:
    """Pick input/output for the given role and resolve their codes."""
    if is_caller:
        input_language, output_language = config.input_language, config.output_language
    else:
        input_language, output_language = config.output_language, config.input_language
    return LanguageSelection(
        input_language=input_language,
        output_language=output_language,
        input_code=resolve_language_code(input_language),
        output_code=resolve_language_code(output_language),
    )


async def load_call_config(
    store: CallStore, call_id: str, is_caller: bool
) -> LanguageSelection | None:
    """Fetch the call record and resolve languages for this role.

    Returns None if the record is missing or the store fails; both are
    reported and not retried.
    """
    try:
        data = await store.get_call(call_id)
    except Exception as e:
        print(f"Error fetching call config {call_id}: {e}")
        return None

    if data is None:
        print(f"Document does not exist: calls/{call_id}")
        return None

    config = CallConfig.from_document(call_id, data)
    return select_languages(config, is_caller)
