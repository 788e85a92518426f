"""Tests for call configuration loading."""

import pytest

from tests.fakes import FakeCallStore
from translation_area.call_config import (
    CallConfig,
    LanguageSelection,
    load_call_config,
    select_languages,
)


class TestSelectLanguages:
    """Tests for role-based language selection."""

    def test_caller_keeps_stored_order(self):
        config = CallConfig("c1", input_language="Hindi", output_language="English")
        assert select_languages(config, is_caller=True) == LanguageSelection(
            input_language="Hindi", output_language="English", input_code="hi", output_code="en"
        )

    def test_callee_swaps(self):
        config = CallConfig("c1", input_language="Hindi", output_language="English")
        assert select_languages(config, is_caller=False) == LanguageSelection(
            input_language="English", output_language="Hindi", input_code="en", output_code="hi"
        )

    def test_unknown_language_has_no_code(self):
        config = CallConfig("c1", input_language="Tamil", output_language="English")
        selection = select_languages(config, is_caller=True)
        assert selection.input_language == "Tamil"
        assert selection.input_code is None
        assert selection.output_code == "en"

    def test_from_document_missing_fields(self):
        config = CallConfig.from_document("c1", {"inputLanguage": "Hindi"})
        assert config.input_language == "Hindi"
        assert config.output_language is None


class TestLoadCallConfig:
    """Tests for load_call_config."""

    @pytest.mark.asyncio
    async def test_caller(self, call_store):
        selection = await load_call_config(call_store, "hin-eng", is_caller=True)
        assert (selection.input_language, selection.input_code) == ("Hindi", "hi")
        assert (selection.output_language, selection.output_code) == ("English", "en")
        assert call_store.requests == ["hin-eng"]

    @pytest.mark.asyncio
    async def test_callee(self, call_store):
        selection = await load_call_config(call_store, "hin-eng", is_caller=False)
        assert (selection.input_language, selection.input_code) == ("English", "en")
        assert (selection.output_language, selection.output_code) == ("Hindi", "hi")

    @pytest.mark.asyncio
    async def test_missing_document(self, call_store, capsys):
        assert await load_call_config(call_store, "nope", is_caller=True) is None
        assert "Document does not exist" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_store_error_is_not_retried(self, capsys):
        store = FakeCallStore(error=ConnectionError("unreachable"))
        assert await load_call_config(store, "abc123", is_caller=True) is None
        assert store.requests == ["abc123"]
        assert "unreachable" in capsys.readouterr().out
