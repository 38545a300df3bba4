"""Tests for LLMFactory and CodeModel wiring."""

from langchain_core.messages import AIMessage, AIMessageChunk
import pytest

from builder.llm.factory import OPENROUTER_BASE_URL, LLMFactory
from builder.llm.model import CodeModel, message_text


class TestLLMFactory:
    def test_openrouter_is_default(self, monkeypatch):
        monkeypatch.setenv("OPEN_ROUTER_KEY", "or-key")

        llm = LLMFactory.create_llm(
            {"model_identifier": "anthropic/claude-sonnet-4", "max_tokens": 32000}
        )

        assert llm.model_name == "anthropic/claude-sonnet-4"
        assert llm.openai_api_base == OPENROUTER_BASE_URL
        assert llm.max_tokens == 32000  # noqa: PLR2004
        assert llm.default_headers["X-Title"] == "Site Builder"

    def test_openai_provider(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        llm = LLMFactory.create_llm(
            {"llm_provider": "openai", "model_identifier": "gpt-4o", "temperature": 0.2}
        )

        assert llm.model_name == "gpt-4o"
        assert llm.temperature == 0.2  # noqa: PLR2004

    def test_missing_key_raises(self, monkeypatch):
        monkeypatch.delenv("OPEN_ROUTER_KEY", raising=False)
        with pytest.raises(KeyError):
            LLMFactory.create_llm({"llm_provider": "openrouter"})

    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError):
            LLMFactory.create_llm({"llm_provider": "carrier-pigeon"})


class FakeChat:
    def __init__(self, chunks=(), reply=""):
        self.chunks = chunks
        self.reply = reply
        self.messages = None

    async def astream(self, messages):
        self.messages = messages
        for chunk in self.chunks:
            yield AIMessageChunk(content=chunk)

    async def ainvoke(self, messages):
        self.messages = messages
        return AIMessage(content=self.reply)


@pytest.mark.parametrize(
    ("content", "expected"),
    [
        ("plain", "plain"),
        ([{"type": "text", "text": "a"}, {"type": "tool_use"}, "b"], "ab"),
        ([], ""),
    ],
)
def test_message_text(content, expected):
    assert message_text(content) == expected


@pytest.mark.asyncio
async def test_stream_skips_empty_deltas():
    generator = FakeChat(chunks=["===FILE", "", ": a===\n"])
    model = CodeModel(generator)

    deltas = [d async for d in model.stream("system", "prompt")]

    assert deltas == ["===FILE", ": a===\n"]
    assert generator.messages[0].content == "system"


@pytest.mark.asyncio
async def test_complete_uses_fixer_model():
    generator = FakeChat()
    fixer = FakeChat(reply="===FILE: a===\nx\n===END FILE===")
    model = CodeModel(generator, fixer)

    assert await model.complete("fix system", "errors") == fixer.reply
    assert generator.messages is None
    assert fixer.messages[1].content == "errors"
