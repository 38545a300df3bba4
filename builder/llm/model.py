"""Code model used by the build pipeline and the repair loop."""

from collections.abc import AsyncIterator
from typing import Any

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from builder.config import Settings

from .factory import LLMFactory


def message_text(content: Any) -> str:
    """Flatten message content (plain string or list of content blocks) to text."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class CodeModel:
    """Streams generation output and answers one-shot repair requests.

    Generation and repair may run on different models: the initial tree is
    produced by the stronger model, fixes by a cheaper one.
    """

    def __init__(self, generator: BaseChatModel, fixer: BaseChatModel | None = None):
        self.generator = generator
        self.fixer = fixer or generator

    @classmethod
    def from_settings(cls, settings: Settings) -> "CodeModel":
        base = {
            "llm_provider": settings.llm_provider,
            "temperature": settings.llm_temperature,
        }
        generator = LLMFactory.create_llm(
            {
                **base,
                "model_identifier": settings.generation_model,
                "max_tokens": settings.generation_max_tokens,
            }
        )
        fixer = LLMFactory.create_llm(
            {
                **base,
                "model_identifier": settings.repair_model,
                "max_tokens": settings.repair_max_tokens,
            }
        )
        return cls(generator, fixer)

    async def stream(self, system: str, prompt: str) -> AsyncIterator[str]:
        """Yield text deltas. Closing the iterator aborts the upstream request."""
        messages = [SystemMessage(content=system), HumanMessage(content=prompt)]
        async for chunk in self.generator.astream(messages):
            text = message_text(chunk.content)
            if text:
                yield text

    async def complete(self, system: str, prompt: str) -> str:
        messages = [SystemMessage(content=system), HumanMessage(content=prompt)]
        response = await self.fixer.ainvoke(messages)
        return message_text(response.content)
