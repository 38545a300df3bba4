"""LLM Factory for creating chat model instances from service configuration.

Supports multiple providers through OpenRouter or a direct OpenAI connection.
"""

import os

from langchain_openai import ChatOpenAI

from shared.logging_config import get_logger

logger = get_logger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class LLMFactory:
    """Factory for creating LLM instances based on provider configuration.

    Supports:
    - OpenRouter (default): Access to models from various providers
    - OpenAI: Direct connection to OpenAI API
    """

    @staticmethod
    def create_llm(config: dict) -> ChatOpenAI:
        """Create an LLM instance from configuration.

        Args:
            config: Model configuration dict with keys:
                - llm_provider: Provider name (openrouter, openai)
                - model_identifier: Model ID (e.g., "anthropic/claude-opus-4")
                - temperature: Temperature setting (0.0-2.0)
                - max_tokens: Output token ceiling
                - openrouter_app_name: Optional app name for OpenRouter analytics

        Returns:
            Configured ChatOpenAI instance

        Raises:
            ValueError: If unknown provider is specified
            KeyError: If required environment variables are missing
        """
        provider = config.get("llm_provider", "openrouter")
        model_id = config.get("model_identifier", "anthropic/claude-opus-4")
        temperature = config.get("temperature", 0.0)
        max_tokens = config.get("max_tokens")

        logger.info(
            "llm_created",
            provider=provider,
            model=model_id,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        if provider == "openrouter":
            return LLMFactory._create_openrouter_llm(config, model_id, temperature, max_tokens)
        elif provider == "openai":
            return LLMFactory._create_openai_llm(model_id, temperature, max_tokens)
        else:
            raise ValueError(
                f"Unknown LLM provider: {provider}. Supported providers: openrouter, openai"
            )

    @staticmethod
    def _create_openrouter_llm(
        config: dict, model_id: str, temperature: float, max_tokens: int | None
    ) -> ChatOpenAI:
        api_key = os.environ.get("OPEN_ROUTER_KEY")
        if not api_key:
            raise KeyError(
                "OPEN_ROUTER_KEY environment variable not set. Please set it to use OpenRouter."
            )

        headers = {"X-Title": config.get("openrouter_app_name", "Site Builder")}

        return ChatOpenAI(
            base_url=OPENROUTER_BASE_URL,
            api_key=api_key,
            model=model_id,
            temperature=temperature,
            max_tokens=max_tokens,
            default_headers=headers,
        )

    @staticmethod
    def _create_openai_llm(model_id: str, temperature: float, max_tokens: int | None) -> ChatOpenAI:
        api_key = os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise KeyError(
                "OPENAI_API_KEY environment variable not set. "
                "Please set it to use direct OpenAI connection."
            )

        return ChatOpenAI(
            api_key=api_key,
            model=model_id,
            temperature=temperature,
            max_tokens=max_tokens,
        )
