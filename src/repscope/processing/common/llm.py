"""LLM model factory for PydanticAI.

Supports:
- Anthropic (Claude) - default
- OpenAI-compatible APIs

The model is built from the settings passed in on every call, so a changed
API key takes effect on the next job without any cache to invalidate.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic_ai.models import Model
from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.anthropic import AnthropicProvider
from pydantic_ai.providers.openai import OpenAIProvider

from repscope.core.logging import get_logger

if TYPE_CHECKING:
    from repscope.config import Settings

logger = get_logger(__name__)


def llm_configured(settings: Settings) -> bool:
    """True when the selected provider has an API key."""
    if settings.llm_provider == "anthropic":
        return settings.anthropic_api_key is not None
    return settings.openai_api_key is not None


def create_model(settings: Settings) -> Model:
    """Create a PydanticAI model from the given configuration.

    Args:
        settings: Current settings; the API key is read from here, not from
            the process environment.

    Returns:
        AnthropicModel or OpenAIChatModel instance.
    """
    if settings.llm_provider == "anthropic":
        api_key = (
            settings.anthropic_api_key.get_secret_value() if settings.anthropic_api_key else None
        )
        logger.debug("Using Anthropic model", model=settings.llm_model)
        return AnthropicModel(settings.llm_model, provider=AnthropicProvider(api_key=api_key))

    api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None

    if settings.openai_base_url:
        provider = OpenAIProvider(base_url=settings.openai_base_url, api_key=api_key)
        logger.debug(
            "Using OpenAI-compatible model",
            model=settings.llm_model,
            base_url=settings.openai_base_url,
        )
    else:
        provider = OpenAIProvider(api_key=api_key)
        logger.debug("Using OpenAI model", model=settings.llm_model)

    return OpenAIChatModel(settings.llm_model, provider=provider)
