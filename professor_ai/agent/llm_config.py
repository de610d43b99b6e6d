"""
LiteLLM Configuration Module

Unified interface to the tutor's LLM provider using LiteLLM.

Defaults target a local Ollama server running llama3; any LiteLLM provider
can be selected through the environment.

Environment variables:
- LLM_PROVIDER: Provider name (e.g., "ollama", "together_ai", "openai", "anthropic")
- LLM_MODEL: Model identifier (e.g., "llama3", "meta-llama/Llama-3-8b-chat-hf")
- LLM_API_KEY: API key for the provider (or provider-specific key like OPENAI_API_KEY)
- LLM_BASE_URL: (Optional) Custom base URL for self-hosted or proxy endpoints
- LLM_MAX_TOKENS: (Optional) Max tokens for responses (default: 1024)
- LLM_TEMPERATURE: (Optional) Temperature for responses (default: 0.7)
"""

import logging
from typing import Any, Dict, List, Optional

import litellm
from litellm import acompletion
from pydantic import Field
from pydantic_settings import BaseSettings
from tenacity import retry, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)


class LLMSettings(BaseSettings):
    """LLM configuration settings"""

    # Provider and model
    llm_provider: str = Field(default="ollama", description="LLM provider name")
    llm_model: str = Field(default="llama3", description="Model identifier")

    # API credentials
    llm_api_key: Optional[str] = Field(default=None, description="API key for LLM provider")
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    anthropic_api_key: Optional[str] = Field(default=None, description="Anthropic API key")
    together_api_key: Optional[str] = Field(default=None, description="Together.ai API key")

    # Optional configuration
    llm_base_url: Optional[str] = Field(
        default="http://localhost:11434",
        description="Custom base URL"
    )
    llm_max_tokens: int = Field(default=1024, description="Max tokens for completion")
    llm_temperature: float = Field(default=0.7, description="Sampling temperature")
    llm_top_p: float = Field(default=0.9, description="Nucleus sampling")
    llm_timeout: int = Field(default=60, description="Request timeout in seconds")
    llm_max_attempts: int = Field(default=3, description="Attempts per completion")

    # LiteLLM specific settings
    litellm_drop_params: bool = Field(
        default=True,
        description="Drop unsupported params for each provider"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra fields from .env

    @property
    def is_configured(self) -> bool:
        """Local providers need no key; hosted ones do."""
        if self.llm_provider.lower() == "ollama":
            return True
        return bool(self.provider_api_key())

    def provider_api_key(self) -> Optional[str]:
        provider = self.llm_provider.lower()
        if provider == "openai":
            return self.openai_api_key or self.llm_api_key
        if provider == "anthropic":
            return self.anthropic_api_key or self.llm_api_key
        if provider == "together_ai":
            return self.together_api_key or self.llm_api_key
        return self.llm_api_key


class LLMClient:
    """
    Unified LLM client using LiteLLM.

    Completions are retried with exponential backoff.
    """

    def __init__(self, settings: Optional[LLMSettings] = None):
        """
        Initialize LLM client.

        Args:
            settings: LLM settings (defaults to loading from environment)
        """
        self.settings = settings or LLMSettings()

        # Configure LiteLLM
        litellm.drop_params = self.settings.litellm_drop_params

        self.api_key = self.settings.provider_api_key()
        self.model = self._build_model_string()

    def _build_model_string(self) -> str:
        """
        Build LiteLLM model string.

        Format: "provider/model", or the bare model name for OpenAI

        Examples:
        - "ollama/llama3"
        - "together_ai/meta-llama/Llama-3-8b-chat-hf"
        - "gpt-4o-mini"
        """
        provider = self.settings.llm_provider.lower()
        model = self.settings.llm_model

        if provider in ("openai", "anthropic") or model.startswith(f"{provider}/"):
            return model

        return f"{provider}/{model}"

    def _build_params(self, messages: List[Dict[str, str]], **kwargs) -> Dict[str, Any]:
        params = {
            "model": self.model,
            "messages": messages,
            "max_tokens": kwargs.pop("max_tokens", self.settings.llm_max_tokens),
            "temperature": kwargs.pop("temperature", self.settings.llm_temperature),
            "top_p": kwargs.pop("top_p", self.settings.llm_top_p),
            "timeout": kwargs.pop("timeout", self.settings.llm_timeout),
        }

        if self.settings.llm_base_url and self.settings.llm_provider.lower() == "ollama":
            params["api_base"] = self.settings.llm_base_url
        if self.api_key:
            params["api_key"] = self.api_key

        params.update(kwargs)
        return params

    async def acomplete(self, messages: List[Dict[str, str]], **kwargs) -> Any:
        """
        Generate completion using LiteLLM.

        Args:
            messages: List of message dicts with 'role' and 'content'
            **kwargs: Additional parameters to pass to litellm.acompletion()

        Returns:
            LiteLLM completion response
        """
        params = self._build_params(messages, **kwargs)
        retrying = retry(
            stop=stop_after_attempt(self.settings.llm_max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=8),
            reraise=True
        )
        return await retrying(acompletion)(**params)

    async def acomplete_text(self, messages: List[Dict[str, str]], **kwargs) -> str:
        """Generate completion and return the message content."""
        response = await self.acomplete(messages, **kwargs)
        return response.choices[0].message.content


# Singleton instance for easy import
_default_client: Optional[LLMClient] = None


def get_llm_client(settings: Optional[LLMSettings] = None) -> LLMClient:
    """
    Get or create the default LLM client.

    Args:
        settings: Optional settings (creates new client if provided)

    Returns:
        LLM client instance
    """
    global _default_client

    if settings is not None:
        return LLMClient(settings)

    if _default_client is None:
        _default_client = LLMClient()

    return _default_client
