from typing import Dict, Optional, Type

from mockly.core.config import settings
from mockly.core.exceptions import ConfigurationError
from mockly.services.llm.base import BaseLLMClient
from mockly.services.llm.cerebras_client import CerebrasClient
from mockly.services.llm.gemini_client import GeminiClient

PROVIDERS: Dict[str, Type[BaseLLMClient]] = {
    GeminiClient.provider: GeminiClient,
    CerebrasClient.provider: CerebrasClient,
}


def get_llm_client(provider: Optional[str] = None) -> BaseLLMClient:
    name = (provider or settings.LLM_PROVIDER).lower()
    if name not in PROVIDERS:
        raise ConfigurationError(f"Unknown LLM provider: {name}")
    return PROVIDERS[name]()
