import logging
from typing import List, Optional

import httpx

from mockly.core.config import settings
from mockly.core.exceptions import ConfigurationError, ProviderError
from mockly.models.llm import ChatMessage
from mockly.services.llm.base import BaseLLMClient

logger = logging.getLogger(__name__)


class CerebrasClient(BaseLLMClient):
    """OpenAI-compatible chat completions endpoint."""

    provider = "cerebras"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or settings.CEREBRAS_API_KEY
        self.base_url = (base_url or settings.CEREBRAS_BASE_URL).rstrip("/")
        self.model = model or settings.CEREBRAS_MODEL
        self.transport = transport

    async def chat(self, messages: List[ChatMessage], max_tokens: int = 500, temperature: float = 0.7) -> str:
        if not self.api_key:
            raise ConfigurationError("CEREBRAS_API_KEY environment variable is required")

        payload = {
            "model": self.model,
            "messages": [m.model_dump() for m in messages],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT, transport=self.transport) as client:
                response = await client.post(f"{self.base_url}/chat/completions", headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"❌ [CEREBRAS] Request failed: {e}")
            raise ProviderError(self.provider, None, str(e)) from e

        if response.status_code >= 400:
            logger.error(f"❌ [CEREBRAS] API error response: {response.status_code} {response.text[:200]}")
            raise ProviderError(self.provider, response.status_code, response.text)

        try:
            data = response.json()
            choices = data.get("choices") or []
            content = choices[0]["message"]["content"] if choices else None
        except (ValueError, KeyError, TypeError, AttributeError, IndexError) as e:
            logger.error(f"❌ [CEREBRAS] Unreadable API response: {e} {response.text[:200]}")
            raise ProviderError(self.provider, 500, "Malformed response from Cerebras API") from e

        if not content:
            logger.error(f"❌ [CEREBRAS] Unexpected API response format: {data}")
            raise ProviderError(self.provider, 500, "No response from Cerebras API")
        return content
