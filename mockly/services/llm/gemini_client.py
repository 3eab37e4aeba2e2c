import logging
from typing import List, Optional, Tuple

import httpx
from google import genai
from google.genai import errors, types

from mockly.core.config import settings
from mockly.core.exceptions import ConfigurationError, ProviderError
from mockly.models.llm import ChatMessage
from mockly.services.llm.base import BaseLLMClient

logger = logging.getLogger(__name__)


def to_gemini_contents(messages: List[ChatMessage]) -> Tuple[Optional[str], List[types.Content]]:
    """Split chat messages into Gemini's system instruction and contents.

    Gemini calls the assistant role ``model`` and takes system text
    separately; the last system message wins.
    """
    system_instruction = None
    contents = []
    for msg in messages:
        if msg.role == "system":
            system_instruction = msg.content
            continue
        role = "model" if msg.role == "assistant" else "user"
        contents.append(types.Content(role=role, parts=[types.Part(text=msg.content)]))
    return system_instruction, contents


class GeminiClient(BaseLLMClient):
    provider = "gemini"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self._client = None

    def _get_client(self) -> genai.Client:
        if not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY environment variable is required")
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def chat(self, messages: List[ChatMessage], max_tokens: int = 500, temperature: float = 0.7) -> str:
        client = self._get_client()
        system_instruction, contents = to_gemini_contents(messages)

        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(
                    system_instruction=system_instruction,
                    max_output_tokens=max_tokens,
                    temperature=temperature,
                ),
            )
        except errors.APIError as e:
            logger.error(f"❌ [GEMINI] API error {e.code}: {e.message}")
            raise ProviderError(self.provider, e.code, str(e.message or e)) from e
        except httpx.HTTPError as e:
            logger.error(f"❌ [GEMINI] Transport error: {e}")
            raise ProviderError(self.provider, None, str(e)) from e

        text = response.text
        if not text:
            logger.error("❌ [GEMINI] Unexpected response format - no candidate text")
            raise ProviderError(self.provider, 500, "No response from Gemini API")
        return text
