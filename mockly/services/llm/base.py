from abc import ABC, abstractmethod
from typing import List

from mockly.models.llm import ChatMessage

class BaseLLMClient(ABC):
    provider: str = ""

    @abstractmethod
    async def chat(self, messages: List[ChatMessage], max_tokens: int = 500, temperature: float = 0.7) -> str:
        pass
