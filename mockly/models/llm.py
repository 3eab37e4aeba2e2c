from pydantic import BaseModel, Field
from typing import List, Literal, Optional

class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str = Field(min_length=1)

class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(min_length=1)
    maxTokens: Optional[int] = None
    temperature: Optional[float] = None

class ChatResponse(BaseModel):
    content: str

class ChatErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
    status: Optional[int] = None

class PreliminaryReply(BaseModel):
    text: str
    ready_to_begin: bool = False
