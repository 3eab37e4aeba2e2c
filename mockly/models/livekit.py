from pydantic import BaseModel
from typing import Optional

class TokenRequest(BaseModel):
    roomName: Optional[str] = None
    userId: Optional[str] = None

class TokenResponse(BaseModel):
    token: str
    url: str
