from pydantic import BaseModel
from typing import Any, Dict, List, Optional

class STTConfig(BaseModel):
    model: str = "ink-whisper"
    language: str = "en"

class STTResponse(BaseModel):
    success: bool
    text: str = ""
    language: Optional[str] = None
    duration: Optional[float] = None
    words: List[Dict[str, Any]] = []
