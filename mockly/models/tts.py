from pydantic import BaseModel
from typing import Optional

class TTSRequest(BaseModel):
    text: str = ""
    voice_id: Optional[str] = None
    language: str = "en"

class TTSConfig(BaseModel):
    model_id: str = "sonic-english"
    container: str = "wav"
    encoding: str = "pcm_s16le"
    sample_rate: int = 44100
