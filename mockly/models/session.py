from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class ClientMessage(BaseModel):
    type: str  # "start", "answer", "voice_answer", "recognition_result", "end_interview", etc.
    text: Optional[str] = None
    message_id: Optional[str] = None
    is_final: Optional[bool] = None
    error: Optional[str] = None

class SessionStats(BaseModel):
    session_id: str
    user_id: str
    interview_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    questions_asked: int = 0
    status: str = "active"  # "active", "completed", "terminated", "error"
