import math
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InterviewPhase(str, Enum):
    GREETING = "greeting"
    PRELIMINARY = "preliminary"
    INTERVIEW = "interview"
    FEEDBACK = "feedback"


PHASE_ORDER = [
    InterviewPhase.GREETING,
    InterviewPhase.PRELIMINARY,
    InterviewPhase.INTERVIEW,
    InterviewPhase.FEEDBACK,
]


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)


class CandidateInfo(CamelModel):
    name: Optional[str] = None
    role: Optional[str] = None
    experience_level: Optional[Literal["Junior", "Mid-level", "Senior"]] = None
    tech_stack: Optional[List[str]] = None
    question_count: Optional[int] = None

    def merge(self, update: "CandidateInfo") -> "CandidateInfo":
        """Newly extracted fields overwrite, absent ones keep their prior value."""
        merged = self.model_dump()
        for key, value in update.model_dump().items():
            if value is not None and value != "" and value != []:
                merged[key] = value
        return CandidateInfo(**merged)


class CategoryScore(CamelModel):
    name: str
    score: float = Field(ge=0, le=100)
    comment: str = ""


class InterviewFeedback(CamelModel):
    total_score: int = 0
    category_scores: List[CategoryScore] = Field(min_length=1)
    strengths: List[str] = []
    areas_for_improvement: List[str] = []
    final_assessment: str = ""


def build_transcript(messages: Sequence[Message]) -> List[dict]:
    """Relabel history turns the way scoring and prompts present them."""
    return [
        {"speaker": "Candidate" if m.role == "user" else "Interviewer", "content": m.content}
        for m in messages
    ]


def compute_total_score(category_scores: Sequence[CategoryScore]) -> int:
    """Mean of the category scores, rounded half up; 0 when there are none."""
    if not category_scores:
        return 0
    mean = sum(c.score for c in category_scores) / len(category_scores)
    return int(math.floor(mean + 0.5))


class CompletedInterviewCreate(CamelModel):
    interview_id: str
    candidate_name: str
    target_role: str = ""
    experience_level: str = ""
    tech_stack: List[str] = []
    total_score: int = 0
    category_scores: List[CategoryScore] = Field(min_length=1)
    strengths: List[str] = []
    areas_for_improvement: List[str] = []
    final_assessment: str = ""
    conversation_history: List[Message] = []
    duration: int = 0  # in minutes


class CompletedInterview(CompletedInterviewCreate):
    id: str
    user_id: str
    completed_at: datetime


class SaveInterviewResponse(CamelModel):
    success: bool
    message: str
    interview_id: Optional[str] = None
