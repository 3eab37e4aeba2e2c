import logging
from typing import List, Optional, Sequence

from pydantic import ValidationError

from mockly.core.retry import NO_RETRY, RetryPolicy
from mockly.core.exceptions import FeedbackParseError
from mockly.models.interview import InterviewFeedback, Message, build_transcript, compute_total_score
from mockly.models.llm import ChatMessage
from mockly.services.interview_llm import env
from mockly.services.llm.base import BaseLLMClient
from mockly.services.llm.parsing import load_json_object
from mockly.services.llm.providers import get_llm_client

logger = logging.getLogger(__name__)

FEEDBACK_CATEGORIES = [
    "Technical Knowledge",
    "Communication Skills",
    "Problem Solving",
    "Experience Relevance",
    "Overall Fit",
]


def parse_feedback_response(raw_text: str) -> InterviewFeedback:
    """Parse the evaluator's reply into feedback with a recomputed total.

    Raises ``FeedbackParseError`` carrying the raw reply on any failure;
    there is no fallback score.
    """
    try:
        data = load_json_object(raw_text)
    except ValueError as e:
        raise FeedbackParseError(str(e), raw_text) from e

    try:
        feedback = InterviewFeedback.model_validate(data)
    except ValidationError as e:
        raise FeedbackParseError(f"invalid feedback structure ({e.error_count()} errors)", raw_text) from e

    feedback.total_score = compute_total_score(feedback.category_scores)
    return feedback


class FeedbackGenerator:
    def __init__(self, client: Optional[BaseLLMClient] = None, retry_policy: RetryPolicy = NO_RETRY):
        self._client = client
        self.retry_policy = retry_policy

    @property
    def client(self) -> BaseLLMClient:
        if self._client is None:
            self._client = get_llm_client()
        return self._client

    def _build_messages(self, history: Sequence[Message], role: str, level: str, tech_stack: List[str]) -> List[ChatMessage]:
        system_prompt = env.get_template("feedback_system.j2").render(
            role=role, level=level, tech_stack=tech_stack, categories=FEEDBACK_CATEGORIES
        )
        user_prompt = env.get_template("feedback_user.j2").render(
            transcript=build_transcript(history), categories=FEEDBACK_CATEGORIES
        )
        return [
            ChatMessage(role="system", content=system_prompt),
            ChatMessage(role="user", content=user_prompt),
        ]

    async def generate(self, history: Sequence[Message], role: str, level: str, tech_stack: List[str]) -> InterviewFeedback:
        messages = self._build_messages(history, role, level, tech_stack)
        logger.info(f"📝 [FEEDBACK] Scoring transcript of {len(history)} turns for {level} {role}")

        raw = await self.retry_policy.run(
            lambda: self.client.chat(messages, max_tokens=2000, temperature=0.3)
        )

        try:
            feedback = parse_feedback_response(raw)
        except FeedbackParseError as e:
            logger.error(f"❌ [FEEDBACK] Failed to parse model feedback: {e.reason}")
            logger.info(f"📄 [FEEDBACK] Raw response: {raw}")
            raise

        logger.info(f"✅ [FEEDBACK] Total score {feedback.total_score}")
        return feedback
