import logging
import os
from typing import List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from mockly.core.exceptions import ConfigurationError, ProviderError
from mockly.core.retry import DEFAULT_RETRY_POLICY, RetryPolicy
from mockly.models.interview import CandidateInfo, Message, build_transcript
from mockly.models.llm import ChatMessage, PreliminaryReply
from mockly.services.llm.base import BaseLLMClient
from mockly.services.llm.parsing import load_json_object
from mockly.services.llm.providers import get_llm_client
from mockly.services.sanitizer import sanitize_to_single_question

logger = logging.getLogger(__name__)

# Setup Jinja2 environment for templates
template_dir = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")
env = Environment(loader=FileSystemLoader(template_dir))

FALLBACK_GREETING = (
    "Hello! I'm your AI interviewer today. Welcome to the session! Could you please tell me "
    "your name and what role you're targeting for this interview?"
)
FALLBACK_GREETING_REPLY = (
    "Thank you! Now, what experience level would you say you're at - Junior, Mid-level, or Senior?"
)
FALLBACK_PRELIMINARY_REPLY = (
    "That's helpful information. Let's begin the technical interview. Are you ready for the first question?"
)
FALLBACK_QUESTION = "What is your experience with the technologies you mentioned?"

TRANSITION_PHRASES = (
    "let's begin",
    "start the interview",
    "first question",
    "move forward with the actual interview",
    "proceed with the",
    "begin the interview",
    "we can proceed",
    "let's go ahead",
    "move on to the",
    "confirmed that i have all",
)

GENERATION_ERRORS = (ProviderError, ConfigurationError)


def signals_interview_start(reply: str) -> bool:
    """Phrase heuristic used when the model answers in plain text."""
    lowered = reply.lower().replace("’", "'")
    return any(phrase in lowered for phrase in TRANSITION_PHRASES)


def parse_preliminary_reply(raw: str) -> PreliminaryReply:
    try:
        data = load_json_object(raw)
    except ValueError:
        data = None

    if data is not None and isinstance(data.get("reply"), str) and data["reply"].strip():
        reply = data["reply"].strip()
        flag = data.get("ready_to_begin")
        if isinstance(flag, bool):
            return PreliminaryReply(text=reply, ready_to_begin=flag)
        return PreliminaryReply(text=reply, ready_to_begin=signals_interview_start(reply))

    text = raw.strip()
    return PreliminaryReply(text=text, ready_to_begin=signals_interview_start(text))


class InterviewLLM:
    """Prompt construction and generation for every conversational turn."""

    def __init__(self, client: Optional[BaseLLMClient] = None, retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY):
        self._client = client
        self.retry_policy = retry_policy

    @property
    def client(self) -> BaseLLMClient:
        if self._client is None:
            self._client = get_llm_client()
        return self._client

    async def generate_response(self, messages: List[ChatMessage], max_tokens: int = 500, temperature: float = 0.7) -> str:
        return await self.retry_policy.run(
            lambda: self.client.chat(messages, max_tokens=max_tokens, temperature=temperature)
        )

    async def generate_conversational_response(self, user_message: str, context: str, phase: str) -> str:
        system_prompt = env.get_template("conversational_system.j2").render(phase=phase, context=context)
        messages = [
            ChatMessage(role="system", content=system_prompt),
            ChatMessage(role="user", content=user_message or "(no response)"),
        ]
        response = await self.generate_response(messages, max_tokens=200, temperature=0.8)
        return response.strip()

    async def generate_greeting(self) -> str:
        context = env.get_template("greeting.j2").render()
        return await self.generate_conversational_response("Starting interview session", context, "preliminary")

    async def generate_greeting_reply(self, answer: str) -> str:
        context = env.get_template("greeting_reply.j2").render(answer=answer)
        return await self.generate_conversational_response(answer, context, "preliminary")

    async def generate_preliminary_reply(
        self, answer: str, history: Sequence[Message], candidate: CandidateInfo
    ) -> PreliminaryReply:
        context = env.get_template("preliminary_reply.j2").render(
            answer=answer,
            transcript=build_transcript(history),
            candidate=candidate,
        )
        raw = await self.generate_conversational_response(answer, context, "preliminary")
        reply = parse_preliminary_reply(raw)
        logger.info(f"🧭 [LLM] Preliminary reply ready_to_begin={reply.ready_to_begin}")
        return reply

    async def generate_interview_question(
        self,
        role: str,
        experience_level: str,
        tech_stack: List[str],
        previous_answers: Optional[List[str]] = None,
        question_number: int = 1,
        total_questions: int = 5,
    ) -> str:
        """Generate and sanitize one question; generation failures yield a canned question."""
        system_prompt = env.get_template("interview_question.j2").render(
            role=role,
            experience_level=experience_level,
            tech_stack=tech_stack,
            previous_answers=previous_answers or [],
            question_number=question_number,
            total_questions=total_questions,
        )
        messages = [
            ChatMessage(role="system", content=system_prompt),
            ChatMessage(
                role="user",
                content=(
                    f"Generate question {question_number} of {total_questions} for this "
                    f"{experience_level} {role} candidate. One complete question only."
                ),
            ),
        ]

        try:
            raw = await self.generate_response(messages, max_tokens=300, temperature=0.7)
        except GENERATION_ERRORS as e:
            logger.error(f"❌ [LLM] Error generating interview question: {e}")
            return FALLBACK_QUESTION

        return sanitize_to_single_question(raw) or FALLBACK_QUESTION
