import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from mockly.core.config import settings
from mockly.core.exceptions import (
    FeedbackParseError,
    InvalidPhaseTransition,
    SpeechCapabilityError,
    SpeechRecognitionError,
)
from mockly.models.interview import (
    PHASE_ORDER,
    CandidateInfo,
    CompletedInterviewCreate,
    InterviewFeedback,
    InterviewPhase,
    Message,
)
from mockly.services.extractor import extract_candidate_info
from mockly.services.feedback_service import FeedbackGenerator
from mockly.services.interview_llm import (
    FALLBACK_GREETING,
    FALLBACK_GREETING_REPLY,
    FALLBACK_PRELIMINARY_REPLY,
    GENERATION_ERRORS,
    InterviewLLM,
)
from mockly.services.interview_repository import InterviewRepository
from mockly.services.speech_io import SpeechChannel

logger = logging.getLogger(__name__)

Notify = Callable[[str, dict], Awaitable[None]]

NO_SPEECH_MESSAGE = "I didn't hear anything. Please try again or type your answer."


class Activity(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    SPEAKING = "speaking"
    LISTENING = "listening"


class InterviewProgress:
    """Question/answer bookkeeping for the interview phase.

    The target count is fixed when the phase begins.
    """

    def __init__(self, target: int):
        self._target = max(1, int(target))
        self.questions: List[str] = []
        self.answers: List[str] = []
        self.index = 0

    @property
    def target(self) -> int:
        return self._target

    @property
    def is_complete(self) -> bool:
        return self.index + 1 >= self._target


@dataclass
class SessionState:
    phase: InterviewPhase = InterviewPhase.GREETING
    activity: Activity = Activity.IDLE
    awaiting_answer: bool = False
    progress: Optional[InterviewProgress] = None
    feedback: Optional[InterviewFeedback] = None
    feedback_error: Optional[str] = None
    saved_interview_id: Optional[str] = None
    history: List[Message] = field(default_factory=list)


class DialogueController:
    """Drives one interview session from greeting to feedback.

    Every candidate turn runs as a single task; a new turn is refused while
    one is in flight and ``end_interview`` cancels it.
    """

    def __init__(
        self,
        speech: SpeechChannel,
        llm: InterviewLLM,
        feedback_generator: FeedbackGenerator,
        repository: Optional[InterviewRepository],
        user_id: str,
        interview_id: str,
        user_name: str = "",
        notify: Optional[Notify] = None,
        default_question_count: Optional[int] = None,
    ):
        self.speech = speech
        self.llm = llm
        self.feedback_generator = feedback_generator
        self.repository = repository
        self.user_id = user_id
        self.interview_id = interview_id
        self.user_name = user_name
        self.notify = notify
        self.default_question_count = default_question_count or settings.DEFAULT_QUESTION_COUNT

        self.state = SessionState()
        self.candidate = CandidateInfo()
        self.started_at: Optional[datetime] = None
        self._turn: Optional[asyncio.Task] = None
        self._ending = False
        self._feedback_in_progress = False

    @property
    def history(self) -> List[Message]:
        return self.state.history

    @property
    def turn_in_flight(self) -> bool:
        return self._turn is not None and not self._turn.done()

    # Candidate-facing operations

    async def start(self) -> bool:
        if self.started_at is not None or self.state.phase != InterviewPhase.GREETING or self.turn_in_flight:
            return False
        self.started_at = datetime.now()
        logger.info(f"🎭 [DIALOGUE] Starting interview {self.interview_id} for user {self.user_id}")
        await self._run_turn(self._greet())
        return True

    async def submit_text(self, text: str) -> bool:
        text = (text or "").strip()
        if not text or not self._accepting_answers():
            return False
        self.state.awaiting_answer = False
        await self._run_turn(self._handle_answer(text))
        return True

    async def submit_voice(self) -> bool:
        if not self._accepting_answers():
            return False
        self.state.awaiting_answer = False
        return bool(await self._run_turn(self._voice_turn()))

    async def end_interview(self) -> bool:
        if self._ending or self.state.phase == InterviewPhase.FEEDBACK:
            return False
        self._ending = True
        logger.info(f"🛑 [DIALOGUE] Ending interview {self.interview_id} early")

        await self.speech.stop_speaking()
        await self.speech.stop_listening()

        turn = self._turn
        if turn is not None and not turn.done():
            if self.state.phase == InterviewPhase.FEEDBACK:
                # The turn recorded the last answer while speech was stopping
                await asyncio.wait({turn})
                return True
            turn.cancel()
            await asyncio.wait({turn})

        await self._enter_feedback()
        return True

    async def retry_feedback(self) -> bool:
        if (
            self.state.phase != InterviewPhase.FEEDBACK
            or self.state.feedback is not None
            or self.state.feedback_error is None
            or self._feedback_in_progress
        ):
            return False
        await self._generate_feedback()
        return True

    async def stop_speaking(self) -> None:
        await self.speech.stop_speaking()

    async def stop_listening(self) -> None:
        await self.speech.stop_listening()

    def snapshot(self) -> dict:
        progress = self.state.progress
        return {
            "phase": self.state.phase.value,
            "activity": self.state.activity.value,
            "awaitingAnswer": self.state.awaiting_answer,
            "questionIndex": progress.index if progress else 0,
            "questionsAsked": len(progress.questions) if progress else 0,
            "targetQuestions": progress.target if progress else None,
            "speechPath": self.speech.last_path,
            "candidate": self.candidate.model_dump(by_alias=True),
            "feedbackError": self.state.feedback_error,
        }

    # Turn plumbing

    def _accepting_answers(self) -> bool:
        return (
            self.state.awaiting_answer
            and not self.turn_in_flight
            and not self._ending
            and self.state.phase != InterviewPhase.FEEDBACK
        )

    async def _run_turn(self, coro):
        task = asyncio.create_task(coro)
        self._turn = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if self._turn is task:
                self._turn = None

        if task.cancelled():
            logger.info("🚫 [DIALOGUE] Turn cancelled")
            return None
        return task.result()

    async def _emit(self, event: str, payload: dict) -> None:
        if self.notify is not None:
            await self.notify(event, payload)

    async def _set_activity(self, activity: Activity) -> None:
        self.state.activity = activity
        await self._emit("state", self.snapshot())

    async def _await_next_answer(self) -> None:
        self.state.awaiting_answer = True
        await self._set_activity(Activity.IDLE)

    def _advance_to(self, phase: InterviewPhase) -> None:
        current = self.state.phase
        if PHASE_ORDER.index(phase) < PHASE_ORDER.index(current):
            raise InvalidPhaseTransition(f"Cannot move from {current.value} back to {phase.value}")
        if phase != current:
            logger.info(f"➡️ [DIALOGUE] Phase {current.value} -> {phase.value}")
            self.state.phase = phase

    def _append_user(self, text: str) -> Message:
        message = Message(role="user", content=text)
        self.history.append(message)
        return message

    def _append_assistant(self, text: str) -> bool:
        for previous in reversed(self.history):
            if previous.role == "assistant":
                if previous.content.strip() == text.strip():
                    logger.info("🔁 [DIALOGUE] Skipping duplicate assistant message")
                    return False
                break
        self.history.append(Message(role="assistant", content=text))
        return True

    async def _say(self, text: str) -> None:
        await self._set_activity(Activity.SPEAKING)
        path = await self.speech.speak(text)
        if self._append_assistant(text):
            await self._emit("message", {"role": "assistant", "content": text, "speechPath": path})

    def _merge_candidate(self, text: str) -> None:
        self.candidate = self.candidate.merge(extract_candidate_info(text))

    def _effective_role(self) -> str:
        return self.candidate.role or settings.DEFAULT_ROLE

    def _effective_level(self) -> str:
        return self.candidate.experience_level or settings.DEFAULT_LEVEL

    def _effective_stack(self) -> List[str]:
        return self.candidate.tech_stack or list(settings.DEFAULT_TECH_STACK)

    # Phases

    async def _greet(self) -> None:
        await self._set_activity(Activity.GENERATING)
        try:
            greeting = await self.llm.generate_greeting()
        except GENERATION_ERRORS as e:
            logger.error(f"❌ [DIALOGUE] Error generating greeting: {e}")
            greeting = FALLBACK_GREETING
        await self._say(greeting)
        await self._await_next_answer()

    async def _voice_turn(self) -> bool:
        await self._set_activity(Activity.LISTENING)
        try:
            transcript = await self.speech.listen()
        except SpeechCapabilityError as e:
            logger.warning(f"⚠️ [DIALOGUE] Voice input unavailable: {e}")
            await self._emit("listen_unavailable", {"reason": str(e), "fallback": "text"})
            await self._await_next_answer()
            return False
        except SpeechRecognitionError as e:
            logger.warning(f"⚠️ [DIALOGUE] Recognition failed: {e}")
            await self._emit("listen_unavailable", {"reason": str(e), "fallback": "retry"})
            await self._await_next_answer()
            return False

        if not transcript.strip():
            await self._emit("message", {"role": "system", "content": NO_SPEECH_MESSAGE})
            await self._await_next_answer()
            return False

        await self._handle_answer(transcript)
        return True

    async def _handle_answer(self, text: str) -> None:
        self._append_user(text)
        await self._emit("message", {"role": "user", "content": text})

        phase = self.state.phase
        if phase == InterviewPhase.GREETING:
            await self._handle_greeting_answer(text)
        elif phase == InterviewPhase.PRELIMINARY:
            await self._handle_preliminary_answer(text)
        elif phase == InterviewPhase.INTERVIEW:
            await self._handle_interview_answer(text)

    async def _handle_greeting_answer(self, text: str) -> None:
        self._merge_candidate(text)
        await self._set_activity(Activity.GENERATING)
        try:
            reply = await self.llm.generate_greeting_reply(text)
        except GENERATION_ERRORS as e:
            logger.error(f"❌ [DIALOGUE] Error handling greeting response: {e}")
            reply = FALLBACK_GREETING_REPLY
        self._advance_to(InterviewPhase.PRELIMINARY)
        await self._say(reply)
        await self._await_next_answer()

    async def _handle_preliminary_answer(self, text: str) -> None:
        self._merge_candidate(text)
        await self._set_activity(Activity.GENERATING)
        try:
            reply = await self.llm.generate_preliminary_reply(text, self.history[:-1], self.candidate)
        except GENERATION_ERRORS as e:
            logger.error(f"❌ [DIALOGUE] Error handling preliminary response: {e}")
            self._begin_interview()
            # Shown but not spoken; the first question follows immediately
            await self._emit("message", {"role": "assistant", "content": FALLBACK_PRELIMINARY_REPLY, "displayOnly": True})
            await self._ask_next_question()
            return

        await self._say(reply.text)
        if reply.ready_to_begin:
            self._begin_interview()
        await self._await_next_answer()

    def _begin_interview(self) -> None:
        target = max(1, self.candidate.question_count or self.default_question_count)
        self.state.progress = InterviewProgress(target)
        self._advance_to(InterviewPhase.INTERVIEW)
        logger.info(f"🎯 [DIALOGUE] Interview phase started with {target} questions")

    async def _handle_interview_answer(self, text: str) -> None:
        progress = self.state.progress
        if not progress.questions:
            # The candidate confirmed they are ready; nothing to record yet
            await self._ask_next_question()
            return

        progress.answers.append(text)
        if progress.is_complete:
            logger.info(f"🏁 [DIALOGUE] All {progress.target} questions answered")
            await self._enter_feedback()
            return
        await self._ask_next_question()

    async def _ask_next_question(self) -> None:
        progress = self.state.progress
        question_number = len(progress.questions) + 1
        await self._set_activity(Activity.GENERATING)
        question = await self.llm.generate_interview_question(
            role=self._effective_role(),
            experience_level=self._effective_level(),
            tech_stack=self._effective_stack(),
            previous_answers=list(progress.answers),
            question_number=question_number,
            total_questions=progress.target,
        )
        if progress.questions:
            progress.index += 1
        progress.questions.append(question)
        await self._say(question)
        await self._await_next_answer()

    # Completion

    async def _enter_feedback(self) -> None:
        if self.state.phase == InterviewPhase.FEEDBACK:
            return
        self._advance_to(InterviewPhase.FEEDBACK)
        self.state.awaiting_answer = False
        await self._set_activity(Activity.IDLE)
        await self._generate_feedback()

    async def _generate_feedback(self) -> None:
        if self.state.feedback is not None or self._feedback_in_progress:
            return

        progress = self.state.progress
        if progress is None or not progress.answers:
            logger.info("⏭️ [FEEDBACK] No interview answers recorded - skipping feedback")
            await self._emit("feedback_skipped", {"reason": "No interview answers were recorded"})
            return

        self._feedback_in_progress = True
        self.state.feedback_error = None
        await self._set_activity(Activity.GENERATING)
        try:
            feedback = await self.feedback_generator.generate(
                list(self.history), self._effective_role(), self._effective_level(), self._effective_stack()
            )
        except FeedbackParseError as e:
            await self._fail_feedback(str(e), e.raw_text)
            return
        except GENERATION_ERRORS as e:
            await self._fail_feedback(f"Failed to generate AI feedback. Error: {e}", None)
            return
        except asyncio.CancelledError:
            logger.warning("⚠️ [FEEDBACK] Feedback generation interrupted")
            self.state.feedback_error = "Feedback generation was interrupted"
            self.state.activity = Activity.IDLE
            raise
        finally:
            self._feedback_in_progress = False

        self.state.feedback = feedback
        await self._set_activity(Activity.IDLE)
        await self._emit("feedback", feedback.model_dump(by_alias=True))
        await self._save(feedback)

    async def _fail_feedback(self, error: str, raw_text: Optional[str]) -> None:
        logger.error(f"🚨 [FEEDBACK] {error}")
        self.state.feedback_error = error
        await self._set_activity(Activity.IDLE)
        await self._emit("feedback_error", {"error": error, "rawText": raw_text, "canRetry": True})

    def _duration_minutes(self) -> int:
        if self.started_at is not None:
            start = self.started_at
        elif len(self.history) >= 2:
            start = self.history[0].timestamp
        else:
            return 0
        elapsed = max(0.0, (datetime.now() - start).total_seconds())
        return int(elapsed / 60 + 0.5)

    async def _save(self, feedback: InterviewFeedback) -> None:
        if self.repository is None:
            logger.warning("⚠️ [DB] Database unavailable - interview not saved")
            await self._emit("save_failed", {"success": False, "message": "Database unavailable"})
            return

        data = CompletedInterviewCreate(
            interview_id=self.interview_id,
            candidate_name=self.candidate.name or self.user_name,
            target_role=self.candidate.role or "",
            experience_level=self.candidate.experience_level or "",
            tech_stack=self.candidate.tech_stack or [],
            total_score=feedback.total_score,
            category_scores=feedback.category_scores,
            strengths=feedback.strengths,
            areas_for_improvement=feedback.areas_for_improvement,
            final_assessment=feedback.final_assessment,
            conversation_history=list(self.history),
            duration=self._duration_minutes(),
        )
        result = self.repository.save(self.user_id, data)
        self.state.saved_interview_id = result.interview_id
        await self._emit("interview_saved" if result.success else "save_failed", result.model_dump(by_alias=True))
