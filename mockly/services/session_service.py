import asyncio
import logging
import time
import uuid
from datetime import datetime
from typing import Optional, Set

from fastapi import WebSocket
from pydantic import ValidationError
from starlette.websockets import WebSocketDisconnect, WebSocketState

from mockly.core.config import settings
from mockly.core.database import COMPLETED_INTERVIEWS_COLLECTION, get_collection
from mockly.models.session import ClientMessage, SessionStats
from mockly.services.dialogue import DialogueController
from mockly.services.feedback_service import FeedbackGenerator
from mockly.services.interview_llm import InterviewLLM
from mockly.services.interview_repository import InterviewRepository
from mockly.services.speech_io import SpeechChannel, WebSocketSpeechChannel

logger = logging.getLogger(__name__)

SPEECH_EVENTS = {
    "audio_playback_completed",
    "audio_playback_error",
    "recognition_result",
    "recognition_end",
    "recognition_error",
    "recognition_unsupported",
}


def default_repository() -> Optional[InterviewRepository]:
    collection = get_collection(COMPLETED_INTERVIEWS_COLLECTION)
    if collection is None:
        logger.warning("⚠️ [DB] Database unavailable - interviews will not be saved")
        return None
    return InterviewRepository(collection)


class InterviewSessionService:
    """Per-WebSocket orchestrator: routes client events into the dialogue controller"""

    def __init__(
        self,
        user_id: str,
        websocket: WebSocket,
        interview_id: Optional[str] = None,
        user_name: str = "",
        speech: Optional[SpeechChannel] = None,
        llm: Optional[InterviewLLM] = None,
        feedback_generator: Optional[FeedbackGenerator] = None,
        repository: Optional[InterviewRepository] = None,
    ):
        self.user_id = user_id
        self.websocket = websocket
        self.session_id = str(uuid.uuid4())
        self.interview_id = interview_id or self.session_id
        self.cancel_event = asyncio.Event()
        self.background_tasks: Set[asyncio.Task] = set()

        self.speech = speech or WebSocketSpeechChannel(self.send)
        self.controller = DialogueController(
            speech=self.speech,
            llm=llm or InterviewLLM(),
            feedback_generator=feedback_generator or FeedbackGenerator(),
            repository=repository if repository is not None else default_repository(),
            user_id=user_id,
            interview_id=self.interview_id,
            user_name=user_name,
            notify=self.notify,
        )
        self.stats = SessionStats(
            session_id=self.session_id,
            user_id=user_id,
            interview_id=self.interview_id,
            start_time=datetime.now()
        )

    async def send(self, payload: dict) -> None:
        if self.websocket.client_state != WebSocketState.CONNECTED:
            return
        try:
            await self.websocket.send_json(payload)
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.info(f"🔌 [SESSION] Send failed, client gone: {e}")
            self.cancel_event.set()

    async def notify(self, event: str, payload: dict) -> None:
        if event == "interview_saved":
            self.stats.status = "completed"
            self.stats.end_time = datetime.now()
        await self.send({"type": event, **payload})

    async def run(self) -> None:
        """Run the session until the client leaves or the connection drops"""
        logger.info(f"🎭 [SESSION] Starting session {self.session_id} for user {self.user_id}")

        try:
            await self.send({
                "type": "system",
                "text": "Interview session ready",
                "session_id": self.session_id,
                "interview_id": self.interview_id,
            })

            message_task = asyncio.create_task(self._listen_for_messages())
            heartbeat_task = asyncio.create_task(self._monitor_disconnect())

            done, pending = await asyncio.wait(
                [message_task, heartbeat_task],
                return_when=asyncio.FIRST_COMPLETED
            )

            for task in pending:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        finally:
            await self._cleanup_session()

    def _spawn(self, coro, label: str) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self.background_tasks.add(task)

        def _finished(t: asyncio.Task):
            self.background_tasks.discard(t)
            if t.cancelled():
                return
            error = t.exception()
            if error is not None:
                logger.error(f"❌ [SESSION] {label} failed: {error!r}")
            elif t.result() is False:
                logger.info(f"⏸️ [SESSION] {label} ignored in state {self.controller.state.phase.value}")

        task.add_done_callback(_finished)
        return task

    async def handle_message(self, raw: dict) -> None:
        try:
            message = ClientMessage.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"⚠️ [MESSAGE] Malformed client message: {e.error_count()} errors")
            return

        msg_type = message.type
        logger.info(f"📨 [MESSAGE] Received: {msg_type}")

        if msg_type in SPEECH_EVENTS:
            await self.speech.handle_client_message(raw)
        elif msg_type == "start":
            self._spawn(self.controller.start(), "start")
        elif msg_type == "answer":
            self._spawn(self.controller.submit_text(message.text or ""), "answer")
        elif msg_type == "voice_answer":
            self._spawn(self.controller.submit_voice(), "voice_answer")
        elif msg_type == "stop_speaking":
            await self.controller.stop_speaking()
        elif msg_type == "stop_listening":
            await self.controller.stop_listening()
        elif msg_type == "end_interview":
            self._spawn(self.controller.end_interview(), "end_interview")
        elif msg_type == "retry_feedback":
            self._spawn(self.controller.retry_feedback(), "retry_feedback")
        else:
            logger.warning(f"⚠️ [MESSAGE] Unknown message type: {msg_type}")

    async def _listen_for_messages(self) -> None:
        """Listen for messages from frontend"""
        logger.info("👂 [MESSAGES] Starting message listener")

        try:
            while not self.cancel_event.is_set():
                message = await self.websocket.receive_json()
                if not isinstance(message, dict):
                    logger.warning("⚠️ [MESSAGE] Ignoring non-object payload")
                    continue
                await self.handle_message(message)
        except WebSocketDisconnect:
            logger.info("🔌 [MESSAGES] WebSocket disconnected")
        except ValueError as e:
            logger.error(f"❌ [MESSAGES] Invalid JSON from client: {e}")
        finally:
            self.cancel_event.set()

    async def _monitor_disconnect(self) -> None:
        """Send heartbeats until the connection goes away"""
        logger.info("🔍 [MONITOR] Starting disconnect monitoring")

        while not self.cancel_event.is_set():
            await self.send({
                "type": "heartbeat",
                "timestamp": time.time()
            })
            await asyncio.sleep(settings.HEARTBEAT_INTERVAL)

    async def _cleanup_session(self) -> None:
        """Cancel outstanding work and finalise stats"""
        logger.info(f"🧹 [CLEANUP] Cleaning up session {self.session_id}")

        await self.speech.stop_listening()
        for task in list(self.background_tasks):
            task.cancel()
        if self.background_tasks:
            await asyncio.wait(list(self.background_tasks))

        progress = self.controller.state.progress
        self.stats.questions_asked = len(progress.questions) if progress else 0
        if self.stats.end_time is None:
            self.stats.end_time = datetime.now()
            self.stats.status = "terminated"

        logger.info(f"✅ [CLEANUP] Session cleanup completed for {self.session_id} ({self.stats.status})")


# Global active sessions tracking for deduplication
active_sessions: Set[str] = set()
