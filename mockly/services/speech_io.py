import asyncio
import base64
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict, List, Optional

from mockly.core.config import settings
from mockly.core.exceptions import (
    ConfigurationError,
    ProviderError,
    SpeechCapabilityError,
    SpeechRecognitionError,
)
from mockly.services.tts_service import TTSService, tts_service

logger = logging.getLogger(__name__)

SendJson = Callable[[dict], Awaitable[None]]

PATH_REMOTE = "cartesia"
PATH_LOCAL = "browser"


class SpeechChannel(ABC):
    """Speech input/output for one interview session."""

    last_path: Optional[str] = None

    @abstractmethod
    async def speak(self, text: str) -> str:
        """Play ``text`` to the candidate and return the path used."""

    @abstractmethod
    async def listen(self) -> str:
        """Capture one spoken answer and return the final transcript."""

    @abstractmethod
    async def stop_speaking(self) -> None:
        pass

    @abstractmethod
    async def stop_listening(self) -> None:
        pass

    async def handle_client_message(self, message: dict) -> None:
        pass


class _Recognition:
    def __init__(self):
        self.segments: List[str] = []
        self.done = asyncio.Event()
        self.error: Optional[str] = None
        self.unsupported = False


class WebSocketSpeechChannel(SpeechChannel):
    """Speech over the session WebSocket.

    Synthesized WAV audio is pushed to the client, which reports playback
    completion. When synthesis or playback fails the client is asked to use
    its local engine instead. Recognition always runs on the client; only
    final segments it reports are kept.
    """

    def __init__(
        self,
        send_json: SendJson,
        tts: Optional[TTSService] = None,
        playback_timeout: Optional[float] = None,
        listen_timeout: Optional[float] = None,
    ):
        self.send_json = send_json
        self.tts = tts or tts_service
        self.playback_timeout = playback_timeout if playback_timeout is not None else settings.PLAYBACK_TIMEOUT
        self.listen_timeout = listen_timeout if listen_timeout is not None else settings.LISTEN_TIMEOUT
        self.playback_events: Dict[str, asyncio.Event] = {}
        self.playback_errors: Dict[str, str] = {}
        self.current_message_id: Optional[str] = None
        self.last_path: Optional[str] = None
        self._recognition: Optional[_Recognition] = None

    async def speak(self, text: str) -> str:
        message_id = str(uuid.uuid4())
        logger.info(f"🔊 [AUDIO] Speaking: {text[:50]}...")

        try:
            audio_data = await self.tts.generate_speech(text)
        except (ProviderError, ConfigurationError, ValueError) as e:
            logger.warning(f"⚠️ [AUDIO] Cartesia synthesis unavailable, using browser voice: {e}")
            return await self._speak_locally(text, message_id, str(e))

        error = await self._send_and_wait(message_id, {
            "type": "speech",
            "text": text,
            "message_id": message_id,
            "audio_data": base64.b64encode(audio_data).decode("utf-8"),
            "format": "wav",
        })
        if error:
            logger.warning(f"⚠️ [AUDIO] Client could not play audio ({error}), using browser voice")
            return await self._speak_locally(text, str(uuid.uuid4()), error)

        self.last_path = PATH_REMOTE
        return PATH_REMOTE

    async def _speak_locally(self, text: str, message_id: str, reason: str) -> str:
        self.last_path = PATH_LOCAL
        error = await self._send_and_wait(message_id, {
            "type": "speech_fallback",
            "text": text,
            "message_id": message_id,
            "reason": reason,
        })
        if error:
            logger.error(f"❌ [AUDIO] Browser voice failed for {message_id}: {error}")
        return PATH_LOCAL

    async def _send_and_wait(self, message_id: str, payload: dict) -> Optional[str]:
        """Send a playback request and wait for the client to finish it.

        Returns the error the client reported, if any.
        """
        event = asyncio.Event()
        # Registered before sending so an immediate completion is not lost
        self.playback_events[message_id] = event
        self.current_message_id = message_id
        try:
            await self.send_json(payload)
            await asyncio.wait_for(event.wait(), timeout=self.playback_timeout)
            logger.info(f"✅ [AUDIO] Playback completed for {message_id}")
        except asyncio.TimeoutError:
            logger.warning(f"⏰ [AUDIO] Playback timeout for {message_id}")
        finally:
            self.playback_events.pop(message_id, None)
            if self.current_message_id == message_id:
                self.current_message_id = None
        return self.playback_errors.pop(message_id, None)

    async def stop_speaking(self) -> None:
        message_id = self.current_message_id
        if message_id is None:
            return
        logger.info(f"🔇 [AUDIO] Stopping playback {message_id}")
        event = self.playback_events.get(message_id)
        if event is not None:
            event.set()
        await self.send_json({"type": "stop_speaking", "message_id": message_id})

    async def listen(self) -> str:
        if self._recognition is not None:
            raise SpeechRecognitionError("Recognition already in progress")

        recognition = _Recognition()
        self._recognition = recognition
        try:
            await self.send_json({"type": "start_listening"})
            try:
                await asyncio.wait_for(recognition.done.wait(), timeout=self.listen_timeout)
            except asyncio.TimeoutError:
                logger.warning("⏰ [STT] Listening timed out")
                await self.send_json({"type": "stop_listening"})
        finally:
            self._recognition = None

        if recognition.unsupported:
            raise SpeechCapabilityError("Speech recognition is not supported by this client")
        if recognition.error:
            raise SpeechRecognitionError(recognition.error)

        transcript = " ".join(recognition.segments).strip()
        logger.info(f"✅ [STT] Final transcript: {transcript}")
        return transcript

    async def stop_listening(self) -> None:
        recognition = self._recognition
        if recognition is None or recognition.done.is_set():
            return
        logger.info("🛑 [STT] Stopping recognition")
        recognition.done.set()
        await self.send_json({"type": "stop_listening"})

    async def handle_client_message(self, message: dict) -> None:
        """Route playback and recognition events reported by the client"""
        msg_type = message.get("type")
        message_id = message.get("message_id")
        recognition = self._recognition

        if msg_type == "audio_playback_completed":
            event = self.playback_events.get(message_id)
            if event is not None:
                if message.get("error"):
                    self.playback_errors[message_id] = message["error"]
                event.set()
        elif msg_type == "audio_playback_error":
            event = self.playback_events.get(message_id)
            if event is not None:
                logger.error(f"❌ [AUDIO] Playback error for {message_id}: {message.get('error')}")
                self.playback_errors[message_id] = message.get("error") or "playback error"
                event.set()
        elif recognition is None:
            return
        elif msg_type == "recognition_result":
            text = (message.get("text") or "").strip()
            if message.get("is_final") and text:
                recognition.segments.append(text)
        elif msg_type == "recognition_end":
            recognition.done.set()
        elif msg_type == "recognition_error":
            recognition.error = message.get("error") or "recognition error"
            recognition.done.set()
        elif msg_type == "recognition_unsupported":
            recognition.unsupported = True
            recognition.done.set()
