import base64

import pytest

from mockly.core.exceptions import ProviderError, SpeechCapabilityError, SpeechRecognitionError
from mockly.services.speech_io import WebSocketSpeechChannel


class FakeTTS:
    def __init__(self, audio=b"RIFFdata", error=None):
        self.audio = audio
        self.error = error

    async def generate_speech(self, text, voice_id=None, language="en"):
        if self.error:
            raise self.error
        return self.audio


class FakeClient:
    """Plays the browser's part: answers playback and recognition requests"""

    def __init__(self, playback_error=None, recognition=None, complete_playback=True):
        self.sent = []
        self.channel = None
        self.playback_error = playback_error
        self.recognition = list(recognition or [])
        self.complete_playback = complete_playback

    async def __call__(self, payload):
        self.sent.append(payload)
        kind = payload["type"]
        if kind in ("speech", "speech_fallback") and self.complete_playback:
            if kind == "speech" and self.playback_error:
                await self.channel.handle_client_message({
                    "type": "audio_playback_error",
                    "message_id": payload["message_id"],
                    "error": self.playback_error,
                })
            else:
                await self.channel.handle_client_message({
                    "type": "audio_playback_completed",
                    "message_id": payload["message_id"],
                })
        elif kind == "start_listening":
            for event in self.recognition:
                await self.channel.handle_client_message(event)

    def types(self):
        return [p["type"] for p in self.sent]


def make_channel(client, tts=None, playback_timeout=1.0, listen_timeout=1.0):
    channel = WebSocketSpeechChannel(client, tts=tts or FakeTTS(), playback_timeout=playback_timeout, listen_timeout=listen_timeout)
    client.channel = channel
    return channel


@pytest.mark.asyncio
async def test_speak_sends_wav_audio_and_waits_for_playback():
    client = FakeClient()
    channel = make_channel(client)

    assert await channel.speak("Tell me about yourself.") == "cartesia"
    assert channel.last_path == "cartesia"
    speech = client.sent[0]
    assert speech["type"] == "speech"
    assert speech["format"] == "wav"
    assert base64.b64decode(speech["audio_data"]) == b"RIFFdata"
    assert channel.playback_events == {}


@pytest.mark.asyncio
async def test_quota_error_falls_back_to_browser_voice():
    client = FakeClient()
    channel = make_channel(client, tts=FakeTTS(error=ProviderError("cartesia", 402, "quota exceeded")))

    assert await channel.speak("Hello") == "browser"
    assert client.types() == ["speech_fallback"]
    assert channel.last_path == "browser"


@pytest.mark.asyncio
async def test_client_playback_error_falls_back_to_browser_voice():
    client = FakeClient(playback_error="NotAllowedError: autoplay blocked")
    channel = make_channel(client)

    assert await channel.speak("Hello") == "browser"
    assert client.types() == ["speech", "speech_fallback"]


@pytest.mark.asyncio
async def test_playback_timeout_does_not_hang():
    client = FakeClient(complete_playback=False)
    channel = make_channel(client, playback_timeout=0.01)

    assert await channel.speak("Hello") == "cartesia"
    assert channel.current_message_id is None


@pytest.mark.asyncio
async def test_listen_keeps_only_final_segments():
    client = FakeClient(recognition=[
        {"type": "recognition_result", "text": "I have", "is_final": False},
        {"type": "recognition_result", "text": "I have five years", "is_final": True},
        {"type": "recognition_result", "text": "of Python", "is_final": True},
        {"type": "recognition_result", "text": "   ", "is_final": True},
        {"type": "recognition_end"},
    ])
    channel = make_channel(client)

    assert await channel.listen() == "I have five years of Python"
    assert client.types() == ["start_listening"]


@pytest.mark.asyncio
async def test_listen_without_support_raises_capability_error():
    client = FakeClient(recognition=[{"type": "recognition_unsupported"}])
    channel = make_channel(client)

    with pytest.raises(SpeechCapabilityError):
        await channel.listen()


@pytest.mark.asyncio
async def test_listen_recognition_error():
    client = FakeClient(recognition=[{"type": "recognition_error", "error": "network"}])
    channel = make_channel(client)

    with pytest.raises(SpeechRecognitionError, match="network"):
        await channel.listen()


@pytest.mark.asyncio
async def test_listen_timeout_returns_what_was_heard():
    client = FakeClient(recognition=[{"type": "recognition_result", "text": "partial answer", "is_final": True}])
    channel = make_channel(client, listen_timeout=0.01)

    assert await channel.listen() == "partial answer"
    assert client.types() == ["start_listening", "stop_listening"]


@pytest.mark.asyncio
async def test_stop_methods_are_safe_when_idle():
    client = FakeClient()
    channel = make_channel(client)

    await channel.stop_speaking()
    await channel.stop_listening()
    await channel.stop_listening()

    assert client.sent == []
