import logging
from typing import Optional

import httpx

from mockly.core.config import settings
from mockly.core.exceptions import ConfigurationError, ProviderError
from mockly.models.tts import TTSConfig

logger = logging.getLogger(__name__)


class TTSService:
    """Text-to-Speech service backed by Cartesia's byte endpoint"""

    provider = "cartesia"

    def __init__(self, api_key: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.default_config = TTSConfig()
        self._api_key = api_key
        self.transport = transport

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key or settings.CARTESIA_API_KEY

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _build_payload(self, text: str, voice_id: Optional[str], language: str, config: TTSConfig) -> dict:
        return {
            "model_id": config.model_id,
            "transcript": text,
            "voice": {
                "mode": "id",
                "id": voice_id or settings.CARTESIA_VOICE_ID,
            },
            "output_format": {
                "container": config.container,
                "encoding": config.encoding,
                "sample_rate": config.sample_rate,
            },
            "language": language or "en",
        }

    async def generate_speech(
        self,
        text: str,
        voice_id: Optional[str] = None,
        language: str = "en",
        config: Optional[TTSConfig] = None,
    ) -> bytes:
        """Synthesize ``text`` to WAV bytes.

        Raises ``ConfigurationError`` without a key and ``ProviderError`` for
        vendor or transport failures (402 signals an exhausted quota).
        """
        if not self.api_key:
            raise ConfigurationError("CARTESIA_API_KEY not configured")
        if not text or not text.strip():
            raise ValueError("No text provided")

        payload = self._build_payload(text, voice_id, language, config or self.default_config)
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Cartesia-Version": settings.CARTESIA_VERSION,
            "Content-Type": "application/json",
        }

        logger.info(f"🔊 [TTS] Generating speech for text: {text[:50]}...")
        try:
            async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT, transport=self.transport) as client:
                response = await client.post(f"{settings.CARTESIA_BASE_URL}/tts/bytes", headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"❌ [TTS] Cartesia request failed: {e}")
            raise ProviderError(self.provider, None, str(e)) from e

        if response.status_code >= 400:
            logger.error(f"❌ [TTS] Cartesia API error: {response.status_code} {response.text[:200]}")
            raise ProviderError(self.provider, response.status_code, response.text)

        audio_data = response.content
        logger.info(f"✅ [TTS] Generated {len(audio_data)} bytes of audio")
        return audio_data


# Global TTS service instance
tts_service = TTSService()
