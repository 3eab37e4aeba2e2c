import logging
from typing import Optional

import httpx

from mockly.core.config import settings
from mockly.core.exceptions import ConfigurationError, ProviderError
from mockly.models.stt import STTConfig, STTResponse

logger = logging.getLogger(__name__)


class STTService:
    """Batch speech-to-text over Cartesia's transcription endpoint"""

    provider = "cartesia"

    def __init__(self, api_key: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.default_config = STTConfig()
        self._api_key = api_key
        self.transport = transport

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key or settings.CARTESIA_API_KEY

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def transcribe(
        self,
        audio: bytes,
        filename: str = "audio.webm",
        content_type: str = "application/octet-stream",
        config: Optional[STTConfig] = None,
    ) -> STTResponse:
        if not self.api_key:
            raise ConfigurationError("CARTESIA_API_KEY not configured")

        config = config or self.default_config
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Cartesia-Version": settings.CARTESIA_VERSION,
        }
        data = {
            "model": config.model,
            "language": config.language,
            "timestamp_granularities[]": "word",
        }
        files = {"file": (filename, audio, content_type)}

        logger.info(f"🎧 [STT] Transcribing {len(audio)} bytes")
        try:
            async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT, transport=self.transport) as client:
                response = await client.post(
                    f"{settings.CARTESIA_BASE_URL}/stt", headers=headers, data=data, files=files
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ [STT] Cartesia request failed: {e}")
            raise ProviderError(self.provider, None, str(e)) from e

        if response.status_code >= 400:
            logger.error(f"❌ [STT] Cartesia API error: {response.status_code} {response.text[:200]}")
            raise ProviderError(self.provider, response.status_code, response.text)

        body = response.json()
        logger.info(f"✅ [STT] Got transcript: {(body.get('text') or '')[:50]}")
        return STTResponse(
            success=True,
            text=body.get("text") or "",
            language=body.get("language"),
            duration=body.get("duration"),
            words=body.get("words") or [],
        )


# Global STT service instance
stt_service = STTService()
