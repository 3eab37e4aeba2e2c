from fastapi import APIRouter
from fastapi.responses import JSONResponse, Response
import logging
from mockly.core.exceptions import ConfigurationError, ProviderError
from mockly.models.tts import TTSRequest
from mockly.services.tts_service import tts_service
from mockly.core.config import settings

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/generate")
async def generate_speech(request: TTSRequest):
    """
    Synthesize speech and return WAV bytes
    """
    if not tts_service.is_configured():
        return JSONResponse(status_code=500, content={"error": "CARTESIA_API_KEY not configured"})

    if not request.text.strip():
        return JSONResponse(status_code=400, content={"error": "No text provided"})

    try:
        audio_data = await tts_service.generate_speech(
            text=request.text,
            voice_id=request.voice_id,
            language=request.language
        )
    except ConfigurationError as e:
        return JSONResponse(status_code=500, content={"error": str(e)})
    except ProviderError as e:
        status = e.status if e.status is not None else 500
        return JSONResponse(status_code=status, content={"error": f"TTS API error: {status} - {e.details}"})

    return Response(
        content=audio_data,
        media_type="audio/wav",
        headers={"Content-Length": str(len(audio_data))}
    )

@router.get("/health")
async def tts_health_check():
    """Health check for TTS service"""
    return {
        "status": "healthy",
        "service": "tts",
        "cartesia_api_configured": tts_service.is_configured()
    }

@router.get("/config")
async def get_tts_config():
    """Get current TTS configuration"""
    config = tts_service.default_config
    return {
        "default_voice_id": settings.CARTESIA_VOICE_ID,
        "default_model": config.model_id,
        "default_format": config.container,
        "encoding": config.encoding,
        "sample_rate": config.sample_rate,
        "cartesia_configured": tts_service.is_configured()
    }
