from typing import Optional
from fastapi import APIRouter, File, UploadFile
from fastapi.responses import JSONResponse
import logging
from mockly.core.exceptions import ConfigurationError, ProviderError
from mockly.models.stt import STTResponse
from mockly.services.stt_service import stt_service

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/transcribe", response_model=STTResponse)
async def transcribe_audio(audio: Optional[UploadFile] = File(None)):
    """
    Transcribe an uploaded recording with Cartesia
    """
    if not stt_service.is_configured():
        return JSONResponse(status_code=500, content={"error": "CARTESIA_API_KEY not configured"})

    if audio is None:
        return JSONResponse(status_code=400, content={"error": "No audio file provided"})

    payload = await audio.read()
    try:
        return await stt_service.transcribe(
            payload,
            filename=audio.filename or "audio.webm",
            content_type=audio.content_type or "application/octet-stream"
        )
    except ConfigurationError as e:
        return JSONResponse(status_code=500, content={"error": str(e)})
    except ProviderError as e:
        status = e.status if e.status is not None else 500
        return JSONResponse(status_code=status, content={"error": f"STT API error: {status} - {e.details}"})

@router.get("/health")
async def stt_health_check():
    """Health check for STT service"""
    return {
        "status": "healthy",
        "service": "stt",
        "cartesia_api_configured": stt_service.is_configured()
    }
