from fastapi import APIRouter
from fastapi.responses import JSONResponse
import logging
from mockly.core.exceptions import ConfigurationError
from mockly.models.livekit import TokenRequest, TokenResponse
from mockly.services.livekit_service import create_room_token

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/token", response_model=TokenResponse)
async def issue_token(request: TokenRequest):
    if not request.roomName or not request.userId:
        return JSONResponse(status_code=400, content={"error": "Room name and user ID are required"})

    try:
        return create_room_token(request.roomName, request.userId)
    except ConfigurationError as e:
        logger.error(f"❌ [LIVEKIT] Missing LiveKit credentials: {e}")
        return JSONResponse(status_code=500, content={"error": "LiveKit credentials not configured"})
