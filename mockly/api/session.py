from typing import Optional
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query
from fastapi.concurrency import run_in_threadpool
from jwt import PyJWTError
import logging
from mockly.core.config import settings
from mockly.core.database import UserDB
from mockly.services.auth_service import AuthService
from mockly.services.session_service import InterviewSessionService, active_sessions, default_repository

router = APIRouter()
logger = logging.getLogger(__name__)

@router.websocket("/ws/interview")
async def websocket_interview(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    interview_id: Optional[str] = Query(None),
):
    """
    Voice interview session: greeting, preliminary questions, interview and feedback
    """
    token = token or websocket.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        await websocket.close(code=403)
        return

    # Validate JWT token
    try:
        payload = AuthService.decode_token(token)
        user_id = payload.get("user_id")
        if not user_id:
            await websocket.close(code=403)
            return
        logger.info(f"✅ [AUTH] Authenticated user: {user_id}")
    except PyJWTError as e:
        logger.warning(f"❌ [AUTH] Invalid token: {e}")
        await websocket.close(code=403)
        return

    # Session deduplication - prevent multiple sessions per user
    if user_id in active_sessions:
        logger.warning(f"🚨 [SESSION] User {user_id} already has active session")
        await websocket.accept()
        await websocket.send_json({
            "type": "terminate",
            "reason": "You already have an active interview session."
        })
        await websocket.close()
        return

    await websocket.accept()
    active_sessions.add(user_id)
    logger.info(f"📊 [SESSIONS] Active sessions: {len(active_sessions)}")

    try:
        # pymongo calls block; keep them off the event loop
        user = await run_in_threadpool(UserDB.get_user_by_id, user_id)
        repository = await run_in_threadpool(default_repository)
        session_service = InterviewSessionService(
            user_id=user_id,
            websocket=websocket,
            interview_id=interview_id,
            user_name=user["name"] if user else "",
            repository=repository,
        )
        await session_service.run()
    except WebSocketDisconnect:
        logger.info(f"🔌 [WEBSOCKET] Client {user_id} disconnected normally")
    finally:
        active_sessions.discard(user_id)
        logger.info(f"🧹 [CLEANUP] Removed user {user_id} from active sessions")
        logger.info(f"📊 [SESSIONS] Active sessions remaining: {len(active_sessions)}")

@router.get("/health")
async def session_health_check():
    """Health check for session service"""
    return {
        "status": "healthy",
        "service": "session",
        "active_sessions": len(active_sessions),
        "services_integrated": {
            "auth": True,
            "llm": True,
            "tts": bool(settings.CARTESIA_API_KEY),
            "feedback": True,
            "persistence": True
        }
    }

@router.get("/stats")
async def session_stats():
    """Get session statistics"""
    return {
        "active_sessions": len(active_sessions),
        "session_config": {
            "default_question_count": settings.DEFAULT_QUESTION_COUNT,
            "max_question_count": settings.MAX_QUESTION_COUNT,
            "playback_timeout_seconds": settings.PLAYBACK_TIMEOUT,
            "listen_timeout_seconds": settings.LISTEN_TIMEOUT,
            "llm_provider": settings.LLM_PROVIDER
        }
    }
