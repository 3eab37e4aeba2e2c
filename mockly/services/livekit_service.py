import logging
from datetime import timedelta
from typing import Optional

from livekit import api

from mockly.core.config import settings
from mockly.core.exceptions import ConfigurationError
from mockly.models.livekit import TokenResponse

logger = logging.getLogger(__name__)

TOKEN_TTL = timedelta(hours=1)


def generate_livekit_token(
    room_name: str,
    participant_name: str,
    participant_identity: str,
    api_key: Optional[str] = None,
    api_secret: Optional[str] = None,
) -> TokenResponse:
    api_key = api_key or settings.LIVEKIT_API_KEY
    api_secret = api_secret or settings.LIVEKIT_API_SECRET
    if not api_key or not api_secret:
        raise ConfigurationError("LiveKit API key and secret are required")

    token = (
        api.AccessToken(api_key, api_secret)
        .with_identity(participant_identity)
        .with_name(participant_name)
        .with_grants(api.VideoGrants(
            room_join=True,
            room=room_name,
            can_publish=True,
            can_subscribe=True,
            can_publish_data=True,
        ))
        .with_ttl(TOKEN_TTL)
        .to_jwt()
    )
    return TokenResponse(token=token, url=settings.LIVEKIT_WS_URL)


def create_room_token(room_name: str, user_id: str, **credentials) -> TokenResponse:
    identity = f"user-{user_id}"
    logger.info(f"🎫 [LIVEKIT] Issuing token for {identity} in room {room_name}")
    return generate_livekit_token(room_name, identity, identity, **credentials)
