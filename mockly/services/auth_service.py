import logging
from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from typing import List
import jwt
from fastapi import HTTPException, Request, Response
from pymongo.errors import PyMongoError
from mockly.core.config import settings
from mockly.models.user import UserCreate, UserLogin
from mockly.core.database import UserDB

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Substrings that mark a cookie as carrying auth state
AUTH_COOKIE_MARKERS = ("auth", "session", "token")

class AuthService:

    @staticmethod
    def hash_password(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def create_token(user_id: str, email: str) -> str:
        payload = {
            "user_id": user_id,
            "email": email,
            "exp": datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRY_MINUTES)
        }
        return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> dict:
        """Raises jwt.PyJWTError subclasses for expired or tampered tokens"""
        return jwt.decode(token.replace("Bearer ", ""), settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])

    @staticmethod
    def set_session_cookie(response: Response, token: str) -> None:
        response.set_cookie(
            key=settings.SESSION_COOKIE_NAME,
            value=token,
            max_age=settings.JWT_EXPIRY_MINUTES * 60,
            httponly=True,
            samesite="lax",
            path="/",
        )

    @staticmethod
    def clear_session_cookies(request: Request, response: Response) -> List[str]:
        """Expire every auth-looking cookie the client sent; returns their names"""
        cleared = [
            name for name in request.cookies
            if any(marker in name.lower() for marker in AUTH_COOKIE_MARKERS)
        ]
        for name in cleared:
            response.delete_cookie(name, path="/")
        if settings.SESSION_COOKIE_NAME not in cleared:
            response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
        logger.info(f"🧹 [AUTH] Cleared cookies: {cleared}")
        return cleared

    @staticmethod
    async def signup(user: UserCreate):
        existing = UserDB.get_user_by_email(user.email)
        if existing:
            raise HTTPException(status_code=400, detail="Email already registered")

        hashed_pw = AuthService.hash_password(user.password)
        try:
            user_doc = UserDB.create_user(user.name, user.email, hashed_pw)
        except PyMongoError as e:
            logger.error(f"❌ [AUTH] Could not create user: {e}")
            raise HTTPException(status_code=503, detail="Database unavailable")
        token = AuthService.create_token(str(user_doc["_id"]), user.email)

        return {
            "id": str(user_doc["_id"]),
            "name": user_doc["name"],
            "email": user_doc["email"],
            "created_at": user_doc["created_at"],
            "token": token
        }

    @staticmethod
    async def login(user: UserLogin):
        user_doc = UserDB.get_user_by_email(user.email)
        if not user_doc:
            raise HTTPException(status_code=404, detail="User not found")

        if not AuthService.verify_password(user.password, user_doc["hashed_password"]):
            raise HTTPException(status_code=401, detail="Invalid credentials")

        token = AuthService.create_token(str(user_doc["_id"]), user.email)
        return {
            "token": token
        }
