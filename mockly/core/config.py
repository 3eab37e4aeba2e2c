import os
import logging
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

class Settings:
    def __init__(self):
        """Initialize settings with validation"""
        self._validate_required_env_vars()
        self._load_validated_settings()
        self._warn_missing_vendor_keys()

    def _validate_required_env_vars(self):
        """Validate the environment variables the service cannot start without"""
        required_vars = {
            "JWT_SECRET_KEY": "JWT secret for authentication",
            "MONGO_URI": "MongoDB connection string",
        }

        missing_vars = []
        invalid_vars = []

        for var_name, description in required_vars.items():
            value = os.getenv(var_name)

            if not value:
                missing_vars.append(f"  - {var_name}: {description}")
            elif not self._validate_var_format(var_name, value):
                invalid_vars.append(f"  - {var_name}: Invalid format")

        if missing_vars or invalid_vars:
            error_msg = "🚨 CONFIGURATION ERROR - Application cannot start:\n\n"

            if missing_vars:
                error_msg += "❌ Missing required environment variables:\n"
                error_msg += "\n".join(missing_vars) + "\n\n"

            if invalid_vars:
                error_msg += "❌ Invalid environment variables:\n"
                error_msg += "\n".join(invalid_vars) + "\n\n"

            error_msg += "💡 Please check your .env file and ensure all required variables are set."

            logger.critical(error_msg)
            raise ValueError(error_msg)

        logger.info("✅ All required environment variables validated")

    def _validate_var_format(self, var_name: str, value: str) -> bool:
        """Validate specific environment variable formats"""
        if var_name == "JWT_SECRET_KEY":
            return len(value) >= 32  # Minimum 32 characters for security

        elif var_name == "MONGO_URI":
            return value.startswith(("mongodb://", "mongodb+srv://"))

        return True

    def _load_validated_settings(self):
        """Load settings after validation"""
        # Database
        self.MONGO_URI: str = os.getenv("MONGO_URI")
        self.MONGO_DB_NAME: str = os.getenv("MONGO_DB_NAME", "mockly")

        # LLM providers
        self.LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "gemini")
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY")
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
        self.CEREBRAS_API_KEY: str = os.getenv("CEREBRAS_API_KEY")
        self.CEREBRAS_BASE_URL: str = os.getenv("CEREBRAS_BASE_URL", "https://api.cerebras.ai/v1")
        self.CEREBRAS_MODEL: str = os.getenv("CEREBRAS_MODEL", "llama-3.3-70b")

        # Speech (Cartesia)
        self.CARTESIA_API_KEY: str = os.getenv("CARTESIA_API_KEY")
        self.CARTESIA_BASE_URL: str = os.getenv("CARTESIA_BASE_URL", "https://api.cartesia.ai")
        self.CARTESIA_VERSION: str = "2025-04-16"
        self.CARTESIA_VOICE_ID: str = os.getenv("CARTESIA_VOICE_ID", "bf0a246a-8642-498a-9950-80c35e9276b5")

        # LiveKit
        self.LIVEKIT_API_KEY: str = os.getenv("LIVEKIT_API_KEY")
        self.LIVEKIT_API_SECRET: str = os.getenv("LIVEKIT_API_SECRET")
        self.LIVEKIT_WS_URL: str = os.getenv("LIVEKIT_WS_URL", "wss://mockly-9f912h29.livekit.cloud")

        # JWT Configuration
        self.JWT_SECRET: str = os.getenv("JWT_SECRET_KEY")
        self.JWT_ALGORITHM: str = "HS256"
        self.JWT_EXPIRY_MINUTES: int = 60
        self.SESSION_COOKIE_NAME: str = "session"

        # Interview Configuration
        self.DEFAULT_QUESTION_COUNT: int = 5
        self.MAX_QUESTION_COUNT: int = 15
        self.DEFAULT_ROLE: str = "Software Engineer"
        self.DEFAULT_LEVEL: str = "Mid-level"
        self.DEFAULT_TECH_STACK: list = ["JavaScript", "React", "Node.js"]
        self.RECENT_INTERVIEWS_LIMIT: int = 10

        # Timeouts (seconds)
        self.HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "30"))
        self.PLAYBACK_TIMEOUT: float = 30.0
        self.LISTEN_TIMEOUT: float = 120.0
        self.HEARTBEAT_INTERVAL: float = 5.0

    def _warn_missing_vendor_keys(self):
        """Vendor keys are optional at startup; calls fail closed when they are absent"""
        optional_vars = {
            "GEMINI_API_KEY": "Gemini chat will not work",
            "CEREBRAS_API_KEY": "Cerebras chat will not work",
            "CARTESIA_API_KEY": "TTS/STT will fall back to the browser engine",
            "LIVEKIT_API_KEY": "room tokens cannot be issued",
            "LIVEKIT_API_SECRET": "room tokens cannot be issued",
        }
        for var_name, consequence in optional_vars.items():
            if not os.getenv(var_name):
                logger.warning(f"⚠️ {var_name} missing - {consequence}")

settings = Settings()
