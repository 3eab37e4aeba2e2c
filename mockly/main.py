from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from contextlib import asynccontextmanager
from mockly.api import auth, interviews, livekit, llm, session, stt, tts
from mockly.core.config import settings

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info("🚀 Starting Mockly interview backend...")
    validate_api_connections()
    logger.info("✅ Startup checks complete - Application ready!")

    yield

    # Shutdown
    logger.info("🛑 Shutting down Mockly interview backend...")

app = FastAPI(title="Mockly Interview API", lifespan=lifespan)

# CORS middleware
origins = [
    "http://localhost:5173",  # Vite dev server
    "http://localhost:3000",  # React dev server
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(RequestValidationError)
async def invalid_request_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are client errors (400) with a readable summary"""
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": str(exc.errors())}
    )

def validate_api_connections():
    """Report which backing services are reachable or configured"""
    logger.info("🔍 Validating API connections...")

    from mockly.core.database import check_database_health
    if check_database_health():
        logger.info("✅ Database connection validated")
    else:
        logger.error("❌ Database validation failed - interviews will not be saved")

    if not settings.GEMINI_API_KEY and not settings.CEREBRAS_API_KEY:
        logger.warning("⚠️ No LLM API key present - canned prompts and questions will be used")
    else:
        logger.info(f"✅ LLM provider configured: {settings.LLM_PROVIDER}")

    if not settings.CARTESIA_API_KEY:
        logger.warning("⚠️ Cartesia API key missing - speech falls back to the browser engine")
    else:
        logger.info("✅ Cartesia API key present")

    if not (settings.LIVEKIT_API_KEY and settings.LIVEKIT_API_SECRET):
        logger.warning("⚠️ LiveKit credentials missing - room tokens will be refused")
    else:
        logger.info("✅ LiveKit credentials present")

app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(llm.router, prefix="/llm", tags=["LLM"])
app.include_router(stt.router, prefix="/stt", tags=["Speech-to-Text"])
app.include_router(tts.router, prefix="/tts", tags=["Text-to-Speech"])
app.include_router(livekit.router, prefix="/livekit", tags=["LiveKit"])
app.include_router(interviews.router, prefix="/interviews", tags=["Interviews"])
app.include_router(session.router, prefix="/session", tags=["Interview Sessions"])

@app.get("/")
async def root():
    return {"message": "Mockly Interview API"}

@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "mockly"}
