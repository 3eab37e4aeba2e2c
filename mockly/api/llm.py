from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
import logging
from mockly.core.exceptions import ConfigurationError, ProviderError
from mockly.models.llm import ChatErrorResponse, ChatRequest, ChatResponse
from mockly.services.llm.providers import PROVIDERS, get_llm_client

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/{provider}/chat", response_model=ChatResponse, responses={500: {"model": ChatErrorResponse}})
async def chat(provider: str, request: ChatRequest):
    """Proxy a chat completion so vendor keys never reach the browser"""
    if provider not in PROVIDERS:
        raise HTTPException(status_code=404, detail=f"Unknown provider: {provider}")

    client = get_llm_client(provider)
    try:
        content = await client.chat(
            request.messages,
            max_tokens=request.maxTokens or 500,
            temperature=request.temperature if request.temperature is not None else 0.7,
        )
    except ConfigurationError as e:
        logger.error(f"❌ [LLM] {e}")
        return JSONResponse(status_code=500, content=ChatErrorResponse(error=str(e)).model_dump())
    except ProviderError as e:
        return JSONResponse(
            status_code=e.http_status,
            content=ChatErrorResponse(
                error=f"{provider.capitalize()} API error: {e.status if e.status is not None else 'no response'}",
                details=e.details,
                status=e.status,
            ).model_dump(),
        )

    return ChatResponse(content=content)
