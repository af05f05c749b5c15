"""
FastAPI application for the fallback gateway.

Routes only parse the body, run the cost guard, hand the canonical request to
the matching orchestrator and serialize what comes back. All provider logic
lives in the orchestrator and adapters.
"""
import asyncio
import logging
import sys
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import httpx
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .errors import AllProvidersFailedError, ValidationError
from .models import ChatRequest, ChatResponse, ImageRequest, ImageResult
from .orchestrator import FallbackOrchestrator, ProviderDescriptor
from .registry import build_chat_providers, build_image_providers
from .sanitizer import sanitize

logger = logging.getLogger(__name__)


# Per-request lines from the HTTP client; the orchestrator logs each attempt itself
QUIET_LOGGERS = ("httpx", "httpcore")


def setup_logging(settings: Settings) -> logging.Logger:
    """Configure console (and optional file) logging for the gateway.

    An unknown LOG_LEVEL falls back to INFO. The HTTP client loggers stay at
    WARNING unless LOG_LEVEL is DEBUG.
    """
    level_name = settings.log_level.upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if settings.log_path:
        try:
            log_path = Path(settings.log_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.error("Failed to set up file logging: %s", e)

    client_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(client_level)

    if log_level == logging.INFO and level_name != "INFO":
        root_logger.warning("Unknown LOG_LEVEL %r, using INFO", settings.log_level)
    root_logger.info(
        "Logging at %s%s",
        logging.getLevelName(log_level),
        f" (file: {settings.log_path})" if settings.log_path else "",
    )
    return logging.getLogger(__name__)


def _chain_status(providers: list[ProviderDescriptor]) -> list[dict]:
    return [{"name": p.name, "configured": p.is_configured} for p in providers]


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id") or uuid.uuid4().hex[:12]


async def _read_body(request: Request):
    try:
        return await request.json()
    except ValueError:
        raise ValidationError("Request body must be valid JSON") from None


def _set_diagnostic_headers(response: Response, request_id: str, result) -> None:
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Provider"] = result.provider_name
    response.headers["X-Model"] = result.model_used


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    sleep=asyncio.sleep,
) -> FastAPI:
    """
    Create the gateway application.

    Args:
        settings: Defaults to the environment-backed settings.
        transport: httpx transport for upstream calls; tests pass a
                   MockTransport here.
        sleep: Backoff sleep used between retry attempts.
    """
    settings = settings or get_settings()
    chat_providers = build_chat_providers(settings)
    image_providers = build_image_providers(settings)
    limits = settings.sanitizer_limits()

    # Set during startup
    chat_orchestrator: FallbackOrchestrator | None = None
    image_orchestrator: FallbackOrchestrator | None = None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        nonlocal chat_orchestrator, image_orchestrator

        logger.info("Fallback gateway starting up")
        logger.info("Chat chain: %s", [p.name for p in chat_providers])
        logger.info("Image chain: %s", [p.name for p in image_providers])

        client = httpx.AsyncClient(
            transport=transport,
            timeout=settings.upstream_timeout_seconds,
        )
        chat_orchestrator = FallbackOrchestrator(
            chat_providers, client, failure_message="All providers failed", sleep=sleep
        )
        image_orchestrator = FallbackOrchestrator(
            image_providers, client, failure_message="All image providers failed", sleep=sleep
        )

        yield

        logger.info("Fallback gateway shutting down")
        chat_orchestrator = None
        image_orchestrator = None
        await client.aclose()

    app = FastAPI(
        title="LLM Fallback Gateway",
        description="Chat and image generation with ordered provider fallback",
        version=settings.version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"error": exc.message})

    @app.exception_handler(AllProvidersFailedError)
    async def all_providers_failed(request: Request, exc: AllProvidersFailedError):
        return JSONResponse(status_code=502, content=exc.failure.envelope())

    def _orchestrator(orchestrator: FallbackOrchestrator | None) -> FallbackOrchestrator:
        if orchestrator is None:
            raise HTTPException(status_code=503, detail="Gateway not initialized")
        return orchestrator

    async def _run_chat(request: Request, response: Response) -> tuple[str, ChatResponse]:
        body = await _read_body(request)
        canonical = sanitize(ChatRequest.from_body(body), limits)
        request_id = _request_id(request)

        logger.debug(
            "[%s] Chat request: messages=%d, max_output_tokens=%s",
            request_id, len(canonical.messages), canonical.max_output_tokens,
        )
        result = await _orchestrator(chat_orchestrator).dispatch(canonical, request_id)
        _set_diagnostic_headers(response, request_id, result)
        return request_id, result

    @app.get("/health")
    async def health():
        """Which providers are configured in each chain."""
        chat_ok = any(p.is_configured for p in chat_providers)
        image_ok = any(p.is_configured for p in image_providers)
        return {
            "status": "ok" if chat_ok and image_ok else "degraded",
            "version": settings.version,
            "chat_providers": _chain_status(chat_providers),
            "image_providers": _chain_status(image_providers),
        }

    @app.post("/chat", response_model=ChatResponse)
    async def chat(request: Request, response: Response):
        """Chat completion with provider fallback."""
        _, result = await _run_chat(request, response)
        return result

    @app.post("/v1/chat/completions")
    async def chat_completions(request: Request, response: Response):
        """Same as /chat, answered in the OpenAI chat.completion envelope."""
        request_id, result = await _run_chat(request, response)
        return result.as_chat_completion(completion_id=f"chatcmpl-{request_id}")

    @app.post("/image", response_model=ImageResult, response_model_exclude_none=True)
    async def image(request: Request, response: Response):
        """Image generation with provider fallback."""
        body = await _read_body(request)
        canonical = ImageRequest.from_body(body)
        request_id = _request_id(request)

        result = await _orchestrator(image_orchestrator).dispatch(canonical, request_id)
        _set_diagnostic_headers(response, request_id, result)
        return result

    return app


def main():
    import uvicorn

    settings = get_settings()
    setup_logging(settings)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
