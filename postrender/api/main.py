"""
FastAPI Application
==================

Main FastAPI application exposing post generation and deletion.
Adds request ids, access logging, security headers and inbound rate limiting.
"""

from contextlib import asynccontextmanager
import json
import time
import uuid
from typing import Any, AsyncGenerator, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles
import uvicorn

from postrender.config.settings import get_settings, Settings
from postrender.config.logging import get_logger
from postrender.api.rate_limit import RATE_LIMIT_MESSAGE, SlidingWindowRateLimiter
from postrender.core.pipeline.factory import build_deletion_pipeline, build_generation_pipeline
from postrender.core.pipeline.orchestrator import (
    DeletionPipeline,
    DeletionSucceeded,
    GenerationPipeline,
    GenerationSucceeded,
    PipelineFailed,
)
from postrender.core.results import FailureKind
from postrender.core.validation import InvalidInputError
from postrender.models.schemas import (
    ErrorResponse,
    GenerationResponse,
    HealthStatus,
    MessageResponse,
)

logger = get_logger(__name__)

WELCOME_MESSAGE = "Welcome to the Post Render service!"

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'; base-uri 'self'; frame-ancestors 'self'; "
    "object-src 'none'; img-src 'self' data:; script-src 'self'; "
    "style-src 'self' https: 'unsafe-inline'; upgrade-insecure-requests",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info(
        "Starting FastAPI application",
        environment=settings.environment,
        scratch_path=str(settings.scratch_path),
    )
    if not settings.storage_configured:
        logger.warning("Cloudinary credentials are not configured; uploads will fail")

    try:
        yield
    finally:
        logger.info("Shutting down FastAPI application")


# Create FastAPI app
settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    description="Render parameterized social-media posts to JPEG and publish them",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs" if settings.enable_docs else None,
    redoc_url="/redoc" if settings.enable_docs else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_hosts,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)

rate_limiter = SlidingWindowRateLimiter(
    limit=settings.rate_limit_requests, window=settings.rate_limit_window_seconds
)


def client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def apply_security_headers(response: Response) -> Response:
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


def error_response(
    request: Request, status_code: int, message: str, error_code: Optional[str] = None
) -> JSONResponse:
    """Build the standard JSON error body."""
    body = ErrorResponse(
        error=message,
        error_code=error_code,
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


# Middleware: the last one registered runs first
@app.middleware("http")
async def enforce_rate_limit(request: Request, call_next) -> Any:  # type: ignore
    """Reject clients that exceed the inbound request allowance."""
    if not settings.rate_limit_enabled:
        return await call_next(request)

    decision = rate_limiter.check(client_address(request))
    if not decision.allowed:
        logger.warning("Rate limit exceeded", client=client_address(request))
        response = error_response(request, 429, RATE_LIMIT_MESSAGE, "RateLimited")
        response.headers["Retry-After"] = str(decision.reset_after)
    else:
        response = await call_next(request)

    response.headers["RateLimit-Limit"] = str(decision.limit)
    response.headers["RateLimit-Remaining"] = str(decision.remaining)
    response.headers["RateLimit-Reset"] = str(decision.reset_after)
    return response


@app.middleware("http")
async def add_security_headers(request: Request, call_next) -> Any:  # type: ignore
    """Attach security HTTP response headers."""
    response = await call_next(request)
    return apply_security_headers(response)


@app.middleware("http")
async def add_request_id(request: Request, call_next) -> Any:  # type: ignore
    """Add request ID to all requests and write one access log line."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    started = time.perf_counter()

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    logger.info(
        "Request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
        client=client_address(request),
        request_id=request_id,
    )
    return response


# Exception handlers
@app.exception_handler(InvalidInputError)
async def invalid_input_exception_handler(
    request: Request, exc: InvalidInputError
) -> JSONResponse:
    """Malformed request bodies are client errors."""
    return error_response(request, 400, str(exc), FailureKind.INVALID_INPUT.value)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """General exception handler for unexpected errors."""
    logger.error(
        "Unhandled exception",
        exception=str(exc),
        request_id=getattr(request.state, "request_id", None),
        exc_info=True,
    )
    response = error_response(request, 500, "Internal server error", "InternalError")

    # Rendered outside the middleware stack, so headers are set here
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        response.headers["X-Request-ID"] = request_id
    apply_security_headers(response)
    return response


# Dependencies
_generation_pipeline: Optional[GenerationPipeline] = None
_deletion_pipeline: Optional[DeletionPipeline] = None


def get_current_settings() -> Settings:
    """Dependency to get current settings."""
    return get_settings()


def get_generation_pipeline() -> GenerationPipeline:
    """Dependency returning the shared generation pipeline."""
    global _generation_pipeline
    if _generation_pipeline is None:
        _generation_pipeline = build_generation_pipeline(get_settings())
    return _generation_pipeline


def get_deletion_pipeline() -> DeletionPipeline:
    """Dependency returning the shared deletion pipeline."""
    global _deletion_pipeline
    if _deletion_pipeline is None:
        _deletion_pipeline = build_deletion_pipeline(get_settings())
    return _deletion_pipeline


async def read_json_body(request: Request) -> Any:
    """
    Decode the JSON request body.

    An empty body decodes to an empty object so that missing fields are
    reported by validation.

    Raises:
        InvalidInputError: If the body is not valid JSON
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidInputError("Malformed JSON body.") from e


def failure_response(request: Request, outcome: PipelineFailed) -> JSONResponse:
    return error_response(request, outcome.kind.http_status, outcome.message, outcome.kind.value)


@app.post("/generate-post", tags=["Posts"])
async def generate_post(
    request: Request, pipeline: GenerationPipeline = Depends(get_generation_pipeline)
) -> JSONResponse:
    """
    Render a post and publish it.

    Returns:
        `{imageUrl, fileName}` on success
    """
    payload = await read_json_body(request)
    outcome = await pipeline.run(payload)

    if isinstance(outcome, GenerationSucceeded):
        body = GenerationResponse(image_url=outcome.image_url, file_name=outcome.file_name)
        return JSONResponse(status_code=200, content=body.model_dump(by_alias=True))
    return failure_response(request, outcome)


@app.delete("/delete-image", tags=["Posts"])
async def delete_image(
    request: Request, pipeline: DeletionPipeline = Depends(get_deletion_pipeline)
) -> JSONResponse:
    """Delete a previously generated image by file name."""
    payload = await read_json_body(request)
    outcome = await pipeline.run(payload)

    if isinstance(outcome, DeletionSucceeded):
        body = MessageResponse(message=outcome.message)
        return JSONResponse(status_code=200, content=body.model_dump())
    return failure_response(request, outcome)


@app.get("/test", tags=["General"])
async def test_endpoint() -> MessageResponse:
    """Liveness probe."""
    return MessageResponse(message="Server is up and running!")


@app.get("/health", response_model=HealthStatus, tags=["General"])
async def health_check(current: Settings = Depends(get_current_settings)) -> HealthStatus:
    """Service status and whether storage credentials are configured."""
    return HealthStatus(
        service=current.app_name,
        status="healthy" if current.storage_configured else "degraded",
        version=current.app_version,
        storage_configured=current.storage_configured,
    )


@app.get("/", response_class=PlainTextResponse, tags=["General"])
async def root() -> str:
    return WELCOME_MESSAGE


# Static files are matched after every API route
if settings.static_path.is_dir():
    app.mount("/", StaticFiles(directory=str(settings.static_path)), name="static")


# Development server runner
def run_development_server() -> None:
    """Run development server with auto-reload."""
    uvicorn.run(
        "postrender.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=False,
    )


def create_app() -> FastAPI:
    """
    Application factory function for creating FastAPI app instance.
    Used by integration tests and deployment scripts.

    Returns:
        FastAPI application instance
    """
    return app


if __name__ == "__main__":
    run_development_server()
