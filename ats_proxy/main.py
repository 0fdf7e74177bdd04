"""
ATS PROXY MAIN API
==================

This module defines the FastAPI application and all HTTP endpoints. The browser
talks to this proxy; the proxy talks to OpenRouter with a key the browser never
sees.

ENDPOINTS:
  GET  /                  - Returns API name and list of endpoints.
  GET  /api/health        - Liveness plus whether an OpenRouter key is configured.
  GET  /api/models        - OpenRouter models, free ones first, at most 50.
  POST /api/chat          - Chat completion: {messages, model?, temperature?, max_tokens?}.
  POST /api/parse-resume  - Ask the model to turn resume text into structured JSON.

RATE LIMIT:
  Every path under /api shares one counter per client IP: 100 requests per
  15 minutes. Request 101 gets a 429 without reaching OpenRouter.

ERRORS:
  Every failure is a JSON body {error, code}; see ats_proxy.models for the codes.

DEPLOYMENT:
  create_app(settings) builds the app for one deployment profile (config.py):
  run.py serves the long-running profile with uvicorn, api/index.py exposes the
  serverless profile as a module-level `app`.
"""


from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from typing import Any, List, Optional
import json
import logging
import sys

import httpx
import uvicorn

from ats_proxy.models import (
    API_KEY_MISSING,
    CONNECTION_ERROR,
    METHOD_NOT_ALLOWED,
    NOT_FOUND,
    PARSE_ERROR,
    PAYLOAD_TOO_LARGE,
    SERVER_ERROR,
    VALIDATION_ERROR,
    ErrorResponse,
    HealthResponse,
    ParseResumeResponse,
    RateLimitResponse,
    UpstreamError,
)
from ats_proxy.services.openrouter_client import OpenRouterClient
from ats_proxy.services.rate_limiter import FixedWindowRateLimiter
from ats_proxy.services.reshaper import (
    ResumeParseError,
    build_resume_messages,
    extract_json_object,
    first_choice_content,
    process_models,
    reject_json_constant,
    shape_chat_completion,
)
from ats_proxy.utils.time_info import iso_timestamp
from ats_proxy.validation import validate_chat_request, validate_parse_resume_request
from config import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    HOST,
    LOG_LEVEL,
    PORT,
    RATE_LIMIT_MESSAGE,
    RESUME_MAX_TOKENS,
    RESUME_TEMPERATURE,
    ProxySettings,
    server_settings,
)


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("ATS-Proxy")

API_PREFIX = "/api"

ENDPOINTS = {
    "GET /api/health": "Health check",
    "GET /api/models": "List available AI models",
    "POST /api/chat": "AI chat completion",
    "POST /api/parse-resume": "Parse resume with AI",
}

# Helmet-style response hardening; CSP is left to the frontend host.
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-DNS-Prefetch-Control": "off",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
}


# =========================================================================
# RESPONSE / REQUEST HELPERS
# =========================================================================

def error_response(status_code: int, error: str, code: str, **extra: Any) -> JSONResponse:
    """Build the {error, code, ...} envelope every failure uses."""
    body = ErrorResponse(error=error, code=code, **extra)
    return JSONResponse(status_code=status_code, content=body.to_wire())


def upstream_error_response(err: UpstreamError) -> JSONResponse:
    return JSONResponse(status_code=err.http_status, content=err.to_response().to_wire())


def api_key_missing_response() -> JSONResponse:
    return error_response(500, "API key not configured on server", API_KEY_MISSING)


class RequestBodyError(Exception):
    """The body could not be read as JSON (too large or malformed)."""

    def __init__(self, status_code: int, message: str, code: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code

    def to_response(self) -> JSONResponse:
        return error_response(self.status_code, self.message, self.code)


async def read_json_body(request: Request) -> Any:
    """
    Decode the request body as JSON. An empty body reads as {} so it fails
    field validation rather than JSON parsing. NaN / Infinity literals are
    rejected like any other malformed JSON.
    """
    max_bytes = request.app.state.settings.max_body_bytes
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > max_bytes:
        raise RequestBodyError(413, "Request body too large", PAYLOAD_TOO_LARGE)

    # Chunked uploads carry no Content-Length, so the cap is enforced while reading.
    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > max_bytes:
            raise RequestBodyError(413, "Request body too large", PAYLOAD_TOO_LARGE)
        chunks.append(chunk)
    raw = b"".join(chunks)

    if not raw.strip():
        return {}
    try:
        return json.loads(raw, parse_constant=reject_json_constant)
    except ValueError:
        raise RequestBodyError(400, "Request body must be valid JSON", VALIDATION_ERROR)


def client_ip(request: Request, trust_proxy: bool) -> str:
    """Caller's IP: first X-Forwarded-For hop behind a trusted proxy, else the socket peer."""
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
        if forwarded:
            return forwarded
    return request.client.host if request.client else "unknown"


def is_api_key_configured(settings: ProxySettings) -> bool:
    return bool(settings.api_key) and len(settings.api_key) > settings.min_api_key_length


def _is_api_path(path: str) -> bool:
    return path == API_PREFIX or path.startswith(API_PREFIX + "/")


# =========================================================================
# API ENDPOINTS
# =========================================================================

root_router = APIRouter()
api_router = APIRouter(prefix=API_PREFIX)


@root_router.get("/")
async def root():
    """Return the API name and a short description of each endpoint (for discovery)."""
    return {"message": "ATS Resume Builder API", "endpoints": ENDPOINTS}


@api_router.get("/health")
async def health(request: Request):
    """Liveness check. apiConfigured says whether a usable OpenRouter key is set; the key itself is never echoed."""
    settings = request.app.state.settings
    return HealthResponse(
        timestamp=iso_timestamp(),
        api_configured=is_api_key_configured(settings),
    ).to_wire()


@api_router.get("/models")
async def list_models(request: Request):
    """
    List OpenRouter models for the model picker.

    RESPONSE:
    {
        "success": true,
        "models": [{"id": "meta-llama/llama-3.1-8b-instruct:free", "name": "...", "isFree": true}, ...],
        "totalCount": 312
    }
    """
    openrouter: OpenRouterClient = request.app.state.openrouter
    if not openrouter.is_configured:
        return api_key_missing_response()

    try:
        result = await openrouter.list_models()
        if isinstance(result, UpstreamError):
            return upstream_error_response(result)
        return process_models(result).to_wire()
    except Exception as e:
        logger.error(f"Error fetching models: {e}", exc_info=True)
        return error_response(500, "Failed to connect to OpenRouter API", CONNECTION_ERROR)


@api_router.post("/chat")
async def chat(request: Request):
    """
    Chat completion proxy.

    HOW IT WORKS:
    1. Validates the body, collecting every problem (400 with `details` on failure)
    2. Fills in defaults: free model, temperature 0.6, max_tokens 1000
    3. Forwards {model, messages, temperature, max_tokens} to OpenRouter
    4. Returns only the first choice's text, the model used, and usage

    REQUEST BODY:
    {
        "messages": [{"role": "user", "content": "Rewrite this bullet point..."}],
        "model": "optional-model-id",
        "temperature": 0.6,
        "max_tokens": 1000
    }

    RESPONSE:
    {
        "success": true,
        "content": "...",
        "model": "meta-llama/llama-3.1-8b-instruct:free",
        "usage": {"prompt_tokens": 12, "completion_tokens": 40, "total_tokens": 52}
    }
    """
    try:
        body = await read_json_body(request)
    except RequestBodyError as e:
        return e.to_response()

    errors = validate_chat_request(body)
    if errors:
        logger.warning("Rejected chat request: %s", "; ".join(errors))
        return error_response(400, "Invalid request", VALIDATION_ERROR, details=errors)

    openrouter: OpenRouterClient = request.app.state.openrouter
    if not openrouter.is_configured:
        return api_key_missing_response()

    try:
        model = body.get("model") or request.app.state.settings.default_model
        temperature = body.get("temperature", DEFAULT_TEMPERATURE)
        max_tokens = int(body.get("max_tokens", DEFAULT_MAX_TOKENS))

        result = await openrouter.complete(model, body["messages"], temperature, max_tokens)
        if isinstance(result, UpstreamError):
            return upstream_error_response(result)
        return shape_chat_completion(result, model).to_wire()
    except Exception as e:
        logger.error(f"Chat endpoint error: {e}", exc_info=True)
        return error_response(500, "Failed to process AI request", SERVER_ERROR)


@api_router.post("/parse-resume")
async def parse_resume(request: Request):
    """
    Structured resume extraction.

    Sends the first 12,000 characters of `text` to the model with a fixed prompt
    (temperature 0.3, max_tokens 2000) and decodes the outermost {...} in its reply.
    If no JSON can be decoded the reply comes back as `rawContent` with a 422, so
    the frontend can fall back to its own parsing.

    REQUEST BODY:
    {"text": "Jane Doe\\njane@example.com\\n...", "model": "optional-model-id"}

    RESPONSE:
    {"success": true, "data": {"name": "Jane Doe", "email": "...", ...}, "method": "ai"}
    """
    try:
        body = await read_json_body(request)
    except RequestBodyError as e:
        return e.to_response()

    errors = validate_parse_resume_request(body)
    if errors:
        logger.warning("Rejected parse-resume request: %s", "; ".join(errors))
        return error_response(400, errors[0], VALIDATION_ERROR)

    openrouter: OpenRouterClient = request.app.state.openrouter
    if not openrouter.is_configured:
        return api_key_missing_response()

    try:
        model = body.get("model") or request.app.state.settings.default_model
        result = await openrouter.complete(
            model,
            build_resume_messages(body["text"]),
            RESUME_TEMPERATURE,
            RESUME_MAX_TOKENS,
            fallback_error="AI parsing failed",
        )
        if isinstance(result, UpstreamError):
            return upstream_error_response(result)

        content = first_choice_content(result)
        try:
            parsed = extract_json_object(content)
        except ResumeParseError as e:
            logger.warning(f"Resume parse failed ({e.message}); returning raw model output")
            return error_response(422, e.message, PARSE_ERROR, raw_content=e.content)
        return ParseResumeResponse(data=parsed).to_wire()
    except Exception as e:
        logger.error(f"Parse resume error: {e}", exc_info=True)
        return error_response(500, "Failed to parse resume", SERVER_ERROR)


# -------------------------------------------------------------------------
# STARTUP BANNER
# -------------------------------------------------------------------------

def log_startup_banner(settings: ProxySettings) -> None:
    logger.info("=" * 50)
    logger.info("ATS Resume Builder API Server")
    logger.info("=" * 50)
    logger.info("Upstream: %s", settings.base_url)
    logger.info("API Key configured: %s", "Yes" if settings.api_key else "No")
    logger.info("Allowed origins: %s", ", ".join(settings.allowed_origins))
    logger.info(
        "Rate limit: %s requests / %s min per IP",
        settings.rate_limit_max_requests,
        int(settings.rate_limit_window_seconds // 60),
    )
    logger.info("=" * 50)
    logger.info("Available endpoints:")
    for route, description in ENDPOINTS.items():
        logger.info("  %-24s - %s", route, description)
    logger.info("=" * 50)


# -------------------------------------------------------------------------
# APPLICATION FACTORY
# -------------------------------------------------------------------------

def create_app(
    settings: Optional[ProxySettings] = None,
    rate_limiter: Optional[FixedWindowRateLimiter] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the FastAPI app for one deployment profile.

    - settings: defaults to server_settings() (env-driven, restricted CORS).
    - rate_limiter: defaults to a fresh 100-per-15-minutes limiter owned by this app.
    - transport: httpx transport for OpenRouter calls; tests pass httpx.MockTransport.
    """
    settings = settings or server_settings()
    if rate_limiter is None:
        rate_limiter = FixedWindowRateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    openrouter = OpenRouterClient(
        api_key=settings.api_key,
        base_url=settings.base_url,
        app_title=settings.app_title,
        referer=settings.referer,
        timeout=settings.upstream_timeout_seconds,
        transport=transport,
    )
    retry_after_minutes = int(settings.rate_limit_window_seconds // 60)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Log the banner on startup; close the OpenRouter connection pool on shutdown."""
        log_startup_banner(settings)
        yield
        await openrouter.aclose()
        logger.info("ATS proxy shut down")

    app = FastAPI(
        title="ATS Resume Builder API",
        description="Secure proxy between the resume builder frontend and OpenRouter",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.rate_limiter = rate_limiter
    app.state.openrouter = openrouter

    # Middleware added later wraps middleware added earlier: CORS ends up outermost,
    # then security headers, then the rate limiter closest to the routes.

    @app.middleware("http")
    async def rate_limit_requests(request: Request, call_next):
        path = request.url.path
        logger.info("%s %s", request.method, path)
        if not _is_api_path(path):
            return await call_next(request)

        client_id = client_ip(request, settings.trust_proxy)
        allowed = rate_limiter.admit(client_id)
        headers = {
            "RateLimit-Limit": str(rate_limiter.max_requests),
            "RateLimit-Remaining": str(rate_limiter.remaining(client_id)),
            "RateLimit-Reset": str(rate_limiter.seconds_until_reset(client_id)),
        }
        if not allowed:
            logger.warning("Rate limit exceeded for %s", client_id)
            headers["Retry-After"] = headers["RateLimit-Reset"]
            body = RateLimitResponse(error=RATE_LIMIT_MESSAGE, retry_after=retry_after_minutes)
            return JSONResponse(status_code=429, content=body.to_wire(), headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    # "*" reflects the caller's Origin back (a literal "*" is refused by browsers
    # on credentialed requests).
    allow_any_origin = "*" in settings.allowed_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[] if allow_any_origin else settings.allowed_origins,
        allow_origin_regex=".*" if allow_any_origin else None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(404, "Endpoint not found", NOT_FOUND)
        if exc.status_code == 405:
            return error_response(405, "Method not allowed", METHOD_NOT_ALLOWED)
        return error_response(exc.status_code, str(exc.detail), SERVER_ERROR)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error: {exc}", exc_info=True)
        return error_response(500, "Internal server error", SERVER_ERROR)

    app.include_router(root_router)
    app.include_router(api_router)
    return app


# -------------------------------------------------------------------------
# STANDALONE RUN (python -m ats_proxy.main)
# -------------------------------------------------------------------------
def run(argv: Optional[List[str]] = None):
    """
    Start the long-running server with uvicorn. Refuses to start without
    OPENROUTER_API_KEY; the serverless entry point (api/index.py) serves anyway
    and answers API_KEY_MISSING per request instead.
    """
    settings = server_settings()
    if not settings.api_key:
        logger.error("OPENROUTER_API_KEY environment variable is not set!")
        logger.error("Please create a .env file with your API key. See .env.example for reference.")
        sys.exit(1)

    reload = "--reload" in (argv if argv is not None else sys.argv[1:])
    uvicorn.run(
        "ats_proxy.main:create_app",
        factory=True,
        host=HOST,
        port=PORT,
        reload=reload,
        log_level="info"
    )


if __name__ == "__main__":
    run()
