"""
DATA MODELS MODULE
==================

Pydantic models for everything the proxy sends back to the browser, plus the
error value the OpenRouter client returns instead of raising. Field names in
Python are snake_case; the JSON wire names (isFree, totalCount, rawContent,
retryAfter, apiConfigured) are set as aliases, so always dump with by_alias=True.

MODELS:
  ModelSummary          - One entry of GET /api/models (id, name, isFree).
  ModelListResponse     - Body of GET /api/models.
  ChatCompletionResponse- Body of POST /api/chat.
  ParseResumeResponse   - Body of POST /api/parse-resume.
  HealthResponse        - Body of GET /api/health.
  ErrorResponse         - Every failure: error message + code (+ details / rawContent).
  RateLimitResponse     - Body of a 429 from the rate limiter.
  UpstreamError         - Failure value produced by OpenRouterClient.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional

# ==============================================================================
# ERROR CODES
# ==============================================================================
# Each code maps to exactly one HTTP status, except OPENROUTER_ERROR which
# passes the upstream status through.

VALIDATION_ERROR = "VALIDATION_ERROR"
API_KEY_MISSING = "API_KEY_MISSING"
OPENROUTER_ERROR = "OPENROUTER_ERROR"
CONNECTION_ERROR = "CONNECTION_ERROR"
PARSE_ERROR = "PARSE_ERROR"
NOT_FOUND = "NOT_FOUND"
METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
SERVER_ERROR = "SERVER_ERROR"


class _WireModel(BaseModel):
    """Base for response bodies: accept python names, serialize camelCase aliases."""
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict. Only top-level None fields are dropped; nested payloads stay verbatim."""
        data = self.model_dump(by_alias=True)
        return {key: value for key, value in data.items() if value is not None}


# ==============================================================================
# SUCCESS ENVELOPES
# ==============================================================================

class ModelSummary(_WireModel):
    id: str
    name: str
    is_free: bool = Field(alias="isFree")


class ModelListResponse(_WireModel):
    """
    Response body for GET /api/models.

    - models: at most 50 entries, free models first.
    - total_count: size of the full upstream list, before truncation.
    """
    success: bool = True
    models: List[ModelSummary]
    total_count: int = Field(alias="totalCount")


class ChatCompletionResponse(_WireModel):
    """
    Response body for POST /api/chat.

    - model: the model actually sent upstream (after default substitution).
    - usage: OpenRouter's usage block, verbatim; left out when upstream omits it.
    """
    success: bool = True
    # Normally a string; passed through untouched if a provider sends structured content.
    content: Any
    model: str
    usage: Optional[Any] = None


class ParseResumeResponse(_WireModel):
    """Response body for POST /api/parse-resume. data is whatever JSON object the model produced."""
    success: bool = True
    data: Dict[str, Any]
    method: str = "ai"


class HealthResponse(_WireModel):
    status: str = "ok"
    timestamp: str
    api_configured: bool = Field(alias="apiConfigured")


# ==============================================================================
# ERROR ENVELOPES
# ==============================================================================

class ErrorResponse(_WireModel):
    """
    Body of every failed request.

    - details: one entry per validation violation (POST /api/chat only).
    - raw_content: the model's raw text when resume JSON extraction fails,
      so the caller can try its own fallback parsing.
    """
    error: str
    code: str
    details: Optional[List[str]] = None
    raw_content: Optional[str] = Field(default=None, alias="rawContent")


class RateLimitResponse(_WireModel):
    error: str
    retry_after: int = Field(alias="retryAfter")


class UpstreamError(BaseModel):
    """
    What OpenRouterClient returns when a call fails. Route handlers turn it into
    an ErrorResponse with http_status as the HTTP status code.
    """
    message: str
    code: str
    http_status: int

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.message, code=self.code)
