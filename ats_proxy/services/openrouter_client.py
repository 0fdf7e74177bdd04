"""
OPENROUTER CLIENT MODULE
========================

Thin async wrapper around the two OpenRouter endpoints the proxy uses:

  GET  {base_url}/models            - list_models()
  POST {base_url}/chat/completions  - complete(model, messages, temperature, max_tokens)

Every call carries the bearer key, a JSON content type and the X-Title header
that identifies this application to OpenRouter (plus HTTP-Referer when the
deployment profile names a public origin).

FAILURES:
  Nothing raises past this module. A failed call returns an UpstreamError:
  - upstream answered non-2xx -> OPENROUTER_ERROR with upstream's own message
    (error.message in its body) or a per-call fallback, and upstream's status.
  - upstream unreachable, timed out, or sent a body that isn't JSON ->
    CONNECTION_ERROR with status 500.
  There are no retries; the route handler reports the failure straight away.
"""

import logging
from typing import Any, Dict, List, Optional, Union

import httpx

from ats_proxy.models import CONNECTION_ERROR, OPENROUTER_ERROR, UpstreamError

logger = logging.getLogger("ATS-Proxy")

CONNECTION_ERROR_MESSAGE = "Failed to connect to OpenRouter API"


# ==============================================================================
# OPENROUTER CLIENT CLASS
# ==============================================================================

class OpenRouterClient:
    """
    One instance per application. Holds a single httpx.AsyncClient so connections
    are reused across requests; call aclose() on shutdown.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        app_title: str,
        referer: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """transport is only passed in tests (httpx.MockTransport) to fake OpenRouter."""
        self.api_key = api_key
        self.app_title = app_title
        self.referer = referer
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": self.app_title,
        }
        if self.referer:
            headers["HTTP-Referer"] = self.referer
        return headers

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------------------
    # REQUEST / ERROR MAPPING
    # ------------------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        fallback_error: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Union[Any, UpstreamError]:
        """Send one request and return the decoded JSON body, or an UpstreamError."""
        try:
            response = await self._client.request(method, path, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error("OpenRouter %s %s failed: %s", method, path, e)
            return UpstreamError(message=CONNECTION_ERROR_MESSAGE, code=CONNECTION_ERROR, http_status=500)
        except (TypeError, ValueError) as e:
            # Payload that cannot be encoded as JSON (NaN, non-serialisable values).
            logger.error("Could not encode OpenRouter %s %s payload: %s", method, path, e)
            return UpstreamError(message=CONNECTION_ERROR_MESSAGE, code=CONNECTION_ERROR, http_status=500)

        if not response.is_success:
            message = _upstream_error_message(response) or fallback_error
            logger.error("OpenRouter error (%s) on %s %s: %s", response.status_code, method, path, message)
            return UpstreamError(message=message, code=OPENROUTER_ERROR, http_status=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            logger.error("OpenRouter returned a non-JSON body for %s %s: %s", method, path, e)
            return UpstreamError(message=CONNECTION_ERROR_MESSAGE, code=CONNECTION_ERROR, http_status=500)

    # ------------------------------------------------------------------------------
    # PUBLIC CALLS
    # ------------------------------------------------------------------------------

    async def list_models(self) -> Union[List[Any], UpstreamError]:
        """Return OpenRouter's raw model list (the `data` array), or an UpstreamError."""
        result = await self._request("GET", "/models", fallback_error="Failed to fetch models")
        if isinstance(result, UpstreamError):
            return result
        models = result.get("data") if isinstance(result, dict) else None
        return models if isinstance(models, list) else []

    async def complete(
        self,
        model: str,
        messages: List[Any],
        temperature: float,
        max_tokens: int,
        fallback_error: str = "AI request failed",
    ) -> Union[Dict[str, Any], UpstreamError]:
        """Run one chat completion and return OpenRouter's raw JSON response, or an UpstreamError."""
        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        logger.info("Sending request to OpenRouter (model: %s)", model)
        result = await self._request("POST", "/chat/completions", fallback_error=fallback_error, payload=payload)
        if isinstance(result, UpstreamError):
            return result
        if not isinstance(result, dict):
            logger.error("OpenRouter returned an unexpected completion body: %r", type(result))
            return UpstreamError(message=CONNECTION_ERROR_MESSAGE, code=CONNECTION_ERROR, http_status=500)
        logger.info("Response received from OpenRouter")
        return result


def _upstream_error_message(response: httpx.Response) -> Optional[str]:
    """Pull error.message out of an OpenRouter error body; None if it isn't there."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if message:
            return str(message)
    return None
