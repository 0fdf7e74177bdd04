"""
ATS PROXY APPLICATION PACKAGE
=============================

Backend proxy for the ATS Resume Builder. The browser never sees the OpenRouter
key: it calls this service, which validates the request, applies a per-IP rate
limit, forwards to OpenRouter and returns a trimmed-down JSON envelope.

  from ats_proxy.main import create_app
  from ats_proxy.validation import validate_chat_request

FILE STRUCTURE:
  ats_proxy/
    __init__.py   - This file; marks 'ats_proxy' as a package.
    main.py       - FastAPI app factory, middleware and the four /api endpoints.
    models.py     - Pydantic models for response envelopes and upstream errors.
    validation.py - Request body checks that collect every violation.
    services/     - OpenRouter client, response reshaping, rate limiter.
    utils/        - Helpers: ISO timestamps for the health check.
"""
