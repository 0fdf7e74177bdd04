"""
SERVICES PACKAGE
=================

Business logic lives here. The API layer (ats_proxy.main) calls these services;
they don't build HTTP responses themselves.

MODULES:
    openrouter_client - Async OpenRouter calls; failures come back as UpstreamError values.
    reshaper          - Model list sorting, chat completion trimming, resume JSON extraction.
    rate_limiter      - Fixed-window request counter per client IP.
"""
