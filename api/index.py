"""
SERVERLESS ENTRY POINT
======================

Platforms such as Vercel import this module and serve its module-level `app`
(an ASGI application) once per invocation. Compared with run.py this profile
accepts any origin, allows 5 MB bodies, reads the client IP from
X-Forwarded-For, and keeps serving without a key: each endpoint that needs
OpenRouter answers 500 API_KEY_MISSING instead.
"""

from ats_proxy.main import create_app
from config import serverless_settings

app = create_app(serverless_settings())
