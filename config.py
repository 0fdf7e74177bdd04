"""
CONFIGURATION MODULE
====================

PURPOSE:
  Central place for all proxy settings: the OpenRouter credential, upstream URL,
  request limits, rate-limit window, CORS origins, and the resume parser prompts.
  The API key lives only in the environment (or a local .env file); it is never
  sent to the browser and never logged.

WHAT THIS FILE DOES:
  - Loads environment variables from .env (so the API key stays out of code).
  - Exposes OPENROUTER_API_KEY, OPENROUTER_BASE_URL, PORT, ALLOWED_ORIGINS.
  - Defines validation bounds, chat defaults, and the fallback free model.
  - Holds the system/user prompt used by POST /api/parse-resume.
  - Builds the two deployment profiles (long-running server, serverless function).

USAGE:
  Import what you need: `from config import DEFAULT_MODEL, server_settings`
  The application factory takes a ProxySettings object, so tests can build
  their own profile instead of touching the environment.
"""

import os
from typing import List, Optional
from dotenv import load_dotenv
from pydantic import BaseModel


# -----------------------------------------------------------------------------
# ENVIRONMENT
# -----------------------------------------------------------------------------
# Load environment variables from .env file (if it exists).
load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


# ============================================================================
# OPENROUTER API CONFIGURATION
# ============================================================================
# OpenRouter is the upstream chat-completions provider. Every request carries
# the bearer key below plus an X-Title header identifying this application.

OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "").strip()
OPENROUTER_BASE_URL = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1").rstrip("/")
APP_TITLE = "ATS Resume Builder"

# Free-tier model used whenever the caller does not name one (chat and resume parsing).
DEFAULT_MODEL = "meta-llama/llama-3.1-8b-instruct:free"

# No retries are made; a slow upstream fails the request after this many seconds.
UPSTREAM_TIMEOUT_SECONDS = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "30"))


# ============================================================================
# SERVER CONFIGURATION
# ============================================================================
# PORT and HOST only matter for the long-running server (run.py).
# ALLOWED_ORIGINS is a comma-separated list; the serverless profile accepts any origin.

PORT = int(os.getenv("PORT", "3001"))
HOST = os.getenv("HOST", "0.0.0.0")

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5500",
    "http://127.0.0.1:5500",
    "https://my-ats-resume.vercel.app",
]


def _load_allowed_origins() -> List[str]:
    """Split ALLOWED_ORIGINS on commas, dropping blanks; fall back to the development defaults."""
    raw = os.getenv("ALLOWED_ORIGINS", "")
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or list(DEFAULT_ALLOWED_ORIGINS)


ALLOWED_ORIGINS = _load_allowed_origins()


# ============================================================================
# REQUEST LIMITS
# ============================================================================
# Bounds enforced by ats_proxy.validation. Resume text is capped at 100K chars,
# but only the first RESUME_PROMPT_CHAR_LIMIT characters are sent to the model.

ALLOWED_ROLES = ("system", "user", "assistant")
MAX_MESSAGE_LENGTH = 50_000
MAX_RESUME_LENGTH = 100_000
RESUME_PROMPT_CHAR_LIMIT = 12_000

MIN_TEMPERATURE = 0
MAX_TEMPERATURE = 2
MIN_MAX_TOKENS = 1
MAX_MAX_TOKENS = 4000

DEFAULT_TEMPERATURE = 0.6
DEFAULT_MAX_TOKENS = 1000

# Resume parsing always runs cold and with room for the full JSON document.
RESUME_TEMPERATURE = 0.3
RESUME_MAX_TOKENS = 2000

# Only the first MODEL_LIST_LIMIT models are returned by GET /api/models.
MODEL_LIST_LIMIT = 50


# ============================================================================
# RATE LIMITING
# ============================================================================
# 100 requests per 15 minutes per client IP, shared by every route under /api.

RATE_LIMIT_WINDOW_SECONDS = 15 * 60
RATE_LIMIT_MAX_REQUESTS = 100
RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again after 15 minutes"


# ============================================================================
# RESUME PARSER PROMPTS
# ============================================================================
# The model is asked for a single JSON document; ats_proxy.services.reshaper
# pulls the outermost {...} span out of whatever text comes back.

RESUME_PARSER_SYSTEM_PROMPT = (
    "You are a precise resume parser. You extract structured data from resume text "
    "and return valid JSON only. You follow instructions exactly."
)

RESUME_PARSER_USER_TEMPLATE = """Parse this resume and extract all information into JSON format.

=== RESUME TEXT ===
{resume_text}
=== END RESUME TEXT ===

EXTRACT AND RETURN THIS EXACT JSON STRUCTURE:

{{
    "name": "Full Name from resume",
    "email": "email@domain.com",
    "phone": "phone number",
    "location": "City, State",
    "linkedin": "linkedin URL if present",
    "portfolio": "website URL if present",
    "summary": "Professional summary paragraph if present",
    "experience": [
        {{
            "title": "Exact Job Title",
            "company": "Company Name",
            "dates": "Start - End dates",
            "location": "Job location",
            "bullets": "• bullet 1\\n• bullet 2\\n• bullet 3"
        }}
    ],
    "education": [
        {{
            "degree": "Degree Type and Field (e.g., Bachelor of Science in Computer Science)",
            "school": "Institution Name (e.g., Stanford University)",
            "dates": "Year or date range",
            "details": "GPA, honors if present"
        }}
    ],
    "skills": {{
        "technical": "comma-separated technical skills",
        "soft": "comma-separated soft skills",
        "tools": "comma-separated tools"
    }},
    "projects": [
        {{
            "name": "Project name",
            "tech": "Technologies",
            "description": "Brief description"
        }}
    ],
    "certifications": [
        {{
            "name": "Certification name",
            "issuer": "Issuer",
            "date": "Date"
        }}
    ]
}}

RULES:
1. "degree" = degree type + field of study (NOT school name)
2. "school" = institution name only
3. Extract ALL work experiences found
4. Keep bullet points as-is with • prefix
5. Return ONLY the JSON, no explanations
6. If a field is not found, use empty string ""

OUTPUT: Valid JSON only, nothing else."""


# ============================================================================
# DEPLOYMENT PROFILES
# ============================================================================
# The same FastAPI app serves both deployment shapes. The differences between a
# long-running server and a per-invocation serverless function are captured here.

class ProxySettings(BaseModel):
    """
    Everything the application factory needs. Defaults describe the long-running
    server; serverless_settings() relaxes CORS and raises the body cap.
    """
    api_key: str = ""
    base_url: str = "https://openrouter.ai/api/v1"
    app_title: str = APP_TITLE
    # Sent upstream as HTTP-Referer when set.
    referer: Optional[str] = None
    default_model: str = DEFAULT_MODEL
    allowed_origins: List[str] = ["*"]
    max_body_bytes: int = 1 * 1024 * 1024
    # health reports apiConfigured only for keys longer than this.
    min_api_key_length: int = 0
    # Use the first X-Forwarded-For hop as the client IP (behind a platform proxy).
    trust_proxy: bool = False
    rate_limit_max_requests: int = RATE_LIMIT_MAX_REQUESTS
    rate_limit_window_seconds: float = RATE_LIMIT_WINDOW_SECONDS
    upstream_timeout_seconds: float = 30.0


def server_settings() -> ProxySettings:
    """Profile for run.py: restricted origins, 1 MB bodies, key required at startup."""
    return ProxySettings(
        api_key=OPENROUTER_API_KEY,
        base_url=OPENROUTER_BASE_URL,
        referer=ALLOWED_ORIGINS[0] if ALLOWED_ORIGINS else None,
        allowed_origins=ALLOWED_ORIGINS,
        max_body_bytes=1 * 1024 * 1024,
        min_api_key_length=0,
        trust_proxy=False,
        upstream_timeout_seconds=UPSTREAM_TIMEOUT_SECONDS,
    )


def serverless_settings() -> ProxySettings:
    """Profile for api/index.py: any origin, 5 MB bodies, stricter apiConfigured check."""
    return ProxySettings(
        api_key=OPENROUTER_API_KEY,
        base_url=OPENROUTER_BASE_URL,
        allowed_origins=["*"],
        max_body_bytes=5 * 1024 * 1024,
        min_api_key_length=10,
        trust_proxy=True,
        upstream_timeout_seconds=UPSTREAM_TIMEOUT_SECONDS,
    )
