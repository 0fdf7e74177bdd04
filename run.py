"""
RUN SCRIPT - Start the ATS Resume Builder API proxy
====================================================

PURPOSE:
  Entry point for the long-running server deployment. Serverless platforms use
  api/index.py instead.

WHAT IT DOES:
  - Checks OPENROUTER_API_KEY is set; exits with status 1 if it isn't.
  - Runs ats_proxy.main:create_app with uvicorn on HOST:PORT (default 0.0.0.0:3001).
  - Pass --reload to restart on code changes during development.

USAGE:
  python run.py [--reload]

  Then call http://localhost:3001/api/health from the frontend or curl.
  API docs: http://localhost:3001/docs
"""

from ats_proxy.main import run

# ------------------------------------------------------------------------------
# ENTRY POINT
# ------------------------------------------------------------------------------
if __name__ == "__main__":
    run()
