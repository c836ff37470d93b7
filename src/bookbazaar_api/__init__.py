"""
bookbazaar_api — HTTP API and CLI for the student textbook marketplace.

Architecture:
  middleware/  — Supabase JWT auth context, request logging, rate limiting
  routers/     — FastAPI routers (health, /v1/*)
  services/    — thin Supabase query/mutation wrappers, one module per area
  utils/       — structlog configuration, retry helpers, listing filters,
                 CLI session file
  cli.py       — click entrypoint (`bookbazaar ...`)

Start the API:
    uvicorn bookbazaar_api.app:app --reload --port 8000
"""

__version__ = "0.1.0"
