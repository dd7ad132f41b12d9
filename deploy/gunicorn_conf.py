"""Gunicorn configuration for the dispatch service.

Usage:
    gunicorn dispatch_service.main:app -c deploy/gunicorn_conf.py

The coordinator keeps the authoritative state in process memory, so the
service runs exactly one worker.
"""

import os

# ── Server Socket ─────────────────────────────
bind = f"0.0.0.0:{os.getenv('SERVICE_PORT', '8001')}"

# ── Worker Processes ──────────────────────────
workers = 1
worker_class = "uvicorn.workers.UvicornWorker"

# ── Timeouts ──────────────────────────────────
timeout = int(os.getenv("GUNICORN_TIMEOUT", "60"))
graceful_timeout = int(os.getenv("GUNICORN_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.getenv("GUNICORN_KEEPALIVE", "5"))

# ── Logging ───────────────────────────────────
accesslog = None
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

proc_name = os.getenv("SERVICE_NAME", "dispatch_service")

limit_request_line = 8190
limit_request_fields = 100
limit_request_field_size = 8190
