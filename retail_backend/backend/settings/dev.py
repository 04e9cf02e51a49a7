# backend/settings/dev.py
"""
PATH: backend/settings/dev.py

LOCAL DEVELOPMENT
SQLite by default (DATABASE_URL overrides), the Vite dev server as the only
allowed origin, and domain loggers at DEBUG unless LOG_LEVEL says otherwise.
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import DOMAIN_LOGGERS, LOGGING, env

DEBUG = True

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["localhost", "127.0.0.1"])

_frontend = ["http://localhost:5173", "http://127.0.0.1:5173"]
CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS", default=_frontend)
CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS", default=_frontend)
CORS_ALLOW_CREDENTIALS = True

_level = env("LOG_LEVEL", default="DEBUG").upper()
for _logger in DOMAIN_LOGGERS:
    LOGGING["loggers"][_logger]["level"] = _level
