# backend/settings/prod.py
"""
PATH: backend/settings/prod.py

PRODUCTION SETTINGS

Refuses to start unless the deployment is explicit:
SECRET_KEY, ALLOWED_HOSTS, a PostgreSQL DATABASE_URL and https-only
CORS / CSRF origins. Static files are served by WhiteNoise.
"""

from __future__ import annotations

from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa: F403
from .base import BASE_DIR, DOMAIN_LOGGERS, LOGGING, MIDDLEWARE, env


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ImproperlyConfigured(message)


DEBUG = False

SECRET_KEY = (env("SECRET_KEY", default="") or "").strip()
_require(
    bool(SECRET_KEY) and SECRET_KEY != "dev-insecure-change-me",
    "SECRET_KEY must be set to a strong value in production.",
)

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=[])
_require(bool(ALLOWED_HOSTS), "ALLOWED_HOSTS must be set in production.")

# ----------------------------
# Database (PostgreSQL via psycopg)
# ----------------------------
_database_url = (env("DATABASE_URL", default="") or "").strip()
_require(bool(_database_url), "DATABASE_URL must be set in production (PostgreSQL).")
_require(
    not _database_url.startswith("sqlite"),
    "Refusing to start in production with a SQLite DATABASE_URL.",
)

DATABASES = {"default": env.db("DATABASE_URL")}
DATABASES["default"]["CONN_MAX_AGE"] = env.int("DB_CONN_MAX_AGE", default=60)
# bill / purchase services lock rows with select_for_update
DATABASES["default"]["ATOMIC_REQUESTS"] = False

# ----------------------------
# Static files
# ----------------------------
STATIC_ROOT = env("STATIC_ROOT", default=str(BASE_DIR / "staticfiles"))
MIDDLEWARE.insert(1, "whitenoise.middleware.WhiteNoiseMiddleware")
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# ----------------------------
# Transport security
# ----------------------------
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = env.bool("SECURE_SSL_REDIRECT", default=True)
SECURE_HSTS_SECONDS = env.int("SECURE_HSTS_SECONDS", default=3600)
SECURE_HSTS_INCLUDE_SUBDOMAINS = env.bool("SECURE_HSTS_INCLUDE_SUBDOMAINS", default=True)
SECURE_HSTS_PRELOAD = env.bool("SECURE_HSTS_PRELOAD", default=False)

SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = "same-origin"
SECURE_CROSS_ORIGIN_OPENER_POLICY = "same-origin"
X_FRAME_OPTIONS = "DENY"

SESSION_COOKIE_SECURE = CSRF_COOKIE_SECURE = True
SESSION_COOKIE_HTTPONLY = CSRF_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = CSRF_COOKIE_SAMESITE = "Lax"

# ----------------------------
# CORS / CSRF origins
# ----------------------------
CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS", default=[])
CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS", default=[])
CORS_ALLOW_CREDENTIALS = False

for _name, _origins in (
    ("CORS_ALLOWED_ORIGINS", CORS_ALLOWED_ORIGINS),
    ("CSRF_TRUSTED_ORIGINS", CSRF_TRUSTED_ORIGINS),
):
    _require(bool(_origins), f"{_name} must be set in production.")
    _require(
        not any("localhost" in o or "127.0.0.1" in o for o in _origins),
        f"Remove localhost from {_name} in production.",
    )
    _require(
        all(o.startswith("https://") for o in _origins),
        f"{_name} must be https:// in production.",
    )

# ----------------------------
# Logging
# ----------------------------
_level = env("LOG_LEVEL", default="INFO").upper()
LOGGING["root"]["level"] = _level
for _logger in DOMAIN_LOGGERS:
    LOGGING["loggers"][_logger]["level"] = _level
