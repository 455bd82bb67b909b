"""Django settings for the check-in relay service."""

from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value in (None, ""):
        return default
    return int(value)


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-insecure-secret-key")
DEBUG = _env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",")
    if host.strip()
]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "corsheaders",
    "rest_framework",
    "apps.common",
    "apps.crm",
    "apps.leads",
    "apps.panels",
    "apps.pipeline",
    "apps.checkins",
    "apps.workers",
]

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "apps.http_api.urls"
WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": os.environ.get("DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get("DB_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": os.environ.get("DB_USER", ""),
        "PASSWORD": os.environ.get("DB_PASSWORD", ""),
        "HOST": os.environ.get("DB_HOST", ""),
        "PORT": os.environ.get("DB_PORT", ""),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_TZ = True
USE_I18N = False

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "UNAUTHENTICATED_USER": None,
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_PARSER_CLASSES": ["rest_framework.parsers.JSONParser"],
    "EXCEPTION_HANDLER": "apps.common.api.exception_handler",
}

# Secrets at rest
ENCRYPTION_KEY = os.environ.get("ENCRYPTION_KEY", SECRET_KEY)

# CRM (Bitrix24) integration
CRM_HTTP_TIMEOUT_SECONDS = _env_int("CRM_HTTP_TIMEOUT_SECONDS", 15)
CRM_DEFAULT_LEAD_TITLE = os.environ.get("CRM_DEFAULT_LEAD_TITLE", "Novo Lead")
CRM_DEFAULT_PHOTO_FIELD = os.environ.get("CRM_DEFAULT_PHOTO_FIELD", "UF_CRM_1745431662")
CRM_SYNC_MAX_ATTEMPTS = _env_int("CRM_SYNC_MAX_ATTEMPTS", 5)
CRM_SYNC_INITIAL_DELAY = _env_int("CRM_SYNC_INITIAL_DELAY", 30)
CRM_SYNC_MAX_DELAY = _env_int("CRM_SYNC_MAX_DELAY", 900)

# Stage routing / relay
RELAY_HTTP_TIMEOUT_SECONDS = _env_int("RELAY_HTTP_TIMEOUT_SECONDS", 15)
RELAY_MAX_ATTEMPTS = _env_int("RELAY_MAX_ATTEMPTS", 1)
RELAY_RETRY_DELAY = _env_int("RELAY_RETRY_DELAY", 60)
STAGE_EVENT_DEDUPE_WINDOW_SECONDS = _env_int("STAGE_EVENT_DEDUPE_WINDOW_SECONDS", 0)

# Inbound webhooks are called from browsers on any origin.
CORS_ALLOW_ALL_ORIGINS = True
CORS_URLS_REGEX = r"^/webhooks/.*$"
CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

# Celery
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "memory://")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", "cache+memory://")
CELERY_TASK_ALWAYS_EAGER = _env_bool("CELERY_TASK_ALWAYS_EAGER", False)
CELERY_TASK_ACKS_LATE = True
CELERY_TASK_DEFAULT_QUEUE = "checkin-relay"
CELERY_TASK_SOFT_TIME_LIMIT = int(timedelta(minutes=1).total_seconds())

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        "apps": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
