"""
Production settings: the sync commands run from a scheduler (cron or a one-off
container) against Postgres, and the admin is the only web surface.
Use via: DJANGO_SETTINGS_MODULE=config.settings.production
"""
import dj_database_url

from .base import *  # noqa: F403

DEBUG = False

CSRF_TRUSTED_ORIGINS = get_list("CSRF_TRUSTED_ORIGINS", [])  # noqa: F405

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = get_bool("SECURE_SSL_REDIRECT", True)  # noqa: F405
SECURE_HSTS_SECONDS = 3600
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True

# DATABASE_URL wins over the POSTGRES_* variables from base.py. Sync runs hold
# one connection for minutes, so health checks guard against stale sockets.
_database_url = get_env("DATABASE_URL")  # noqa: F405
if _database_url:
    DATABASES = {  # noqa: F405
        "default": dj_database_url.parse(
            _database_url,
            conn_max_age=600,
            conn_health_checks=True,
        )
    }

# Admin static assets are served by WhiteNoise straight after SecurityMiddleware.
STATIC_ROOT = BASE_DIR / "staticfiles"  # noqa: F405
MIDDLEWARE = [  # noqa: F405
    MIDDLEWARE[0],  # noqa: F405
    "whitenoise.middleware.WhiteNoiseMiddleware",
    *MIDDLEWARE[1:],  # noqa: F405
]
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "verbose"},
    },
    "root": {"handlers": ["console"], "level": "INFO"},
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        "httpx": {"level": "WARNING"},
        "apps.esports": {
            "handlers": ["console"],
            "level": get_env("SYNC_LOG_LEVEL", "INFO"),  # noqa: F405
            "propagate": False,
        },
    },
}
