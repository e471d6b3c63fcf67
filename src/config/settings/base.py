from pathlib import Path

from config.env import get_bool, get_env, get_float, get_int, get_list

BASE_DIR = Path(__file__).resolve().parents[2]

SECRET_KEY = get_env("SECRET_KEY", "dev-insecure-change-me")
DEBUG = get_bool("DEBUG", False)
ALLOWED_HOSTS = get_list("ALLOWED_HOSTS", ["localhost", "127.0.0.1"])

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "apps.esports.apps.EsportsConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"
ASGI_APPLICATION = "config.asgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": get_env("POSTGRES_DB", "esportsync"),
        "USER": get_env("POSTGRES_USER", "esportsync"),
        "PASSWORD": get_env("POSTGRES_PASSWORD", "esportsync"),
        "HOST": get_env("POSTGRES_HOST", "db"),
        "PORT": get_env("POSTGRES_PORT", "5432"),
    }
}

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

PANDASCORE_TOKEN = get_env("PANDASCORE_TOKEN")
PANDASCORE_BASE_URL = get_env("PANDASCORE_BASE_URL", "https://api.pandascore.co/csgo")
PANDASCORE_TIMEOUT = get_int("PANDASCORE_TIMEOUT", 30)
PANDASCORE_RATE_LIMIT = get_int("PANDASCORE_RATE_LIMIT", 2)
PANDASCORE_MAX_ATTEMPTS = get_int("PANDASCORE_MAX_ATTEMPTS", 3)
PANDASCORE_RETRY_DELAY = get_float("PANDASCORE_RETRY_DELAY", 5.0)
PANDASCORE_GAME_FETCH_SPACING = get_float("PANDASCORE_GAME_FETCH_SPACING", 0.5)

SYNC_LAST_GAMES_LIMIT = get_int("SYNC_LAST_GAMES_LIMIT", 5)
SYNC_BATCH_PAUSE_MS = get_int("SYNC_BATCH_PAUSE_MS", 200)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {"console": {"class": "logging.StreamHandler", "formatter": "simple"}},
    "root": {"handlers": ["console"], "level": "INFO"},
    "loggers": {
        "httpx": {"level": "WARNING"},
    },
}
