"""
CI / test settings. Runs against SQLite unless DATABASE_URL points at a real
database, and turns every sync delay off so the pipeline runs at full speed
against mocked transports.
Use via: DJANGO_SETTINGS_MODULE=config.settings.ci
"""
import dj_database_url

from .base import *  # noqa: F403

DEBUG = False

_database_url = get_env("DATABASE_URL")  # noqa: F405
if _database_url:
    DATABASES = {"default": dj_database_url.parse(_database_url)}
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "ci.sqlite3",  # noqa: F405
        }
    }

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

PANDASCORE_TOKEN = "test-token"
PANDASCORE_BASE_URL = "https://pandascore.test/csgo"
PANDASCORE_RETRY_DELAY = 0
PANDASCORE_GAME_FETCH_SPACING = 0
PANDASCORE_RATE_LIMIT = 1000
SYNC_BATCH_PAUSE_MS = 0
