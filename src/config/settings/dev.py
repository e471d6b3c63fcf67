from .base import *  # noqa: F403

DEBUG = True

LOGGING["loggers"]["apps.esports"] = {"level": "DEBUG"}  # noqa: F405
