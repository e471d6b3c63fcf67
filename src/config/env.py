"""Typed readers for environment variables used by the settings modules."""
import os


def get_env(name, default=None, *, required=False):
    value = os.getenv(name, default)
    if required and value is None:
        raise RuntimeError(f"Missing required env var: {name}")
    return value


def get_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def get_list(name, default=None, *, separator=","):
    value = os.getenv(name)
    if value is None:
        return default or []
    return [item.strip() for item in value.split(separator) if item.strip()]


def _get_number(name, default, cast):
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return cast(value)
    except ValueError as exc:
        raise RuntimeError(f"Env var {name} must be a number, got {value!r}") from exc


def get_int(name, default=0):
    return _get_number(name, default, int)


def get_float(name, default=0.0):
    return _get_number(name, default, float)
