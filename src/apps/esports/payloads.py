"""
Helpers that turn raw PandaScore JSON values into model field values.

PandaScore payloads are loosely typed: ids arrive as ints or strings,
timestamps may be missing or malformed, and prize pools are free text such as
"250,000 United States Dollar". Everything here is tolerant of that and only
raises `MalformedRecord` when a record cannot be keyed at all.
"""
import logging
import re
from datetime import date, datetime, timezone as dt_timezone
from typing import Any

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from django.utils.text import slugify

logger = logging.getLogger(__name__)

CURRENCY_CODES = {
    "Turkish Lira": "TRY",
    "Bulgarian Lev": "BGN",
    "Japanese Yen": "JPY",
    "Brazilian Real": "BRL",
    "Czech Koruna": "CZK",
    "Norwegian Krone": "NOK",
    "Polish Zloty": "PLN",
    "Australian Dollar": "AUD",
    "Argentine Peso": "ARS",
    "Danish Krone": "DKK",
    "United States Dollar": "USD",
    "Swiss Franc": "CHF",
    "Qatari Riyal": "QAR",
    "British Pound": "GBP",
    "Chinese Yuan": "CNY",
    "South African Rand": "ZAR",
    "Ukrainian Hryvnia": "UAH",
    "Swedish Krona": "SEK",
    "Euro": "EUR",
    "Russian Ruble": "RUB",
    "Kazakhstani Tenge": "KZT",
    "Croatian Kuna": "HRK",
}

_LEADING_AMOUNT = re.compile(r"^[0-9, ]+")
_NON_DIGITS = re.compile(r"\D")


class MalformedRecord(ValueError):
    pass


def external_id(record: Any, *, as_int: bool = False) -> str | int:
    if not isinstance(record, dict):
        raise MalformedRecord(f"expected an object, got {type(record).__name__}")

    raw = record.get("id")
    if raw is None or raw == "" or isinstance(raw, (bool, dict, list)):
        raise MalformedRecord(f"record has no usable id: {raw!r}")

    if as_int:
        value = to_int(raw)
        if value is None:
            raise MalformedRecord(f"id is not an integer: {raw!r}")
        return value
    return str(raw)


def ref_id(value: Any) -> str | None:
    """External id of a nested reference (`{"id": 7, ...}`), or None."""
    if isinstance(value, dict):
        value = value.get("id")
    if value is None or value == "" or isinstance(value, (bool, dict, list)):
        return None
    return str(value)


def to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def clip(value: Any, max_length: int) -> str:
    if value is None:
        return ""
    return str(value)[:max_length]


def parse_timestamp(value: Any, *, field: str, ref: Any = None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = parse_datetime(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        logger.warning("Invalid %s format for %s: %r", field, ref, value)
        return None
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def parse_birthday(value: Any, *, ref: Any = None) -> date | None:
    if not value:
        return None
    try:
        parsed = parse_date(str(value)[:10])
    except ValueError:
        parsed = None
    if parsed is None:
        logger.warning("Invalid birthday format for %s: %r", ref, value)
    return parsed


def normalize_prizepool(raw: Any) -> tuple[str | None, str]:
    """
    Split a prize pool string into (amount, ISO currency code).

    "250,000 United States Dollar" -> ("250000", "USD"). The amount is every
    digit in the string; an unknown currency keeps the amount and logs the
    name. Empty or zero prize pools become (None, "").
    """
    if raw is None or raw == "":
        return None, ""

    text = str(raw).strip()
    digits = _NON_DIGITS.sub("", text)
    amount = int(digits) if digits else 0
    if amount <= 0:
        return None, ""

    currency_name = _LEADING_AMOUNT.sub("", text).strip()
    code = CURRENCY_CODES.get(currency_name)
    if code is None:
        logger.warning("Unknown currency in prizepool %r (currency name %r)", text, currency_name)
        return str(amount), ""
    return str(amount), code


def unique_slug(model, name: str, reserved: set[str], *, fallback: str = "") -> str:
    """
    Slugify `name` and suffix it (-2, -3, ...) until it clashes neither with a
    stored row nor with a slug already handed out in this batch.
    """
    max_length = model._meta.get_field("slug").max_length
    base = slugify(name)[: max_length - 12] or slugify(fallback)[: max_length - 12] or "item"

    taken = set(model.objects.filter(slug__startswith=base).values_list("slug", flat=True))
    taken |= reserved

    candidate = base
    suffix = 2
    while candidate in taken:
        candidate = f"{base}-{suffix}"
        suffix += 1

    reserved.add(candidate)
    return candidate
