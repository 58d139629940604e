"""Normalization helpers shared by collectors.

Upstream APIs disagree on timestamp units and score precision; everything is
brought to a UTC datetime and a Decimal here before it reaches the store.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from app.domain import ensure_utc, parse_decimal

from .errors import PayloadError


# Anything above this is already in milliseconds (~2286-11-20 in seconds)
MILLISECONDS_THRESHOLD = 9_999_999_999

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def normalize_timestamp(raw: Any) -> datetime:
    """Convert an upstream timestamp into a UTC datetime.

    Accepts Unix seconds or milliseconds (as numbers or numeric strings) and
    ISO-8601 strings. Numbers above MILLISECONDS_THRESHOLD are milliseconds,
    anything else is seconds.

        >>> normalize_timestamp(1700000000).isoformat()
        '2023-11-14T22:13:20+00:00'

    Raises:
        PayloadError: if the value is missing or not a timestamp
    """
    if raw is None or isinstance(raw, bool):
        raise PayloadError(f"Missing timestamp: {raw!r}")

    if isinstance(raw, datetime):
        return ensure_utc(raw)

    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            raise PayloadError("Empty timestamp")
        try:
            number = Decimal(text)
        except InvalidOperation:
            return _parse_iso(text)
    elif isinstance(raw, (int, float, Decimal)):
        try:
            number = Decimal(str(raw))
        except InvalidOperation:
            raise PayloadError(f"Invalid timestamp: {raw!r}") from None
    else:
        raise PayloadError(f"Unsupported timestamp type: {type(raw).__name__}")

    if not number.is_finite():
        raise PayloadError(f"Invalid timestamp: {raw!r}")

    millis = number if number > MILLISECONDS_THRESHOLD else number * 1000
    try:
        return EPOCH + timedelta(milliseconds=int(millis.to_integral_value(ROUND_HALF_UP)))
    except OverflowError:
        raise PayloadError(f"Timestamp out of range: {raw!r}") from None


def _parse_iso(text: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        raise PayloadError(f"Invalid timestamp: {text[:50]!r}") from None
    return ensure_utc(parsed)


def round_score(raw: Any) -> Decimal:
    """Round a 0-100 index score to an integer, halves away from zero.

    Raises:
        PayloadError: if the score is not a finite number
    """
    try:
        value = parse_decimal(raw)
    except ValueError as e:
        raise PayloadError(str(e)) from None
    return value.quantize(Decimal(1), rounding=ROUND_HALF_UP)


def clean_label(raw: Any) -> str | None:
    """Keep upstream rating text verbatim; non-strings and blanks become None."""
    if not isinstance(raw, str) or not raw.strip():
        return None
    return raw
