"""Crypto Fear & Greed collector (alternative.me)."""

from __future__ import annotations

from typing import Any

from app.core.logging import get_logger
from app.domain import CanonicalPoint

from .base import Collector
from .errors import PayloadError
from .normalize import clean_label, normalize_timestamp, round_score
from .registry import register_collector


logger = get_logger("collectors.crypto")

CRYPTO_FGI_URL = "https://api.alternative.me/fng/?limit=1"


@register_collector
class CryptoFearGreedCollector(Collector):
    """Maps every entry of the `data` array; with limit=1 that is the latest reading."""

    source = "crypto-fgi"
    url = CRYPTO_FGI_URL
    upstream_name = "Alternative.me"
    indicators = {"crypto-fgi": "Crypto Fear & Greed Index"}

    def parse(self, payload: Any) -> list[CanonicalPoint]:
        entries = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(entries, list) or not entries:
            raise PayloadError("No crypto fear and greed data available")

        points: list[CanonicalPoint] = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            try:
                points.append(
                    CanonicalPoint(
                        indicator_id="crypto-fgi",
                        ts_utc=normalize_timestamp(entry.get("timestamp")),
                        value=round_score(entry.get("value")),
                        label=clean_label(entry.get("value_classification")),
                    )
                )
            except PayloadError as e:
                logger.warning(f"Skipping crypto-fgi entry: {e}")

        if not points:
            raise PayloadError("No valid crypto fear and greed entries")
        return points
