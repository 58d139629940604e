"""CBOE Volatility Index collector (Yahoo Finance chart API)."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from app.domain import CanonicalPoint, parse_decimal

from .base import Collector
from .errors import PayloadError
from .normalize import normalize_timestamp
from .registry import register_collector


VIX_CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/%5EVIX?interval=1d&range=1d"

HIGH_VOLATILITY = Decimal(30)
ELEVATED_VOLATILITY = Decimal(20)


def volatility_label(value: Decimal) -> str:
    if value > HIGH_VOLATILITY:
        return "High Volatility"
    if value > ELEVATED_VOLATILITY:
        return "Elevated Volatility"
    return "Low Volatility"


@register_collector
class VixCollector(Collector):
    source = "vix"
    url = VIX_CHART_URL
    upstream_name = "Yahoo Finance"
    indicators = {"vix": "VIX Volatility Index"}

    def parse(self, payload: Any) -> list[CanonicalPoint]:
        chart = payload.get("chart") if isinstance(payload, dict) else None
        if not isinstance(chart, dict):
            raise PayloadError("Unexpected Yahoo Finance response shape")

        error = chart.get("error")
        if error:
            description = error.get("description") if isinstance(error, dict) else error
            raise PayloadError(f"Yahoo Finance error: {description}")

        results = chart.get("result")
        if not isinstance(results, list) or not results or not isinstance(results[0], dict):
            raise PayloadError("No VIX data available")
        meta = results[0].get("meta")
        if not isinstance(meta, dict):
            raise PayloadError("No VIX data available")

        try:
            value = parse_decimal(meta.get("regularMarketPrice"))
        except ValueError as e:
            raise PayloadError(f"Invalid VIX price: {e}") from None
        value = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

        return [
            CanonicalPoint(
                indicator_id="vix",
                ts_utc=normalize_timestamp(meta.get("regularMarketTime")),
                value=value,
                label=volatility_label(value),
                metadata={
                    "source": "yahoo",
                    "symbol": meta.get("symbol", "^VIX"),
                    "exchange": meta.get("exchangeName"),
                },
            )
        ]
