"""CNN Fear & Greed collectors.

Both read the same graphdata document. `fgi` stores the headline index;
`cnn-indicators` fans out over the nine sub-indices it also carries.
"""

from __future__ import annotations

from typing import Any

from app.core.logging import get_logger
from app.domain import CanonicalPoint

from .base import Collector
from .errors import PayloadError
from .normalize import clean_label, normalize_timestamp, round_score
from .registry import register_collector


logger = get_logger("collectors.cnn")

CNN_GRAPHDATA_URL = "https://production.dataviz.cnn.io/index/fearandgreed/graphdata"

# CNN rejects requests that do not look like a browser on cnn.com
CNN_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": "https://www.cnn.com/",
}

# Extras of the headline index kept as point metadata
FGI_HISTORY_FIELDS = ("previous_close", "previous_1_week", "previous_1_month", "previous_1_year")

# indicator id -> (payload key, display name)
CNN_SUB_INDICATORS: dict[str, tuple[str, str]] = {
    "cnn-sp500-momentum": ("market_momentum_sp500", "S&P 500 Market Momentum"),
    "cnn-sp125-momentum": ("market_momentum_sp125", "S&P 125 Market Momentum"),
    "cnn-stock-strength": ("stock_price_strength", "Stock Price Strength"),
    "cnn-stock-breadth": ("stock_price_breadth", "Stock Price Breadth"),
    "cnn-put-call": ("put_call_options", "Put-Call Options"),
    "cnn-vix": ("market_volatility_vix", "Market Volatility (VIX)"),
    "cnn-vix50": ("market_volatility_vix_50", "Market Volatility (VIX50)"),
    "cnn-junk-bond": ("junk_bond_demand", "Junk Bond Demand"),
    "cnn-safe-haven": ("safe_haven_demand", "Safe Haven Demand"),
}


def _require_object(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise PayloadError("Unexpected CNN response shape")
    return payload


@register_collector
class CnnFearGreedCollector(Collector):
    source = "fgi"
    url = CNN_GRAPHDATA_URL
    upstream_name = "CNN"
    indicators = {"cnn-fgi": "CNN Fear & Greed Index"}
    extra_headers = CNN_HEADERS

    def parse(self, payload: Any) -> list[CanonicalPoint]:
        fgi = _require_object(payload).get("fear_and_greed")
        if not isinstance(fgi, dict):
            raise PayloadError("No fear and greed data available")

        metadata = {k: fgi[k] for k in FGI_HISTORY_FIELDS if fgi.get(k) is not None}
        return [
            CanonicalPoint(
                indicator_id="cnn-fgi",
                ts_utc=normalize_timestamp(fgi.get("timestamp")),
                value=round_score(fgi.get("score")),
                label=clean_label(fgi.get("rating")),
                metadata=metadata or None,
            )
        ]


@register_collector
class CnnIndicatorsCollector(Collector):
    source = "cnn-indicators"
    url = CNN_GRAPHDATA_URL
    upstream_name = "CNN"
    indicators = {indicator_id: name for indicator_id, (_, name) in CNN_SUB_INDICATORS.items()}
    extra_headers = CNN_HEADERS

    def parse(self, payload: Any) -> list[CanonicalPoint]:
        data = _require_object(payload)
        points: list[CanonicalPoint] = []

        for indicator_id, (key, _) in CNN_SUB_INDICATORS.items():
            entry = data.get(key)
            if not isinstance(entry, dict):
                logger.warning(f"CNN payload has no {key}, skipping {indicator_id}")
                continue
            try:
                points.append(
                    CanonicalPoint(
                        indicator_id=indicator_id,
                        ts_utc=normalize_timestamp(entry.get("timestamp")),
                        value=round_score(entry.get("score")),
                        label=clean_label(entry.get("rating")),
                    )
                )
            except PayloadError as e:
                logger.warning(f"Skipping {indicator_id}: {e}")

        return points
