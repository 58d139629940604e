"""Default indicator catalog and seeding."""

from __future__ import annotations

from app.core.logging import get_logger
from app.repositories import indicators_orm as indicators_repo
from app.repositories.indicators_orm import IndicatorDefinition


logger = get_logger("services.catalog")


DEFAULT_INDICATORS: tuple[IndicatorDefinition, ...] = (
    IndicatorDefinition("cnn-fgi", "CNN Fear & Greed Index", "sentiment", "CNN", "Market sentiment indicator from CNN"),
    IndicatorDefinition("crypto-fgi", "Crypto Fear & Greed Index", "crypto", "Alternative.me", "Cryptocurrency market sentiment"),
    IndicatorDefinition("warren-buffett", "Warren Buffett Indicator", "valuation", "FRED", "Market cap to GDP ratio"),
    IndicatorDefinition("vix", "VIX Volatility Index", "volatility", "CBOE", "Market volatility and fear gauge"),
    # CNN sub-indices
    IndicatorDefinition("cnn-sp500-momentum", "S&P 500 Market Momentum", "sentiment", "CNN", "S&P 500 momentum indicator from CNN"),
    IndicatorDefinition("cnn-sp125-momentum", "S&P 125 Market Momentum", "sentiment", "CNN", "S&P 125 momentum indicator from CNN"),
    IndicatorDefinition("cnn-stock-strength", "Stock Price Strength", "sentiment", "CNN", "Stock price strength indicator from CNN"),
    IndicatorDefinition("cnn-stock-breadth", "Stock Price Breadth", "sentiment", "CNN", "Stock price breadth indicator from CNN"),
    IndicatorDefinition("cnn-put-call", "Put-Call Options", "sentiment", "CNN", "Put-call options ratio from CNN"),
    IndicatorDefinition("cnn-vix", "Market Volatility (VIX)", "volatility", "CNN", "VIX volatility indicator from CNN"),
    IndicatorDefinition("cnn-vix50", "Market Volatility (VIX50)", "volatility", "CNN", "VIX50 volatility indicator from CNN"),
    IndicatorDefinition("cnn-junk-bond", "Junk Bond Demand", "sentiment", "CNN", "Junk bond demand indicator from CNN"),
    IndicatorDefinition("cnn-safe-haven", "Safe Haven Demand", "sentiment", "CNN", "Safe haven demand indicator from CNN"),
)


async def seed_default_catalog() -> int:
    """Insert any missing default indicators. Returns how many were created."""
    created = await indicators_repo.seed_indicators(DEFAULT_INDICATORS)
    logger.info(f"Catalog seeded: {created} new of {len(DEFAULT_INDICATORS)} defaults")
    return created
