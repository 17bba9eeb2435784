"""USD prices for ETH and BTC from CoinGecko, cached, with static fallbacks."""

import logging
from decimal import Decimal
from typing import Dict, Optional

import httpx

import config
from core.cache import default_cache

logger = logging.getLogger(__name__)

CACHE_KEY = "crypto_prices:usd"
COINGECKO_IDS = {"bitcoin": "BTC", "ethereum": "ETH"}


def fallback_prices() -> Dict[str, Decimal]:
    return {"ETH": config.FALLBACK_ETH_USD, "BTC": config.FALLBACK_BTC_USD}


def fetch_prices() -> Optional[Dict[str, Decimal]]:
    """Query CoinGecko once. Returns None when the feed is unavailable."""
    url = f"{config.COINGECKO_API_URL}/simple/price"
    params = {"ids": ",".join(COINGECKO_IDS), "vs_currencies": "usd"}
    try:
        with httpx.Client(timeout=10.0) as client:
            response = client.get(url, params=params)
            response.raise_for_status()
            body = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"CoinGecko price fetch failed: {e}")
        return None

    prices = {}
    for coin_id, symbol in COINGECKO_IDS.items():
        usd = (body.get(coin_id) or {}).get("usd")
        if usd is None:
            logger.warning(f"CoinGecko response missing {coin_id}")
            return None
        prices[symbol] = Decimal(str(usd))
    return prices


def get_prices() -> Dict[str, Decimal]:
    """Fresh prices, else the last fetched prices, else the configured fallbacks."""
    prices = default_cache.get_or_set(CACHE_KEY, ttl_seconds=config.PRICE_CACHE_SECONDS, factory=fetch_prices)
    if prices:
        return prices
    stale = default_cache.get_stale(CACHE_KEY)
    if stale:
        logger.info("CoinGecko unavailable, serving last known prices")
        return stale
    return fallback_prices()


def get_price(symbol: str) -> Decimal:
    return get_prices().get(symbol.upper()) or fallback_prices()[symbol.upper()]


def remember(prices: Dict[str, Decimal]) -> None:
    default_cache.set(CACHE_KEY, prices, ttl_seconds=config.PRICE_CACHE_SECONDS)
