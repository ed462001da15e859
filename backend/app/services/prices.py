"""
CoinGecko price client.

Supplies USD prices of payment tokens for display and estimates only. The
purchase ledger never reads these; it converts with the presale row's price.
API docs: https://docs.coingecko.com/reference/simple-price
"""

import logging
import time
from typing import Dict, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

# Payment token symbol -> CoinGecko id
SUPPORTED_TOKENS: Dict[str, str] = {
    "USDT": "tether",
    "ETH": "ethereum",
    "BNB": "binancecoin",
    "MATIC": "polygon-ecosystem-token",
    "ARB": "arbitrum",
    "SOL": "solana",
}

# Used when the API is unreachable and nothing is cached yet (approximate)
FALLBACK_PRICES: Dict[str, float] = {
    "tether": 1.0,
    "ethereum": 3000.0,
    "binancecoin": 300.0,
    "polygon-ecosystem-token": 0.8,
    "arbitrum": 1.0,
    "solana": 150.0,
}


class CoinGeckoClient:
    """Client for the CoinGecko simple price API with a short in-process cache."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._base_url = settings.coingecko_api_url
        self._cache_seconds = settings.price_cache_seconds
        self._transport = transport
        self._cache: Dict[str, tuple[float, float]] = {}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=settings.price_request_timeout_seconds,
        )

    def _cached(self, coin_id: str, fresh_only: bool = True) -> Optional[float]:
        entry = self._cache.get(coin_id)
        if entry is None:
            return None
        price, fetched_at = entry
        if fresh_only and time.monotonic() - fetched_at >= self._cache_seconds:
            return None
        return price

    async def _fetch(self, coin_ids: list[str]) -> Dict[str, float]:
        """GET /simple/price: USD prices for the given CoinGecko ids."""
        async with self._client() as client:
            resp = await client.get(
                f"{self._base_url}/simple/price",
                params={"ids": ",".join(coin_ids), "vs_currencies": "usd"},
            )
            resp.raise_for_status()
            data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected price payload: {type(data).__name__}")

        prices = {}
        now = time.monotonic()
        for coin_id in coin_ids:
            entry = data.get(coin_id)
            price = entry.get("usd") if isinstance(entry, dict) else None
            if isinstance(price, (int, float)) and not isinstance(price, bool):
                prices[coin_id] = float(price)
                self._cache[coin_id] = (float(price), now)
        return prices

    async def get_token_price(self, symbol: str) -> float:
        """USD price of one payment token, by symbol (e.g. "ETH")."""
        coin_id = SUPPORTED_TOKENS.get(symbol.upper())
        if coin_id is None:
            raise ValueError(f"Unsupported payment token: {symbol}")

        cached = self._cached(coin_id)
        if cached is not None:
            return cached

        try:
            prices = await self._fetch([coin_id])
            if coin_id in prices:
                return prices[coin_id]
            logger.warning(f"Invalid price data for {coin_id}")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching price for {coin_id}: {e}")

        stale = self._cached(coin_id, fresh_only=False)
        return stale if stale is not None else FALLBACK_PRICES[coin_id]

    async def get_all_prices(self) -> Dict[str, float]:
        """USD prices for every supported payment token, keyed by symbol."""
        coin_ids = sorted(set(SUPPORTED_TOKENS.values()))
        missing = [c for c in coin_ids if self._cached(c) is None]

        if missing:
            try:
                await self._fetch(missing)
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"Error fetching all prices: {e}")

        result = {}
        for symbol, coin_id in SUPPORTED_TOKENS.items():
            price = self._cached(coin_id, fresh_only=False)
            result[symbol] = price if price is not None else FALLBACK_PRICES[coin_id]
        return result


# Singleton instance
price_client = CoinGeckoClient()
