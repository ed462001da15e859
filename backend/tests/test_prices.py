import httpx
import pytest

from app.services.prices import FALLBACK_PRICES, SUPPORTED_TOKENS, CoinGeckoClient


def _client(handler) -> CoinGeckoClient:
    return CoinGeckoClient(transport=httpx.MockTransport(handler))


async def test_token_price_is_cached():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"ethereum": {"usd": 2500.5}})

    client = _client(handler)

    assert await client.get_token_price("eth") == 2500.5
    assert await client.get_token_price("ETH") == 2500.5
    assert len(calls) == 1
    assert calls[0].url.params["ids"] == "ethereum"
    assert calls[0].url.params["vs_currencies"] == "usd"


async def test_fallback_price_when_api_fails():
    client = _client(lambda request: httpx.Response(500))

    assert await client.get_token_price("BNB") == FALLBACK_PRICES["binancecoin"]


async def test_stale_price_preferred_over_fallback():
    responses = iter([
        httpx.Response(200, json={"solana": {"usd": 123.0}}),
        httpx.Response(503),
    ])
    client = _client(lambda request: next(responses))
    client._cache_seconds = 0

    assert await client.get_token_price("SOL") == 123.0
    assert await client.get_token_price("SOL") == 123.0


async def test_invalid_payload_falls_back():
    client = _client(lambda request: httpx.Response(200, json={"tether": {"usd": "one"}}))

    assert await client.get_token_price("USDT") == FALLBACK_PRICES["tether"]


@pytest.mark.parametrize("payload", [["ethereum", 2500], 42, {"ethereum": 2500}])
async def test_malformed_payload_falls_back(payload):
    client = _client(lambda request: httpx.Response(200, json=payload))

    assert await client.get_token_price("ETH") == FALLBACK_PRICES["ethereum"]
    assert (await client.get_all_prices())["ETH"] == FALLBACK_PRICES["ethereum"]


async def test_unsupported_token():
    client = _client(lambda request: httpx.Response(200, json={}))

    with pytest.raises(ValueError):
        await client.get_token_price("DOGE")


async def test_all_prices_fill_gaps_with_fallbacks():
    client = _client(lambda request: httpx.Response(200, json={"ethereum": {"usd": 3100}, "tether": {"usd": 1}}))

    prices = await client.get_all_prices()

    assert set(prices) == set(SUPPORTED_TOKENS)
    assert prices["ETH"] == 3100.0
    assert prices["USDT"] == 1.0
    assert prices["ARB"] == FALLBACK_PRICES["arbitrum"]
