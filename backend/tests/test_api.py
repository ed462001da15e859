import pytest

from app.core.config import settings
from app.core.tokenomics import TOTAL_SUPPLY
from app.services.prices import price_client

from conftest import SOLANA_WALLET, evm_wallet, set_active

API = settings.api_v1_prefix
EVM_MIXED_CASE = "0xAbCdEf0123456789aBcDeF0123456789AbCdEf01"


@pytest.fixture
def admin_key(monkeypatch):
    monkeypatch.setattr(settings, "admin_api_key", "secret")
    return {"x-admin-key": "secret"}


def purchase_body(**overrides):
    body = {
        "wallet_address": evm_wallet(1),
        "amount": 100,
        "chain": "ethereum",
        "tx_hash": "0xtx1",
        "payment_token": "USDT",
    }
    body.update(overrides)
    return body


async def test_connect_wallet_creates_user(client):
    resp = await client.post(
        f"{API}/presale/connect-wallet",
        json={"wallet_address": EVM_MIXED_CASE, "chain": "ethereum"},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["wallet_address"] == EVM_MIXED_CASE.lower()
    assert data["is_new_user"] is True
    assert data["token_balance"] == 0
    assert data["paid"] is False
    assert data["metadata"]["chain"] == "ethereum"
    assert "connected_at" in data["metadata"]


async def test_connect_wallet_returning_user(client):
    await client.post(f"{API}/presale/connect-wallet", json={"wallet_address": SOLANA_WALLET, "chain": "solana"})
    resp = await client.post(
        f"{API}/presale/connect-wallet", json={"wallet_address": SOLANA_WALLET, "chain": "solana"}
    )

    assert resp.status_code == 200
    assert resp.json()["is_new_user"] is False
    assert resp.json()["wallet_address"] == SOLANA_WALLET


async def test_connect_wallet_rejects_bad_address(client):
    resp = await client.post(f"{API}/presale/connect-wallet", json={"wallet_address": "nope", "chain": "ethereum"})

    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert resp.json()["error"] == "wallet_not_resolvable"


async def test_unknown_user_is_404(client):
    resp = await client.get(f"{API}/presale/user/{evm_wallet(5)}")

    assert resp.status_code == 404
    assert resp.json()["error"] == "account_not_found"


async def test_purchase_then_user_view(client):
    resp = await client.post(f"{API}/presale/purchase", json=purchase_body(wallet_address=EVM_MIXED_CASE))

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["tokens_received"] == 10_000_000
    assert data["new_balance"] == 10_000_000
    assert data["total_contributed"] == 100.0
    assert data["price_at_purchase"] == 0.00001
    assert data["duplicate"] is False

    user = (await client.get(f"{API}/presale/user/{EVM_MIXED_CASE}")).json()
    assert user["wallet_address"] == EVM_MIXED_CASE.lower()
    assert user["token_balance"] == 10_000_000
    assert user["paid"] is True
    assert user["metadata"]["payment_status"] == "payment_completed"
    assert [tx["tx_hash"] for tx in user["transactions"]] == ["0xtx1"]
    assert user["transactions"][0]["amount"] == 100.0
    assert user["transactions"][0]["status"] == "confirmed"


async def test_purchase_resubmission_is_flagged(client):
    first = await client.post(f"{API}/presale/purchase", json=purchase_body())
    second = await client.post(f"{API}/presale/purchase", json=purchase_body())

    assert second.status_code == 200
    assert second.json()["duplicate"] is True
    assert second.json()["new_balance"] == first.json()["new_balance"]

    status = (await client.get(f"{API}/presale/status")).json()
    assert status["tokens_allocated"] == 10_000_000
    assert status["total_participants"] == 1


async def test_purchase_conflict_is_409(client):
    await client.post(f"{API}/presale/purchase", json=purchase_body())
    resp = await client.post(f"{API}/presale/purchase", json=purchase_body(amount=5))

    assert resp.status_code == 409
    assert resp.json()["error"] == "transaction_conflict"


@pytest.mark.parametrize("amount", [0, -1])
async def test_purchase_invalid_amount(client, amount):
    resp = await client.post(f"{API}/presale/purchase", json=purchase_body(amount=amount))

    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_amount"


async def test_purchase_amount_too_large(client):
    resp = await client.post(f"{API}/presale/purchase", json=purchase_body(amount="100000000000"))

    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_amount"


async def test_purchase_while_paused(client):
    await set_active(False)

    resp = await client.post(f"{API}/presale/purchase", json=purchase_body())

    assert resp.status_code == 403
    assert resp.json()["error"] == "presale_inactive"


async def test_status(client):
    resp = await client.get(f"{API}/presale/status")

    assert resp.status_code == 200
    assert resp.json() == {
        "current_stage": 1,
        "current_price": 0.00001,
        "total_raised": 0.0,
        "tokens_allocated": 0,
        "total_participants": 0,
        "hard_cap": 1_000_000.0,
        "is_active": True,
    }


async def test_admin_disabled_without_key(client, monkeypatch):
    monkeypatch.setattr(settings, "admin_api_key", "")

    resp = await client.post(f"{API}/admin/presale/toggle-status", json={"is_active": False})

    assert resp.status_code == 403


async def test_admin_rejects_wrong_key(client, admin_key):
    resp = await client.post(
        f"{API}/admin/presale/toggle-status",
        json={"is_active": False},
        headers={"x-admin-key": "guess"},
    )

    assert resp.status_code == 401
    assert (await client.get(f"{API}/presale/status")).json()["is_active"] is True


async def test_admin_toggle_blocks_purchases(client, admin_key):
    resp = await client.post(f"{API}/admin/presale/toggle-status", json={"is_active": False}, headers=admin_key)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    resp = await client.post(f"{API}/presale/purchase", json=purchase_body())
    assert resp.status_code == 403


async def test_admin_update_stage(client, admin_key):
    resp = await client.post(f"{API}/admin/presale/update-stage", json={"stage": 3}, headers=admin_key)

    assert resp.status_code == 200
    assert resp.json()["current_stage"] == 3
    assert resp.json()["current_price"] == 0.000015

    bad = await client.post(f"{API}/admin/presale/update-stage", json={"stage": 9}, headers=admin_key)
    assert bad.status_code == 400
    assert bad.json()["error"] == "invalid_stage"


async def test_admin_update_price_applies_to_next_purchase(client, admin_key):
    resp = await client.post(
        f"{API}/admin/presale/update-price", json={"stage": 2, "price": "0.0001"}, headers=admin_key
    )
    assert resp.status_code == 200

    purchase = await client.post(f"{API}/presale/purchase", json=purchase_body(amount=1))
    assert purchase.json()["tokens_received"] == 10_000


async def test_live_stats(client):
    await client.post(f"{API}/presale/purchase", json=purchase_body(amount=2.5))

    resp = await client.get(f"{API}/live-stats")

    assert resp.status_code == 200
    data = resp.json()
    assert data["participants"] == 1
    assert data["raised_amount"] == 2.5
    assert data["tokens_allocated"] == 250_000
    assert data["days_to_launch"] >= 0
    assert data["is_active"] is True


async def test_tokenomics(client):
    resp = await client.get(f"{API}/tokenomics")

    assert resp.status_code == 200
    data = resp.json()
    assert data["total_supply"] == TOTAL_SUPPLY
    assert [s["stage"] for s in data["stages"]] == [1, 2, 3, 4, 5]
    assert sum(data["distribution"].values()) == 100


async def test_countdown_uses_configured_target(client, monkeypatch):
    monkeypatch.setattr(settings, "countdown_target_date", "2030-01-01T00:00:00")

    resp = await client.get(f"{API}/countdown")

    assert resp.status_code == 200
    assert resp.json()["target_date"].startswith("2030-01-01T00:00:00")
    assert resp.json()["title"] == settings.countdown_title


async def test_estimate(client, monkeypatch):
    async def fake_price(symbol):
        return 2000.0

    monkeypatch.setattr(price_client, "get_token_price", fake_price)

    resp = await client.get(f"{API}/presale/estimate", params={"amount": 0.5, "pay_token": "eth"})

    assert resp.status_code == 200
    assert resp.json() == {
        "amount": 0.5,
        "pay_token": "ETH",
        "usd_amount": 1000.0,
        "token_amount": 100_000_000,
    }


@pytest.mark.parametrize("amount", ["inf", "nan", "-1"])
async def test_estimate_rejects_invalid_amount(client, amount):
    resp = await client.get(f"{API}/presale/estimate", params={"amount": amount, "pay_token": "USDT"})

    assert resp.status_code == 422


async def test_estimate_rejects_huge_amount(client, monkeypatch):
    async def fake_price(symbol):
        return 1.0

    monkeypatch.setattr(price_client, "get_token_price", fake_price)

    resp = await client.get(f"{API}/presale/estimate", params={"amount": "1e300", "pay_token": "USDT"})

    assert resp.status_code == 400


async def test_estimate_unsupported_token(client):
    resp = await client.get(f"{API}/presale/estimate", params={"amount": 1, "pay_token": "DOGE"})

    assert resp.status_code == 400


async def test_prices(client, monkeypatch):
    async def fake_prices():
        return {"USDT": 1.0, "ETH": 2000.0}

    monkeypatch.setattr(price_client, "get_all_prices", fake_prices)

    resp = await client.get(f"{API}/presale/prices")

    assert resp.status_code == 200
    assert resp.json() == {"prices": {"USDT": 1.0, "ETH": 2000.0}, "token_price": 0.00001}


async def test_health_and_ready(client):
    health = await client.get("/health")
    ready = await client.get("/ready")

    assert health.json()["status"] == "healthy"
    assert ready.json()["status"] == "ready"
    assert ready.json()["checks"] == {"database": True}
