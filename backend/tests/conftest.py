from decimal import Decimal

import httpx
import pytest
from sqlalchemy import func, select

from app.db import db
from app.main import app
from app.models.presale import Transaction, User
from app.services.presale_config import PresaleConfigStore


def evm_wallet(n: int) -> str:
    return "0x" + f"{n:040x}"


SOLANA_WALLET = "9GprBhFEyLipafFmS75rta8HGZTU5WPZRG3tWGJDBrmC"


@pytest.fixture
async def database(tmp_path):
    await db.init(f"sqlite+aiosqlite:///{tmp_path / 'presale.db'}", create_schema=True)
    async with db.session() as session:
        await PresaleConfigStore(session).provision()
    yield db
    await db.dispose()


@pytest.fixture
async def client(database):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def set_price(price: str, stage: int = 1):
    async with db.session() as session:
        return await PresaleConfigStore(session).update_price(stage, Decimal(price))


async def set_active(is_active: bool):
    async with db.session() as session:
        return await PresaleConfigStore(session).set_active(is_active)


async def read_presale():
    async with db.session() as session:
        return await PresaleConfigStore(session).read()


async def count_rows(model) -> int:
    async with db.session() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


async def store_state():
    """Everything a purchase can touch, for before/after comparisons."""
    async with db.session() as session:
        users = (await session.execute(select(User).order_by(User.wallet_address))).scalars().all()
        txs = (await session.execute(select(Transaction).order_by(Transaction.tx_hash))).scalars().all()
        presale = await PresaleConfigStore(session).read()
    return (
        [(u.wallet_address, u.token_balance, u.total_contributed_units, u.paid) for u in users],
        [(t.tx_hash, t.tokens_received) for t in txs],
        presale,
    )
