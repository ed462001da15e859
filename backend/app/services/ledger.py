"""Append-only purchase transaction ledger."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.presale import Transaction, TransactionStatus
from app.services.dialects import insert_for

logger = logging.getLogger(__name__)


class TransactionLedger:
    """Reads and inserts rows in `transactions`. Rows are never updated."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, tx_hash: str) -> Optional[Transaction]:
        result = await self.session.execute(
            select(Transaction).where(Transaction.tx_hash == tx_hash)
        )
        return result.scalar_one_or_none()

    async def record_if_absent(self, tx_hash: str, record: dict[str, Any]) -> tuple[bool, Transaction]:
        """
        Insert a transaction unless one with `tx_hash` already exists.

        The existence check and the insert are a single INSERT ... ON CONFLICT
        DO NOTHING statement. Returns (inserted, row); when inserted is False
        the row is the one recorded earlier.
        """
        values = {
            "status": TransactionStatus.CONFIRMED.value,
            "created_at": datetime.now(timezone.utc),
            **record,
            "tx_hash": tx_hash,
        }
        stmt = (
            insert_for(self.session, Transaction)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["tx_hash"])
            .returning(Transaction.id)
        )
        inserted = (await self.session.execute(stmt)).scalar_one_or_none() is not None
        if not inserted:
            logger.warning(f"Transaction {tx_hash} already recorded")

        row = await self.get(tx_hash)
        return inserted, row

    async def list_for_wallet(self, wallet_address: str, limit: int = 100) -> list[Transaction]:
        """Wallet's transactions, newest first."""
        result = await self.session.execute(
            select(Transaction)
            .where(Transaction.wallet_address == wallet_address)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
