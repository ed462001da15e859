"""
Presale purchase processing.

A purchase is one database transaction that:
1. records the tx hash in the ledger (at most once),
2. credits the wallet's token balance and contribution,
3. adds the purchase to the presale totals.

All three land together or not at all. Re-submitting a tx hash that is
already recorded returns the original result without crediting again, so
clients can safely retry after a timeout.

The tx hash is taken on trust: nothing here checks on-chain that the
payment happened.
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from app.core.amounts import MAX_AMOUNT, from_units, parse_decimal, to_units, tokens_for
from app.core.constants import MAX_AMOUNT_UNITS
from app.core.exceptions import (
    InvalidAmount,
    InvalidTransactionHash,
    PresaleInactive,
    StoreUnavailable,
    TransactionConflict,
)
from app.db import Database, db
from app.models.presale import Transaction
from app.services.accounts import UserAccountStore
from app.services.ledger import TransactionLedger
from app.services.presale_config import PresaleConfigStore
from app.services.wallets import WalletIdentity, resolve_wallet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurchaseResult:
    tx_hash: str
    tokens_received: int
    new_token_balance: int
    new_total_contributed: Decimal
    price_at_purchase: Decimal
    duplicate: bool = False

    @classmethod
    def from_transaction(cls, tx: Transaction, duplicate: bool = False) -> "PurchaseResult":
        return cls(
            tx_hash=tx.tx_hash,
            tokens_received=tx.tokens_received,
            new_token_balance=tx.token_balance_after,
            new_total_contributed=from_units(tx.total_contributed_after_units),
            price_at_purchase=from_units(tx.price_at_purchase_units),
            duplicate=duplicate,
        )


def validate_amount(amount_paid) -> int:
    """Return the amount in storage units or raise InvalidAmount."""
    amount = parse_decimal(amount_paid)
    if amount is None or not amount.is_finite() or amount <= 0:
        raise InvalidAmount("Enter a valid amount greater than zero")
    if amount > MAX_AMOUNT:
        raise InvalidAmount("Amount exceeds the largest supported purchase")
    return to_units(amount)


def _check_headroom(*totals: int) -> None:
    if any(total > MAX_AMOUNT_UNITS for total in totals):
        raise InvalidAmount("Purchase would exceed the largest supported balance")


class PurchaseProcessor:
    def __init__(self, database: Database = db):
        self.database = database

    async def submit_purchase(
        self,
        wallet_address: str,
        amount_paid,
        chain: str,
        tx_hash: str,
        payment_token: Optional[str] = None,
    ) -> PurchaseResult:
        amount_units = validate_amount(amount_paid)
        identity = resolve_wallet(wallet_address, chain)
        tx_hash = (tx_hash or "").strip()
        if not tx_hash:
            raise InvalidTransactionHash("tx_hash is required")

        try:
            async with self.database.session() as session:
                presale_store = PresaleConfigStore(session)
                ledger = TransactionLedger(session)
                accounts = UserAccountStore(session)

                presale = await presale_store.read()
                if not presale.is_active:
                    logger.warning(f"Rejected purchase {tx_hash}: presale is not active")
                    raise PresaleInactive("Presale is not active")

                existing = await ledger.get(tx_hash)
                if existing is not None:
                    return self._replay(existing, identity, amount_units)

                # May be zero; the contribution is still recorded
                tokens = tokens_for(amount_units, presale.current_price_units)

                await accounts.get_or_create(identity.id, identity.chain)
                account = await accounts.get(identity.id, for_update=True)
                _check_headroom(
                    account.total_contributed_units + amount_units,
                    account.token_balance + tokens,
                    presale.total_raised_units + amount_units,
                    presale.tokens_allocated + tokens,
                )

                inserted, tx = await ledger.record_if_absent(
                    tx_hash,
                    {
                        "wallet_address": identity.id,
                        "chain": identity.chain,
                        "payment_token": payment_token,
                        "amount_units": amount_units,
                        "tokens_received": tokens,
                        "price_at_purchase_units": presale.current_price_units,
                        "token_balance_after": account.token_balance + tokens,
                        "total_contributed_after_units": account.total_contributed_units + amount_units,
                    },
                )
                if not inserted:
                    return self._replay(tx, identity, amount_units)

                await accounts.apply_credit(identity.id, amount_units, tokens)
                is_new_participant = await accounts.mark_paid(
                    identity.id,
                    {
                        "payment_status": "payment_completed",
                        "last_tx_hash": tx_hash,
                        "last_amount": str(from_units(amount_units)),
                        "payment_token": payment_token,
                    },
                )
                await presale_store.apply_aggregate_update(amount_units, tokens, is_new_participant)
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            logger.error(f"Purchase {tx_hash} for {identity.id} rolled back: {e}")
            raise StoreUnavailable("Could not record the purchase, please try again") from e

        logger.info(
            f"Applied purchase {tx_hash}: wallet={identity.id} amount={from_units(amount_units)} "
            f"tokens={tokens} new_participant={is_new_participant}"
        )
        return PurchaseResult.from_transaction(tx)

    @staticmethod
    def _replay(tx: Transaction, identity: WalletIdentity, amount_units: int) -> PurchaseResult:
        """Result for a tx hash that is already recorded."""
        if tx.wallet_address != identity.id or tx.amount_units != amount_units or tx.chain != identity.chain:
            logger.warning(f"Transaction {tx.tx_hash} re-submitted with different details by {identity.id}")
            raise TransactionConflict(f"Transaction {tx.tx_hash} is already recorded with different details")
        logger.info(f"Transaction {tx.tx_hash} already applied, returning recorded result")
        return PurchaseResult.from_transaction(tx, duplicate=True)


purchase_processor = PurchaseProcessor()
