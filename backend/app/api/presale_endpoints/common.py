from typing import Sequence

from app.core.amounts import from_units
from app.models.presale import Transaction, User
from app.schemas.presale import (
    PresaleStatusResponse,
    TransactionResponse,
    UserDataResponse,
)
from app.services.presale_config import PresaleSnapshot


def transaction_response(tx: Transaction) -> TransactionResponse:
    return TransactionResponse(
        tx_hash=tx.tx_hash,
        wallet_address=tx.wallet_address,
        chain=tx.chain,
        payment_token=tx.payment_token,
        amount=float(from_units(tx.amount_units)),
        tokens_received=tx.tokens_received,
        price_at_purchase=float(from_units(tx.price_at_purchase_units)),
        status=tx.status,
        created_at=tx.created_at,
    )


def user_data_response(
    user: User, transactions: Sequence[Transaction], is_new_user: bool = False
) -> UserDataResponse:
    return UserDataResponse(
        wallet_address=user.wallet_address,
        chain=user.chain,
        total_contributed=float(from_units(user.total_contributed_units)),
        token_balance=user.token_balance,
        paid=user.paid,
        metadata=user.annotations or {},
        first_contribution=user.first_contribution_at,
        last_contribution=user.last_contribution_at,
        transactions=[transaction_response(tx) for tx in transactions],
        is_new_user=is_new_user,
    )


def status_response(presale: PresaleSnapshot) -> PresaleStatusResponse:
    return PresaleStatusResponse(
        current_stage=presale.current_stage,
        current_price=float(presale.current_price),
        total_raised=float(presale.total_raised),
        tokens_allocated=presale.tokens_allocated,
        total_participants=presale.total_participants,
        hard_cap=float(presale.hard_cap),
        is_active=presale.is_active,
    )
