import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from app.core.exceptions import AccountNotFound
from app.db import db
from app.schemas.presale import ConnectWalletRequest, UserDataResponse
from app.services.accounts import UserAccountStore
from app.services.ledger import TransactionLedger
from app.services.wallets import lookup_key, resolve_wallet

from .common import user_data_response

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/connect-wallet",
    response_model=UserDataResponse,
    summary="Register a wallet connection",
    description="Creates the user on first contact and records the connection. Returns the user's balances and purchases.",
)
async def connect_wallet(request: ConnectWalletRequest) -> UserDataResponse:
    """Get or create the user for a connected wallet."""
    identity = resolve_wallet(request.wallet_address, request.chain)

    async with db.session() as session:
        accounts = UserAccountStore(session)
        _, created = await accounts.get_or_create(identity.id, identity.chain)
        await accounts.merge_annotations(
            identity.id,
            {
                "connected_at": datetime.now(timezone.utc).isoformat(),
                "chain": identity.chain,
            },
        )
        user = await accounts.get(identity.id)
        transactions = await TransactionLedger(session).list_for_wallet(identity.id)

    if created:
        logger.info(f"New user connected: {identity.id} ({identity.chain_family})")
    return user_data_response(user, transactions, is_new_user=created)


@router.get(
    "/user/{wallet_address}",
    response_model=UserDataResponse,
    summary="Get user data",
)
async def get_user(wallet_address: str) -> UserDataResponse:
    """Balances, contribution and purchase history of a wallet."""
    key = lookup_key(wallet_address)

    async with db.read_session() as session:
        user = await UserAccountStore(session).get(key)
        if user is None:
            raise AccountNotFound(f"No user for wallet {key}")
        transactions = await TransactionLedger(session).list_for_wallet(key)

    return user_data_response(user, transactions)
