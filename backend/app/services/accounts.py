"""User account storage."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import METADATA_KEYS
from app.models.presale import User
from app.services.dialects import insert_for

logger = logging.getLogger(__name__)


def filter_annotations(annotations: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Keep only recognized metadata keys, stringifying their values."""
    if not annotations:
        return {}
    kept = {k: str(v) for k, v in annotations.items() if k in METADATA_KEYS and v is not None}
    dropped = sorted(set(annotations) - set(kept))
    if dropped:
        logger.debug(f"Ignoring unrecognized metadata keys: {dropped}")
    return kept


class UserAccountStore:
    """Reads and updates rows in `users` inside the caller's session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, wallet_address: str, for_update: bool = False) -> Optional[User]:
        stmt = (
            select(User)
            .where(User.wallet_address == wallet_address)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(self, wallet_address: str, chain: Optional[str] = None) -> tuple[User, bool]:
        """
        Return the account for a wallet, creating it with zero balances if absent.

        The insert is ON CONFLICT DO NOTHING, so concurrent first contacts for
        the same wallet produce exactly one row and never surface a unique
        violation.
        """
        now = datetime.now(timezone.utc)
        stmt = (
            insert_for(self.session, User)
            .values(
                wallet_address=wallet_address,
                chain=chain,
                total_contributed_units=0,
                token_balance=0,
                paid=False,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=["wallet_address"])
            .returning(User.id)
        )
        created = (await self.session.execute(stmt)).scalar_one_or_none() is not None
        if created:
            logger.info(f"Created account for {wallet_address}")

        user = await self.get(wallet_address)
        return user, created

    async def apply_credit(self, wallet_address: str, amount_units: int, tokens_received: int) -> None:
        """Add a purchase to the wallet's running balances."""
        now = datetime.now(timezone.utc)
        await self.session.execute(
            update(User)
            .where(User.wallet_address == wallet_address)
            .values(
                total_contributed_units=User.total_contributed_units + amount_units,
                token_balance=User.token_balance + tokens_received,
                last_contribution_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )

    async def mark_paid(self, wallet_address: str, annotations: Optional[dict[str, Any]] = None) -> bool:
        """
        Set paid=true and merge annotations.

        Returns True only for the call that flipped the flag, which makes it
        the test for a wallet's first confirmed purchase.
        """
        now = datetime.now(timezone.utc)
        flipped = (
            await self.session.execute(
                update(User)
                .where(User.wallet_address == wallet_address, User.paid.is_(False))
                .values(paid=True, first_contribution_at=now, updated_at=now)
                .returning(User.id)
                .execution_options(synchronize_session=False)
            )
        ).scalar_one_or_none() is not None

        await self.merge_annotations(wallet_address, annotations)
        return flipped

    async def merge_annotations(self, wallet_address: str, annotations: Optional[dict[str, Any]]) -> None:
        kept = filter_annotations(annotations)
        if not kept:
            return
        user = await self.get(wallet_address, for_update=True)
        if user is None:
            return
        user.annotations = {**(user.annotations or {}), **kept}
        await self.session.flush()
