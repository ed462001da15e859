"""Presale singleton storage."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.amounts import MAX_AMOUNT, from_units, to_units
from app.core.config import settings
from app.core.constants import AMOUNT_PRECISION, PRESALE_ROW_ID
from app.core.exceptions import InvalidAmount, InvalidStage, StoreUnavailable
from app.core.tokenomics import STAGES, stage_price
from app.models.presale import Presale
from app.services.dialects import insert_for

logger = logging.getLogger(__name__)

PRICE_DECIMALS = len(str(AMOUNT_PRECISION)) - 1


@dataclass(frozen=True)
class PresaleSnapshot:
    """Point-in-time copy of the presale row."""
    current_stage: int
    current_price_units: int
    total_raised_units: int
    tokens_allocated: int
    total_participants: int
    hard_cap_units: int
    is_active: bool

    @property
    def current_price(self) -> Decimal:
        return from_units(self.current_price_units)

    @property
    def total_raised(self) -> Decimal:
        return from_units(self.total_raised_units)

    @property
    def hard_cap(self) -> Decimal:
        return from_units(self.hard_cap_units)

    @classmethod
    def from_row(cls, row: Presale) -> "PresaleSnapshot":
        return cls(
            current_stage=row.current_stage,
            current_price_units=row.current_price_units,
            total_raised_units=row.total_raised_units,
            tokens_allocated=row.tokens_allocated,
            total_participants=row.total_participants,
            hard_cap_units=row.hard_cap_units,
            is_active=row.is_active,
        )


class PresaleConfigStore:
    """
    Access to the single `presale` row.

    Never cache a snapshot across requests: the admin can change the price
    or pause the sale at any time.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def provision(self) -> bool:
        """Create the presale row from settings if it does not exist yet."""
        stmt = (
            insert_for(self.session, Presale)
            .values(
                id=PRESALE_ROW_ID,
                current_stage=1,
                current_price_units=to_units(Decimal(settings.presale_initial_price)),
                total_raised_units=0,
                tokens_allocated=0,
                total_participants=0,
                hard_cap_units=to_units(Decimal(settings.presale_hard_cap)),
                is_active=settings.presale_initial_active,
                updated_at=datetime.now(timezone.utc),
            )
            .on_conflict_do_nothing(index_elements=["id"])
            .returning(Presale.id)
        )
        created = (await self.session.execute(stmt)).scalar_one_or_none() is not None
        if created:
            logger.info(
                f"Provisioned presale: price={settings.presale_initial_price}, "
                f"hard_cap={settings.presale_hard_cap}, active={settings.presale_initial_active}"
            )
        return created

    async def read(self) -> PresaleSnapshot:
        result = await self.session.execute(
            select(Presale)
            .where(Presale.id == PRESALE_ROW_ID)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise StoreUnavailable("Presale is not provisioned")
        return PresaleSnapshot.from_row(row)

    async def apply_aggregate_update(
        self, amount_units: int, tokens_received: int, is_new_participant: bool
    ) -> None:
        """Add one purchase to the running totals with in-database increments."""
        await self.session.execute(
            update(Presale)
            .where(Presale.id == PRESALE_ROW_ID)
            .values(
                total_raised_units=Presale.total_raised_units + amount_units,
                tokens_allocated=Presale.tokens_allocated + tokens_received,
                total_participants=Presale.total_participants + (1 if is_new_participant else 0),
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )

    async def _update(self, **values) -> PresaleSnapshot:
        await self.session.execute(
            update(Presale)
            .where(Presale.id == PRESALE_ROW_ID)
            .values(updated_at=datetime.now(timezone.utc), **values)
            .execution_options(synchronize_session=False)
        )
        return await self.read()

    async def update_price(self, stage: int, price: Decimal) -> PresaleSnapshot:
        """Move to `stage` with an explicit price."""
        if stage not in STAGES:
            raise InvalidStage(f"Unknown presale stage {stage}")
        if not price.is_finite() or price <= 0:
            raise InvalidAmount("price must be a positive number")
        if price > MAX_AMOUNT:
            raise InvalidAmount("price is too large")
        if from_units(to_units(price)) != price:
            raise InvalidAmount(f"price supports at most {PRICE_DECIMALS} decimal places")
        snapshot = await self._update(current_stage=stage, current_price_units=to_units(price))
        logger.info(f"Presale price set to {price} (stage {stage})")
        return snapshot

    async def update_stage(self, stage: int) -> PresaleSnapshot:
        """Move to `stage` at its scheduled price."""
        try:
            price = stage_price(stage)
        except KeyError:
            raise InvalidStage(f"Unknown presale stage {stage}") from None
        snapshot = await self._update(current_stage=stage, current_price_units=to_units(price))
        logger.info(f"Presale moved to stage {stage} at {price}")
        return snapshot

    async def set_active(self, is_active: bool) -> PresaleSnapshot:
        snapshot = await self._update(is_active=is_active)
        logger.info(f"Presale {'activated' if is_active else 'paused'}")
        return snapshot
