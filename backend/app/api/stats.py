from datetime import date, datetime, timedelta, timezone

from fastapi import APIRouter

from app.core.config import settings
from app.core.tokenomics import DISTRIBUTION, PUBLIC_SALE_PRICE_USD, STAGES, TOTAL_SUPPLY
from app.db import db
from app.schemas.presale import (
    CountdownResponse,
    LiveStatsResponse,
    StageInfo,
    TokenomicsResponse,
)
from app.services.presale_config import PresaleConfigStore

router = APIRouter(tags=["stats"])


def _days_to_launch() -> int:
    if not settings.presale_launch_date:
        return 0
    launch = date.fromisoformat(settings.presale_launch_date)
    today = datetime.now(timezone.utc).date()
    return max(0, (launch - today).days)


def _countdown_target() -> datetime:
    if settings.countdown_target_date:
        target = datetime.fromisoformat(settings.countdown_target_date)
        return target if target.tzinfo else target.replace(tzinfo=timezone.utc)
    # No target configured: keep the banner 30 days out
    return datetime.now(timezone.utc) + timedelta(days=30)


@router.get("/live-stats", response_model=LiveStatsResponse, summary="Live presale stats")
async def get_live_stats() -> LiveStatsResponse:
    async with db.read_session() as session:
        presale = await PresaleConfigStore(session).read()

    return LiveStatsResponse(
        participants=presale.total_participants,
        raised_amount=float(presale.total_raised),
        tokens_allocated=presale.tokens_allocated,
        days_to_launch=_days_to_launch(),
        is_active=presale.is_active,
    )


@router.get("/tokenomics", response_model=TokenomicsResponse, summary="Token supply, stages and distribution")
async def get_tokenomics() -> TokenomicsResponse:
    async with db.read_session() as session:
        presale = await PresaleConfigStore(session).read()

    return TokenomicsResponse(
        total_supply=TOTAL_SUPPLY,
        current_stage=presale.current_stage,
        stages=[
            StageInfo(stage=stage, label=cfg.label, price_usd=float(cfg.price_usd))
            for stage, cfg in sorted(STAGES.items())
        ],
        public_sale_price=float(PUBLIC_SALE_PRICE_USD),
        distribution=DISTRIBUTION,
        is_active=presale.is_active,
    )


@router.get("/countdown", response_model=CountdownResponse, summary="Countdown banner settings")
async def get_countdown() -> CountdownResponse:
    async with db.read_session() as session:
        presale = await PresaleConfigStore(session).read()

    return CountdownResponse(
        target_date=_countdown_target(),
        title=settings.countdown_title,
        description=settings.countdown_description,
        is_active=presale.is_active,
    )
