from fastapi import APIRouter, HTTPException, Query, status

from app.core.amounts import MAX_AMOUNT, parse_decimal, to_units, tokens_for
from app.db import db
from app.schemas.presale import EstimateResponse, PresaleStatusResponse, PricesResponse
from app.services.presale_config import PresaleConfigStore
from app.services.prices import price_client

from .common import status_response

router = APIRouter()


@router.get(
    "/status",
    response_model=PresaleStatusResponse,
    summary="Get presale status",
)
async def get_presale_status() -> PresaleStatusResponse:
    """Current price, stage and running totals."""
    async with db.read_session() as session:
        presale = await PresaleConfigStore(session).read()
    return status_response(presale)


@router.get(
    "/prices",
    response_model=PricesResponse,
    summary="Get payment token prices",
    description="USD prices of supported payment tokens, for display only.",
)
async def get_prices() -> PricesResponse:
    prices = await price_client.get_all_prices()
    async with db.read_session() as session:
        presale = await PresaleConfigStore(session).read()
    return PricesResponse(prices=prices, token_price=float(presale.current_price))


@router.get(
    "/estimate",
    response_model=EstimateResponse,
    summary="Estimate tokens for a payment",
)
async def get_estimate(
    amount: float = Query(..., gt=0, allow_inf_nan=False, description="Amount of the payment token"),
    pay_token: str = Query("USDT", description="Payment token symbol"),
) -> EstimateResponse:
    """Display-only estimate; the purchase is converted at the price current when it is recorded."""
    try:
        token_price = await price_client.get_token_price(pay_token)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    usd_amount = parse_decimal(amount) * parse_decimal(token_price)
    if usd_amount > MAX_AMOUNT:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Amount is too large")
    async with db.read_session() as session:
        presale = await PresaleConfigStore(session).read()

    return EstimateResponse(
        amount=amount,
        pay_token=pay_token.upper(),
        usd_amount=float(usd_amount),
        token_amount=tokens_for(to_units(usd_amount), presale.current_price_units),
    )
