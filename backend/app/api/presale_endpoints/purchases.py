from fastapi import APIRouter

from app.schemas.presale import ErrorResponse, PurchaseRequest, PurchaseResponse
from app.services.purchase import purchase_processor

router = APIRouter()


@router.post(
    "/purchase",
    response_model=PurchaseResponse,
    summary="Record a token purchase",
    description=(
        "Credits presale tokens for a payment the wallet reported as confirmed. "
        "Idempotent on tx_hash: re-submitting returns the original result."
    ),
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def purchase(request: PurchaseRequest) -> PurchaseResponse:
    result = await purchase_processor.submit_purchase(
        wallet_address=request.wallet_address,
        amount_paid=request.amount,
        chain=request.chain,
        tx_hash=request.tx_hash,
        payment_token=request.payment_token,
    )
    return PurchaseResponse(
        tx_hash=result.tx_hash,
        tokens_received=result.tokens_received,
        new_balance=result.new_token_balance,
        total_contributed=float(result.new_total_contributed),
        price_at_purchase=float(result.price_at_purchase),
        duplicate=result.duplicate,
    )
