from fastapi import APIRouter

from app.api.presale_endpoints.market import router as market_router
from app.api.presale_endpoints.purchases import router as purchases_router
from app.api.presale_endpoints.wallets import router as wallets_router

router = APIRouter(prefix="/presale", tags=["presale"])

router.include_router(wallets_router)
router.include_router(purchases_router)
router.include_router(market_router)
