import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.exceptions import PresaleError, StoreUnavailable
from app.api import admin, health, presale_router, stats
from app.db import db
from app.schemas.presale import ErrorResponse
from app.services.presale_config import PresaleConfigStore

logger = logging.getLogger(__name__)
logging.getLogger("app").setLevel(settings.log_level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    await db.init()
    async with db.session() as session:
        await PresaleConfigStore(session).provision()
    logger.info("Database ready")
    yield
    await db.dispose()


app = FastAPI(
    title=settings.app_name,
    description="""
    MemeChain Presale API

    This API provides endpoints for:
    - Registering wallet connections (EVM and Solana)
    - Recording token purchases in the presale ledger
    - Querying user balances and purchase history
    - Getting presale status, live stats, tokenomics and payment token prices

    ## Purchase Flow

    1. Frontend calls `POST /api/v1/presale/connect-wallet` when a wallet connects
    2. User pays from their wallet; the wallet reports the transaction hash
    3. Frontend calls `POST /api/v1/presale/purchase` with wallet, USD amount, chain and tx hash
    4. Backend converts at the current presale price and credits the tokens exactly once per tx hash

    Transaction hashes are not verified on-chain.
    """,
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PresaleError)
async def presale_error_handler(request: Request, exc: PresaleError) -> JSONResponse:
    body = ErrorResponse(error=exc.code, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error on {request.url.path}: {exc}")
    body = ErrorResponse(error=StoreUnavailable.code, detail="Service temporarily unavailable, please try again")
    return JSONResponse(status_code=StoreUnavailable.status_code, content=body.model_dump())


# Include routers
app.include_router(health.router)
app.include_router(presale_router.router, prefix=settings.api_v1_prefix)
app.include_router(stats.router, prefix=settings.api_v1_prefix)
app.include_router(admin.router, prefix=settings.api_v1_prefix)


@app.get("/", tags=["root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "api": f"{settings.api_v1_prefix}/presale",
    }
