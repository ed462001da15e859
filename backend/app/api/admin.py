"""
Admin presale controls.

Every endpoint requires the `x-admin-key` header to match ADMIN_API_KEY.
The endpoints are disabled while no key is configured.
"""

import hmac
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, status

from app.core.config import settings
from app.db import db
from app.schemas.presale import (
    PresaleStatusResponse,
    ToggleStatusRequest,
    UpdatePriceRequest,
    UpdateStageRequest,
)
from app.api.presale_endpoints.common import status_response
from app.services.presale_config import PresaleConfigStore

logger = logging.getLogger(__name__)


async def require_admin(x_admin_key: str = Header("")) -> None:
    if not settings.admin_api_key:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin API is disabled")
    if not hmac.compare_digest(x_admin_key.encode("utf-8"), settings.admin_api_key.encode("utf-8")):
        logger.warning("Admin request with invalid key")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin key")


router = APIRouter(prefix="/admin/presale", tags=["admin"], dependencies=[Depends(require_admin)])


@router.post("/update-price", response_model=PresaleStatusResponse, summary="Set stage and price")
async def update_price(request: UpdatePriceRequest) -> PresaleStatusResponse:
    async with db.session() as session:
        presale = await PresaleConfigStore(session).update_price(request.stage, request.price)
    return status_response(presale)


@router.post("/update-stage", response_model=PresaleStatusResponse, summary="Move to a scheduled stage")
async def update_stage(request: UpdateStageRequest) -> PresaleStatusResponse:
    async with db.session() as session:
        presale = await PresaleConfigStore(session).update_stage(request.stage)
    return status_response(presale)


@router.post("/toggle-status", response_model=PresaleStatusResponse, summary="Open or pause the sale")
async def toggle_status(request: ToggleStatusRequest) -> PresaleStatusResponse:
    async with db.session() as session:
        presale = await PresaleConfigStore(session).set_active(request.is_active)
    return status_response(presale)
