# backend/modules/menu/routers/stock_router.py

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.auth import TokenData, require_tenant_manager
from core.database import get_db
from core.error_handling import handle_api_errors
from core.response_utils import success_response

from ..schemas.menu_schemas import StockItemOut, StockMovementCreate, StockMovementOut, StockStats
from ..services.stock_service import StockService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/tenant/stock", tags=["stock"])


@router.get("")
@handle_api_errors
def stock_overview(
    low_stock: bool = Query(False, description="Only items at or below their alert level"),
    movements: bool = Query(True, description="Include the 50 latest movements"),
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
):
    """Tracked items with low/out-of-stock stats and recent movements"""
    overview = StockService(db, user.tenant_id).overview(
        low_stock_only=low_stock, include_movements=movements
    )
    return success_response(
        {
            "items": [StockItemOut.model_validate(item) for item in overview["items"]],
            "movements": [StockMovementOut.model_validate(m) for m in overview["movements"]],
            "stats": StockStats(**overview["stats"]),
        }
    )


@router.post("")
@handle_api_errors
def record_stock_movement(
    data: StockMovementCreate,
    db: Session = Depends(get_db),
    user: TokenData = Depends(require_tenant_manager),
):
    result = StockService(db, user.tenant_id).record_movement(data, user_id=user.user_id)
    logger.info(
        f"User {user.user_id} recorded {data.type.value} of {data.quantity} for item {data.menu_item_id}"
    )
    return success_response(result, "Stok güncellendi")
