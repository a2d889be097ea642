"""
Admin pages and order fulfilment API. Every route requires an admin user.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from rewards.api.deps import require_admin
from rewards.core.errors import NotFoundError
from rewards.db.session import get_db
from rewards.schemas.shop import OrderStatusUpdate, ShopItemOut
from rewards.schemas.users import UserWithTokens
from rewards.services.shop.service import ADMIN_SETTABLE_STATUSES, ShopItemService, ShopOrderService
from rewards.services.users.service import UserService
from rewards.utils.metrics import order_status_updates_total

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])


@router.get("/admin")
def admin_items(user: UserWithTokens = Depends(require_admin), db: Session = Depends(get_db)):
    items = ShopItemService(db).list_all()
    return {"user": user, "items": [ShopItemOut.model_validate(item) for item in items]}


@router.get("/admin/users")
def admin_users(user: UserWithTokens = Depends(require_admin), db: Session = Depends(get_db)):
    return {
        "user": user,
        "users": UserService(db).list_with_tokens(),
        "orders": ShopOrderService(db).list_with_details(),
    }


@router.get("/admin/orders")
def admin_orders(
    status_filter: str | None = Query(None, alias="status"),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    user: UserWithTokens = Depends(require_admin),
    db: Session = Depends(get_db),
):
    listing = ShopOrderService(db).admin_listing(status_filter, sort_by, sort_order)
    return {"user": user, **listing}


@router.patch("/api/admin/orders")
def update_order_status(
    payload: OrderStatusUpdate,
    user: UserWithTokens = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if not payload.order_id or not payload.status:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Order ID and status are required")
    if payload.status not in ADMIN_SETTABLE_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid status")
    try:
        order = ShopOrderService(db).update_status(payload.order_id, payload.status, payload.memo)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    order_status_updates_total.labels(status=payload.status).inc()
    logger.info("order_status_changed", extra={"order_id": order.id, "slack_id": user.slack_id})
    return {
        "success": True,
        "order": {"id": order.id, "status": order.status, "memo": order.memo},
        "message": f"Order {payload.status} successfully",
    }
