"""
Shop pages for signed-in users: catalog, own orders, checkout.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from rewards.api.deps import get_current_user
from rewards.core.errors import InsufficientTokensError, NotFoundError
from rewards.db.session import get_db
from rewards.schemas.shop import OrderCreate, ShopItemOut
from rewards.schemas.users import UserWithTokens
from rewards.services.shop.service import ShopItemService, ShopOrderService
from rewards.utils.metrics import orders_created_total, orders_rejected_total

logger = logging.getLogger(__name__)

router = APIRouter(tags=["shop"])


@router.get("/")
def shop_index(user: UserWithTokens = Depends(get_current_user), db: Session = Depends(get_db)):
    items = ShopItemService(db).list_all()
    return {
        "user": user,
        "items": [ShopItemOut.model_validate(item) for item in items],
    }


@router.get("/orders")
def my_orders(user: UserWithTokens = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"user": user, "orders": ShopOrderService(db).list_for_user(user.slack_id)}


@router.post("/api/order")
def create_order(
    payload: OrderCreate,
    user: UserWithTokens = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = ShopOrderService(db)
    try:
        order = svc.create_order(user.slack_id, payload.shop_item_id)
    except NotFoundError as e:
        orders_rejected_total.labels(reason="not_found").inc()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InsufficientTokensError as e:
        orders_rejected_total.labels(reason="insufficient_tokens").inc()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Insufficient tokens", "required": e.required, "available": e.available},
        )
    orders_created_total.inc()
    return {
        "success": True,
        "order": {
            "id": order.id,
            "shopItemId": order.shop_item_id,
            "priceAtOrder": order.price_at_order,
            "status": order.status,
            "userId": order.user_id,
        },
        "message": "Order created successfully",
    }
