"""
Catalog import: POST an array of shop items with `Authorization: Bearer <ADMIN_KEY>`.
"""
import logging
import secrets

from fastapi import APIRouter, Body, Depends, Header, HTTPException, status
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rewards.api.deps import get_app_settings
from rewards.core.config import Settings
from rewards.db.session import get_db
from rewards.schemas.shop import ShopItemImport, ShopItemOut
from rewards.services.shop.service import ShopItemService
from rewards.utils.metrics import shop_items_imported_total

logger = logging.getLogger(__name__)

router = APIRouter(tags=["import"])


def require_admin_key(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    expected = f"Bearer {settings.admin_key}"
    if not settings.admin_key or not secrets.compare_digest(authorization or "", expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Pass in an Authorization header.")


@router.post("/api/import-shop", dependencies=[Depends(require_admin_key)])
def import_shop(items: list[dict] = Body(...), db: Session = Depends(get_db)):
    svc = ShopItemService(db)
    results = []
    for raw in items:
        try:
            item = svc.upsert(ShopItemImport.model_validate(raw))
        except (ValidationError, SQLAlchemyError) as e:
            db.rollback()
            shop_items_imported_total.labels(status="failed").inc()
            logger.error("shop_item_import_failed", extra={"item_id": raw.get("id"), "error": str(e)})
            continue
        shop_items_imported_total.labels(status="ok").inc()
        results.append(ShopItemOut.model_validate(item))
    return {
        "success": True,
        "message": f"Successfully processed {len(results)} items",
        "data": results,
    }
