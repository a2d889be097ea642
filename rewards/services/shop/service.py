"""
Shop catalog and orders.

Orders are debits against the payout ledger: creating one checks the signed
balance under a row lock on the user, so two concurrent checkouts cannot both
spend the same tokens.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from rewards.core.errors import InsufficientTokensError, NotFoundError
from rewards.models.shop_item import ShopItem
from rewards.models.shop_order import ShopOrder
from rewards.models.user import User
from rewards.schemas.shop import AdminOrderOut, OrderOut, ShopItemImport
from rewards.services.users.service import UserService

logger = logging.getLogger(__name__)

ADMIN_SETTABLE_STATUSES = ("fulfilled", "rejected")


class ShopItemService:
    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> list[ShopItem]:
        return self.db.query(ShopItem).order_by(ShopItem.price.asc(), ShopItem.name.asc()).all()

    def get(self, item_id: str) -> ShopItem | None:
        return self.db.query(ShopItem).filter(ShopItem.id == item_id).one_or_none()

    def items_by_id(self, item_ids: set[str]) -> dict[str, ShopItem]:
        if not item_ids:
            return {}
        items = self.db.query(ShopItem).filter(ShopItem.id.in_(item_ids)).all()
        return {item.id: item for item in items}

    def upsert(self, data: ShopItemImport) -> ShopItem:
        """
        Update the item with data.id if it exists, create it otherwise.
        An update only touches the fields present in the payload.
        """
        item = self.get(data.id) if data.id else None
        if item is None:
            item = ShopItem(**data.model_dump(exclude={"id"}))
            if data.id:
                item.id = data.id
        else:
            for key, value in data.model_dump(exclude={"id"}, exclude_unset=True).items():
                setattr(item, key, value)
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item


class ShopOrderService:
    def __init__(self, db: Session):
        self.db = db
        self.items = ShopItemService(db)

    def get(self, order_id: str) -> ShopOrder | None:
        return self.db.query(ShopOrder).filter(ShopOrder.id == order_id).one_or_none()

    def create_order(self, slack_id: str, shop_item_id: str) -> ShopOrder:
        item = self.items.get(shop_item_id)
        if not item:
            raise NotFoundError("Shop item not found")
        try:
            user = (
                self.db.query(User)
                .filter(User.slack_id == slack_id)
                .with_for_update()
                .one_or_none()
            )
            if not user:
                raise NotFoundError("User not found")
            available = max(UserService(self.db).raw_balance(slack_id), 0)
            if available < item.price:
                raise InsufficientTokensError(required=item.price, available=available)
            order = ShopOrder(
                shop_item_id=item.id,
                price_at_order=item.price,
                status="pending",
                user_id=slack_id,
            )
            self.db.add(order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)
        logger.info(
            "order_created",
            extra={"order_id": order.id, "slack_id": slack_id, "item_id": item.id, "tokens": item.price},
        )
        return order

    def update_status(self, order_id: str, status: str, memo: str | None = None) -> ShopOrder:
        if status not in ADMIN_SETTABLE_STATUSES:
            raise ValueError(f"invalid status: {status}")
        order = self.get(order_id)
        if not order:
            raise NotFoundError("Order not found")
        order.status = status
        if memo is not None:
            order.memo = memo
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        logger.info("order_status_updated", extra={"order_id": order_id})
        return order

    def list_for_user(self, slack_id: str) -> list[OrderOut]:
        orders = (
            self.db.query(ShopOrder)
            .filter(ShopOrder.user_id == slack_id)
            .order_by(ShopOrder.created_at.desc())
            .all()
        )
        items = self.items.items_by_id({o.shop_item_id for o in orders})
        return [self._order_out(o, items.get(o.shop_item_id)) for o in orders]

    def list_with_details(self) -> list[AdminOrderOut]:
        orders = self.db.query(ShopOrder).order_by(ShopOrder.created_at.desc()).all()
        items = self.items.items_by_id({o.shop_item_id for o in orders})
        return [self._admin_order_out(o, items.get(o.shop_item_id)) for o in orders]

    def admin_listing(
        self,
        status: str | None = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> dict[str, Any]:
        """Orders for the admin table: status filter, sort, and the options for the filter widgets."""
        all_orders = self.list_with_details()
        orders = list(all_orders)
        if status and status != "all":
            orders = [o for o in orders if o.status == status]
        orders.sort(key=_ORDER_SORT_KEYS.get(sort_by, _ORDER_SORT_KEYS["createdAt"]), reverse=sort_order == "desc")

        prices = [o.price_at_order for o in all_orders]
        return {
            "orders": orders,
            "filters": {"status": status, "sortBy": sort_by, "sortOrder": sort_order},
            "filterOptions": {
                "customers": sorted({o.user_id for o in all_orders if o.user_id}),
                "items": sorted({o.item_name for o in all_orders if o.item_name}),
                "priceRange": {"min": min(prices), "max": max(prices)} if prices else {"min": 0, "max": 0},
            },
        }

    @staticmethod
    def _order_out(order: ShopOrder, item: ShopItem | None) -> OrderOut:
        return OrderOut(
            id=order.id,
            status=order.status,
            price_at_order=order.price_at_order,
            memo=order.memo,
            created_at=order.created_at,
            item_name=item.name if item else "Unknown Item",
            item_image_url=item.image_url if item else None,
            user_id=order.user_id,
        )

    @classmethod
    def _admin_order_out(cls, order: ShopOrder, item: ShopItem | None) -> AdminOrderOut:
        base = cls._order_out(order, item)
        return AdminOrderOut(**base.model_dump(), item_type=item.type if item else None)


_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def _created_key(order: OrderOut) -> float:
    created = order.created_at
    if created is None:
        return _EPOCH.timestamp()
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created.timestamp()


_ORDER_SORT_KEYS = {
    "createdAt": _created_key,
    "price": lambda o: o.price_at_order,
    "status": lambda o: o.status,
    "customer": lambda o: o.user_id,
    "item": lambda o: o.item_name,
}
