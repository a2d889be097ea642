from rewards.models.payout import Payout
from rewards.models.shop_item import ShopItem
from rewards.models.shop_order import ShopOrder
from rewards.models.user import User

__all__ = ["Payout", "ShopItem", "ShopOrder", "User"]
