"""
ShopOrder: ledger debit. price_at_order is frozen at checkout so later price
changes never touch balances. Only pending and fulfilled orders count as spend.
"""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from rewards.db.base import Base

ORDER_STATUSES = ("pending", "fulfilled", "rejected")
SPENDING_STATUSES = ("pending", "fulfilled")


class ShopOrder(Base):
    __tablename__ = "shop_orders"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    shop_item_id = Column(String, ForeignKey("shop_items.id"), nullable=False)
    price_at_order = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default="pending")  # pending / fulfilled / rejected
    memo = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    user_id = Column(String, ForeignKey("user.slack_id"), nullable=False, index=True)
