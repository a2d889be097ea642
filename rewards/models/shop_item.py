from uuid import uuid4

from sqlalchemy import JSON, Column, Integer, String, Text

from rewards.db.base import Base

ITEM_TYPES = ("hcb", "third_party")


class ShopItem(Base):
    __tablename__ = "shop_items"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(String, nullable=False)
    price = Column(Integer, nullable=False)  # tokens
    usd_cost = Column(Integer, nullable=True)
    type = Column(String, nullable=True)  # hcb / third_party
    hcb_mids = Column(JSON, nullable=True)  # merchant ids for hcb grants
