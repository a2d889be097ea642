from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ShopItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str
    image_url: str
    price: int
    usd_cost: int | None = None
    type: str | None = None


class ShopItemImport(BaseModel):
    """One entry of the /api/import-shop payload (camelCase keys from the catalog export)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = None
    name: str
    description: str = ""
    image_url: str = Field("", alias="imageUrl")
    price: int = Field(ge=0)
    usd_cost: int | None = None
    type: Literal["hcb", "third_party"] | None = None
    hcb_mids: list[str] | None = Field(None, alias="hcbMids")


class OrderCreate(BaseModel):
    shop_item_id: str = Field(alias="shopItemId")


class OrderStatusUpdate(BaseModel):
    order_id: str | None = Field(None, alias="orderId")
    status: str | None = None
    memo: str | None = None


class OrderOut(BaseModel):
    id: str
    status: str
    price_at_order: int
    memo: str | None = None
    created_at: datetime | None = None
    item_name: str
    item_image_url: str | None = None
    user_id: str


class AdminOrderOut(OrderOut):
    item_type: str | None = None
