from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

Money = Decimal


class ShopCreate(BaseModel):
    name: str = Field(min_length=2, max_length=120)
    location: str = Field(min_length=2, max_length=120)
    address: str = Field(min_length=2, max_length=255)
    phone: str = Field(min_length=5, max_length=32)


class ShopUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=120)
    location: str | None = Field(default=None, min_length=2, max_length=120)
    address: str | None = Field(default=None, min_length=2, max_length=255)
    phone: str | None = Field(default=None, min_length=5, max_length=32)


class ShopOut(BaseModel):
    id: int
    name: str
    location: str
    address: str
    phone: str
    owner_id: int
    created_at: datetime

    model_config = {"from_attributes": True}


class InventoryItemCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", protected_namespaces=())

    brand: str | None = Field(default=None, min_length=1, max_length=80)
    model: str | None = Field(default=None, min_length=1, max_length=120)
    storage: str | None = Field(default=None, max_length=32)
    ram: str | None = Field(default=None, max_length=32)
    color: str | None = Field(default=None, max_length=40)
    name: str | None = Field(default=None, min_length=1, max_length=160)
    sku: str | None = Field(default=None, min_length=1, max_length=64)
    quantity: int = Field(default=0, ge=0)
    buying_price: Money = Field(ge=0, max_digits=12, decimal_places=2)
    selling_price: Money = Field(ge=0, max_digits=12, decimal_places=2)
    low_stock_threshold: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def require_description(self):
        if not (self.brand and self.model) and not self.name:
            raise ValueError("either brand and model or a product name is required")
        return self


class InventoryItemUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", protected_namespaces=())

    brand: str | None = Field(default=None, min_length=1, max_length=80)
    model: str | None = Field(default=None, min_length=1, max_length=120)
    storage: str | None = Field(default=None, max_length=32)
    ram: str | None = Field(default=None, max_length=32)
    color: str | None = Field(default=None, max_length=40)
    name: str | None = Field(default=None, min_length=1, max_length=160)
    sku: str | None = Field(default=None, min_length=1, max_length=64)
    quantity: int | None = Field(default=None, ge=0)
    buying_price: Money | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    selling_price: Money | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    low_stock_threshold: int | None = Field(default=None, ge=1)


class InventoryItemPublicOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: int
    shop_id: int
    brand: str | None
    model: str | None
    storage: str | None
    ram: str | None
    color: str | None
    name: str | None
    sku: str | None
    quantity: int
    selling_price: Money
    low_stock_threshold: int
    is_low_stock: bool
    created_at: datetime
    updated_at: datetime


class InventoryItemOut(InventoryItemPublicOut):
    buying_price: Money
    unit_profit: Money


class CustomerCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=120)
    mobile: str = Field(min_length=3, max_length=32)
    address: str | None = Field(default=None, max_length=500)


class CustomerOut(BaseModel):
    id: int
    shop_id: int
    name: str
    mobile: str
    address: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
