from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from shoppos.schemas.inventory import CustomerCreate, CustomerOut


class SaleLineRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    inventory_id: int = Field(gt=0)
    quantity: int = Field(gt=0)
    unit_price: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)


class SaleCreateRequest(BaseModel):
    """Checkout payload.

    A sale always belongs to a customer: either ``customer_id`` of an existing
    customer of the shop, or an inline ``customer`` registered together with
    the sale (walk-in buyers).
    """

    model_config = ConfigDict(extra="forbid")

    customer_id: int | None = Field(default=None, gt=0)
    customer: CustomerCreate | None = None
    items: list[SaleLineRequest] = Field(min_length=1)

    @model_validator(mode="after")
    def require_one_customer(self):
        if (self.customer_id is None) == (self.customer is None):
            raise ValueError("exactly one of customer_id or customer is required")
        return self


class SaleItemPublicOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: int
    inventory_id: int
    product_name: str
    brand: str | None
    model: str | None
    variant: str | None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class SaleItemOut(SaleItemPublicOut):
    cost_price: Decimal
    line_profit: Decimal


class SalePublicOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    shop_id: int
    customer_id: int
    sold_by_user_id: int | None
    invoice_code: str
    total_amount: Decimal
    created_at: datetime
    customer: CustomerOut
    items: list[SaleItemPublicOut]


class SaleOut(SalePublicOut):
    total_profit: Decimal
    items: list[SaleItemOut]


class SalesSummaryPublicOut(BaseModel):
    shop_id: int
    period_from: date | None
    period_to: date | None
    total_sales_amount: Decimal
    total_sales_records: int
    total_units_sold: int
    inventory_units_on_hand: int
    low_stock_items: int


class SalesSummaryOut(SalesSummaryPublicOut):
    total_profit: Decimal
