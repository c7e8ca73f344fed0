from datetime import date
from decimal import Decimal

from sqlalchemy import func, select

from shoppos.core.errors import NotFoundError
from shoppos.models.inventory import InventoryItem
from shoppos.models.sales import Sale, SaleItem
from shoppos.schemas.inventory import InventoryItemOut, InventoryItemPublicOut
from shoppos.schemas.sales import SaleOut, SalePublicOut, SalesSummaryOut, SalesSummaryPublicOut
from shoppos.services.storage import SqlStorage, day_bounds


def project_sale(sale: Sale, can_view_profit: bool) -> SaleOut | SalePublicOut:
    """Shape a stored sale for a caller.

    Callers without profit visibility get the public models, which have no
    ``total_profit``/``cost_price`` fields at all. Stored rows are never touched.
    """
    schema = SaleOut if can_view_profit else SalePublicOut
    return schema.model_validate(sale)


def project_sales(sales: list[Sale], can_view_profit: bool) -> list[SaleOut | SalePublicOut]:
    return [project_sale(sale, can_view_profit) for sale in sales]


def project_inventory_item(item: InventoryItem, can_view_cost: bool) -> InventoryItemOut | InventoryItemPublicOut:
    if not can_view_cost:
        return InventoryItemPublicOut.model_validate(item)
    public = InventoryItemPublicOut.model_validate(item)
    return InventoryItemOut(
        **public.model_dump(),
        buying_price=item.buying_price,
        unit_profit=Decimal(item.selling_price) - Decimal(item.buying_price),
    )


class ReportingService:
    def __init__(self, storage: SqlStorage) -> None:
        self.storage = storage

    def list_sales(
        self,
        shop_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
        can_view_profit: bool = False,
    ) -> list[SaleOut | SalePublicOut]:
        if self.storage.get_shop(shop_id) is None:
            raise NotFoundError.for_entity("Shop", shop_id)
        return project_sales(self.storage.list_sales(shop_id, start_date, end_date), can_view_profit)

    def get_sale(self, shop_id: int, sale_id: int, can_view_profit: bool = False) -> SaleOut | SalePublicOut:
        sale = self.storage.get_sale(shop_id, sale_id)
        if sale is None:
            raise NotFoundError.for_entity("Sale", sale_id)
        return project_sale(sale, can_view_profit)

    def sales_summary(
        self,
        shop_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
        can_view_profit: bool = False,
    ) -> SalesSummaryOut | SalesSummaryPublicOut:
        if self.storage.get_shop(shop_id) is None:
            raise NotFoundError.for_entity("Shop", shop_id)
        db = self.storage.db
        start, end = day_bounds(start_date, end_date)
        period = [
            *([Sale.created_at >= start] if start is not None else []),
            *([Sale.created_at < end] if end is not None else []),
        ]

        sale_stats = db.execute(
            select(
                func.coalesce(func.sum(Sale.total_amount), 0),
                func.coalesce(func.sum(Sale.total_profit), 0),
                func.count(Sale.id),
            ).where(Sale.shop_id == shop_id, *period)
        ).one()
        units_sold = db.scalar(
            select(func.coalesce(func.sum(SaleItem.quantity), 0))
            .join(Sale, Sale.id == SaleItem.sale_id)
            .where(Sale.shop_id == shop_id, *period)
        )
        stock_stats = db.execute(
            select(
                func.coalesce(func.sum(InventoryItem.quantity), 0),
                func.count(InventoryItem.id).filter(InventoryItem.quantity <= InventoryItem.low_stock_threshold),
            ).where(InventoryItem.shop_id == shop_id)
        ).one()

        summary = SalesSummaryPublicOut(
            shop_id=shop_id,
            period_from=start_date,
            period_to=end_date,
            total_sales_amount=Decimal(sale_stats[0]),
            total_sales_records=int(sale_stats[2]),
            total_units_sold=int(units_sold or 0),
            inventory_units_on_hand=int(stock_stats[0]),
            low_stock_items=int(stock_stats[1]),
        )
        if not can_view_profit:
            return summary
        return SalesSummaryOut(**summary.model_dump(), total_profit=Decimal(sale_stats[1]))
