from datetime import date, datetime, time, timedelta

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from shoppos.db.database import utc_now
from shoppos.models.inventory import Customer, InventoryItem, Shop
from shoppos.models.sales import Sale


def day_bounds(start_date: date | None, end_date: date | None) -> tuple[datetime | None, datetime | None]:
    """Turn an inclusive calendar range into ``[start, end)`` datetimes."""
    start = datetime.combine(start_date, time.min) if start_date is not None else None
    end = datetime.combine(end_date + timedelta(days=1), time.min) if end_date is not None else None
    return start, end


class SqlStorage:
    """Persistence operations the checkout and reporting services run against.

    Every call goes through the session handed in by the caller, so a whole
    checkout shares one transaction; ``commit``/``rollback`` end it.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_shop(self, shop_id: int) -> Shop | None:
        return self.db.get(Shop, shop_id)

    def get_customer(self, shop_id: int, customer_id: int) -> Customer | None:
        return self.db.scalar(select(Customer).where(Customer.id == customer_id, Customer.shop_id == shop_id))

    def get_item(self, shop_id: int, inventory_id: int, for_update: bool = False) -> InventoryItem | None:
        query = select(InventoryItem).where(InventoryItem.id == inventory_id, InventoryItem.shop_id == shop_id)
        if for_update:
            # refresh any instance already in the session with the locked row
            query = query.with_for_update().execution_options(populate_existing=True)
        return self.db.scalar(query)

    def decrement_stock(self, inventory_id: int, amount: int) -> bool:
        result = self.db.execute(
            update(InventoryItem)
            .where(InventoryItem.id == inventory_id, InventoryItem.quantity >= amount)
            .values(quantity=InventoryItem.quantity - amount, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        cached = self.db.identity_map.get(self.db.identity_key(InventoryItem, inventory_id))
        if cached is not None:
            self.db.expire(cached, ["quantity", "updated_at"])
        return result.rowcount == 1

    def add_customer(self, customer: Customer) -> Customer:
        self.db.add(customer)
        self.db.flush()
        return customer

    def add_sale(self, sale: Sale) -> Sale:
        self.db.add(sale)
        self.db.flush()
        return sale

    def get_sale(self, shop_id: int, sale_id: int) -> Sale | None:
        return self.db.scalar(
            select(Sale)
            .options(selectinload(Sale.items))
            .where(Sale.id == sale_id, Sale.shop_id == shop_id)
        )

    def list_sales(
        self,
        shop_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Sale]:
        start, end = day_bounds(start_date, end_date)
        query = (
            select(Sale)
            .options(selectinload(Sale.items))
            .where(Sale.shop_id == shop_id)
            .order_by(Sale.created_at.desc(), Sale.id.desc())
        )
        if start is not None:
            query = query.where(Sale.created_at >= start)
        if end is not None:
            query = query.where(Sale.created_at < end)
        return list(self.db.scalars(query).unique().all())

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
