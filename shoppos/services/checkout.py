import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from shoppos.core.errors import ConflictError, InsufficientStockError, InternalError, NotFoundError, ShopPosError
from shoppos.db.database import utc_now
from shoppos.models.inventory import Customer, InventoryItem
from shoppos.models.sales import Sale, SaleItem
from shoppos.schemas.sales import SaleCreateRequest
from shoppos.services.storage import SqlStorage

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def generate_invoice_code(prefix: str, now: datetime) -> str:
    return f"{prefix}-{now:%Y%m%d}-{uuid.uuid4().hex[:10].upper()}"


# serialization_failure, deadlock_detected, lock_not_available
RETRYABLE_SQLSTATES = {"40001", "40P01", "55P03"}
SQLITE_LOCK_MESSAGES = ("database is locked", "database table is locked")


def is_retryable_conflict(exc: SQLAlchemyError) -> bool:
    """True when the failure came from a concurrent writer, not from a broken database or bad data."""
    orig = getattr(exc, "orig", None)
    if getattr(orig, "sqlstate", None) in RETRYABLE_SQLSTATES:
        return True
    message = str(orig).lower()
    if isinstance(exc, OperationalError):
        return any(text in message for text in SQLITE_LOCK_MESSAGES)
    if isinstance(exc, IntegrityError):
        # two checkouts drew the same invoice code
        return "invoice_code" in message
    return False


@dataclass(frozen=True)
class PricedLine:
    item: InventoryItem
    quantity: int
    unit_price: Decimal
    cost_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def line_profit(self) -> Decimal:
        return (self.unit_price - self.cost_price) * self.quantity


def sale_totals(lines: list[PricedLine]) -> tuple[Decimal, Decimal]:
    total_amount = sum((line.line_total for line in lines), Decimal("0"))
    total_profit = sum((line.line_profit for line in lines), Decimal("0"))
    return total_amount, total_profit


class CheckoutService:
    """Validates a cart, prices it and records the sale in one transaction.

    Nothing is written until every line has been validated against the
    locked inventory rows. The storage session is committed on success and
    rolled back on any failure, so a sale either exists with its stock
    decrements applied or leaves no trace at all.
    """

    def __init__(self, storage: SqlStorage, invoice_prefix: str = "INV") -> None:
        self.storage = storage
        self.invoice_prefix = invoice_prefix

    def create_sale(
        self,
        shop_id: int,
        request: SaleCreateRequest,
        sold_by_user_id: int | None = None,
    ) -> Sale:
        try:
            sale = self._record_sale(shop_id, request, sold_by_user_id)
            self.storage.commit()
        except ShopPosError as exc:
            self.storage.rollback()
            logger.info("checkout rejected shop=%s kind=%s: %s", shop_id, exc.kind, exc.message)
            raise
        except SQLAlchemyError as exc:
            self.storage.rollback()
            if is_retryable_conflict(exc):
                logger.warning("checkout conflict shop=%s: %s", shop_id, getattr(exc, "orig", exc))
                raise ConflictError() from exc
            logger.exception("checkout failed shop=%s", shop_id)
            raise InternalError() from exc

        logger.info(
            "sale recorded shop=%s sale=%s invoice=%s lines=%d",
            shop_id,
            sale.id,
            sale.invoice_code,
            len(sale.items),
        )
        return sale

    def _record_sale(self, shop_id: int, request: SaleCreateRequest, sold_by_user_id: int | None) -> Sale:
        if self.storage.get_shop(shop_id) is None:
            raise NotFoundError.for_entity("Shop", shop_id)

        customer: Customer | None = None
        if request.customer_id is not None:
            customer = self.storage.get_customer(shop_id, request.customer_id)
            if customer is None:
                raise NotFoundError.for_entity("Customer", request.customer_id)

        lines = self._price_lines(shop_id, request)
        total_amount, total_profit = sale_totals(lines)

        if customer is None:
            customer = self.storage.add_customer(
                Customer(
                    shop_id=shop_id,
                    name=request.customer.name.strip(),
                    mobile=request.customer.mobile.strip(),
                    address=request.customer.address,
                )
            )

        now = utc_now()
        sale = Sale(
            shop_id=shop_id,
            customer_id=customer.id,
            sold_by_user_id=sold_by_user_id,
            invoice_code=generate_invoice_code(self.invoice_prefix, now),
            total_amount=to_cents(total_amount),
            total_profit=to_cents(total_profit),
            created_at=now,
        )
        sale.customer = customer
        sale.items = [
            SaleItem(
                inventory_id=line.item.id,
                product_name=line.item.label,
                brand=line.item.brand,
                model=line.item.model,
                variant=line.item.variant or None,
                quantity=line.quantity,
                unit_price=to_cents(line.unit_price),
                cost_price=to_cents(line.cost_price),
                created_at=now,
            )
            for line in lines
        ]
        self.storage.add_sale(sale)

        for line in lines:
            if not self.storage.decrement_stock(line.item.id, line.quantity):
                # stock moved under us between the check and the write
                raise InsufficientStockError(line.item.id, line.item.label, line.item.quantity, line.quantity)
        return sale

    def _price_lines(self, shop_id: int, request: SaleCreateRequest) -> list[PricedLine]:
        requested: dict[int, int] = defaultdict(int)
        for line in request.items:
            requested[line.inventory_id] += line.quantity

        # lock rows in id order so concurrent carts cannot deadlock each other
        items: dict[int, InventoryItem] = {}
        for inventory_id in sorted(requested):
            item = self.storage.get_item(shop_id, inventory_id, for_update=True)
            if item is None:
                raise NotFoundError.for_entity("Inventory item", inventory_id)
            if requested[inventory_id] > item.quantity:
                raise InsufficientStockError(item.id, item.label, item.quantity, requested[inventory_id])
            items[inventory_id] = item

        return [
            PricedLine(
                item=items[line.inventory_id],
                quantity=line.quantity,
                unit_price=Decimal(line.unit_price or items[line.inventory_id].selling_price),
                cost_price=Decimal(items[line.inventory_id].buying_price),
            )
            for line in request.items
        ]
