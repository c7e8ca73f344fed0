import sqlite3
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError

from shoppos.core.errors import ConflictError, InsufficientStockError, InternalError, NotFoundError
from shoppos.models import Customer, InventoryItem, Sale, SaleItem
from shoppos.schemas.sales import SaleCreateRequest
from shoppos.services.checkout import CheckoutService, generate_invoice_code
from shoppos.services.storage import SqlStorage


def make_request(customer_id=None, customer=None, items=()):
    payload = {"items": list(items)}
    if customer_id is not None:
        payload["customer_id"] = customer_id
    if customer is not None:
        payload["customer"] = customer
    return SaleCreateRequest.model_validate(payload)


def stock_of(session_factory, item_id: int) -> int:
    with session_factory() as session:
        return session.get(InventoryItem, item_id).quantity


def sale_count(session_factory) -> int:
    with session_factory() as session:
        return session.scalar(select(func.count(Sale.id)))


def test_checkout_computes_totals_and_decrements_stock(db, session_factory, seeded):
    service = CheckoutService(SqlStorage(db))

    sale = service.create_sale(
        seeded.shop_id,
        make_request(customer_id=seeded.customer_id, items=[{"inventory_id": seeded.phone_id, "quantity": 3}]),
    )

    assert sale.total_amount == Decimal("300.00")
    assert sale.total_profit == Decimal("90.00")
    assert sale.invoice_code.startswith("INV-")
    assert stock_of(session_factory, seeded.phone_id) == 7

    [line] = sale.items
    assert line.unit_price == Decimal("100.00")
    assert line.cost_price == Decimal("70.00")
    assert line.brand == "Apple"
    assert line.model == "iPhone 13"
    assert line.variant == "128GB 4GB"
    assert line.product_name == "Apple iPhone 13"


def test_checkout_sums_many_lines_in_decimal(db, seeded):
    service = CheckoutService(SqlStorage(db))
    items = [
        {"inventory_id": seeded.cable_id, "quantity": 3},
        {"inventory_id": seeded.phone_id, "quantity": 1, "unit_price": "95.10"},
        {"inventory_id": seeded.cable_id, "quantity": 7, "unit_price": "0.10"},
    ]

    sale = service.create_sale(seeded.shop_id, make_request(customer_id=seeded.customer_id, items=items))

    expected_amount = Decimal("5.50") * 3 + Decimal("95.10") + Decimal("0.10") * 7
    expected_profit = (
        (Decimal("5.50") - Decimal("2.25")) * 3
        + (Decimal("95.10") - Decimal("70.00"))
        + (Decimal("0.10") - Decimal("2.25")) * 7
    )
    assert sale.total_amount == expected_amount
    assert sale.total_profit == expected_profit
    assert sum(item.line_total for item in sale.items) == sale.total_amount
    assert sum(item.line_profit for item in sale.items) == sale.total_profit


def test_price_override_below_cost_gives_negative_profit(db, seeded):
    service = CheckoutService(SqlStorage(db))

    sale = service.create_sale(
        seeded.shop_id,
        make_request(
            customer_id=seeded.customer_id,
            items=[{"inventory_id": seeded.phone_id, "quantity": 2, "unit_price": "60.00"}],
        ),
    )

    assert sale.total_amount == Decimal("120.00")
    assert sale.total_profit == Decimal("-20.00")
    assert sale.items[0].cost_price == Decimal("70.00")


def test_insufficient_stock_leaves_no_trace(db, session_factory, seeded):
    service = CheckoutService(SqlStorage(db))

    with pytest.raises(InsufficientStockError) as excinfo:
        service.create_sale(
            seeded.shop_id,
            make_request(customer_id=seeded.customer_id, items=[{"inventory_id": seeded.phone_id, "quantity": 11}]),
        )

    assert excinfo.value.details["available"] == 10
    assert excinfo.value.details["requested"] == 11
    assert excinfo.value.details["inventory_id"] == seeded.phone_id
    assert "Apple iPhone 13" in excinfo.value.message
    assert stock_of(session_factory, seeded.phone_id) == 10
    assert sale_count(session_factory) == 0


def test_duplicate_lines_are_checked_against_combined_quantity(db, session_factory, seeded):
    service = CheckoutService(SqlStorage(db))
    items = [
        {"inventory_id": seeded.phone_id, "quantity": 6},
        {"inventory_id": seeded.phone_id, "quantity": 5},
    ]

    with pytest.raises(InsufficientStockError) as excinfo:
        service.create_sale(seeded.shop_id, make_request(customer_id=seeded.customer_id, items=items))

    assert excinfo.value.details["requested"] == 11
    assert stock_of(session_factory, seeded.phone_id) == 10


def test_failure_on_a_later_line_rolls_back_earlier_lines(db, session_factory, seeded):
    service = CheckoutService(SqlStorage(db))
    items = [
        {"inventory_id": seeded.phone_id, "quantity": 2},
        {"inventory_id": seeded.last_unit_id, "quantity": 2},
    ]

    with pytest.raises(InsufficientStockError):
        service.create_sale(seeded.shop_id, make_request(customer_id=seeded.customer_id, items=items))

    assert stock_of(session_factory, seeded.phone_id) == 10
    assert stock_of(session_factory, seeded.last_unit_id) == 1
    assert sale_count(session_factory) == 0


def test_unknown_inventory_item_raises_not_found(db, session_factory, seeded):
    service = CheckoutService(SqlStorage(db))
    items = [
        {"inventory_id": seeded.phone_id, "quantity": 1},
        {"inventory_id": 9999, "quantity": 1},
    ]

    with pytest.raises(NotFoundError) as excinfo:
        service.create_sale(seeded.shop_id, make_request(customer_id=seeded.customer_id, items=items))

    assert "9999" in excinfo.value.message
    assert stock_of(session_factory, seeded.phone_id) == 10
    assert sale_count(session_factory) == 0


def test_inventory_of_another_shop_is_not_found(db, seeded):
    foreign = InventoryItem(
        shop_id=seeded.other_shop_id,
        brand="Nokia",
        model="3310",
        quantity=5,
        buying_price=Decimal("10"),
        selling_price=Decimal("20"),
    )
    db.add(foreign)
    db.commit()
    service = CheckoutService(SqlStorage(db))

    with pytest.raises(NotFoundError):
        service.create_sale(
            seeded.shop_id,
            make_request(customer_id=seeded.customer_id, items=[{"inventory_id": foreign.id, "quantity": 1}]),
        )


def test_unknown_customer_raises_not_found(db, session_factory, seeded):
    service = CheckoutService(SqlStorage(db))

    with pytest.raises(NotFoundError) as excinfo:
        service.create_sale(
            seeded.shop_id,
            make_request(customer_id=4242, items=[{"inventory_id": seeded.phone_id, "quantity": 1}]),
        )

    assert excinfo.value.details == {"entity": "customer", "id": 4242}
    assert stock_of(session_factory, seeded.phone_id) == 10


def test_unknown_shop_raises_not_found(db, seeded):
    service = CheckoutService(SqlStorage(db))

    with pytest.raises(NotFoundError):
        service.create_sale(
            777,
            make_request(customer_id=seeded.customer_id, items=[{"inventory_id": seeded.phone_id, "quantity": 1}]),
        )


def test_inline_customer_is_registered_with_the_sale(db, session_factory, seeded):
    service = CheckoutService(SqlStorage(db))

    sale = service.create_sale(
        seeded.shop_id,
        make_request(
            customer={"name": " Walk-in Buyer ", "mobile": "03330000000"},
            items=[{"inventory_id": seeded.cable_id, "quantity": 2}],
        ),
    )

    assert sale.customer.name == "Walk-in Buyer"
    assert sale.customer.shop_id == seeded.shop_id
    with session_factory() as session:
        assert session.get(Customer, sale.customer_id).mobile == "03330000000"


def test_inline_customer_is_rolled_back_with_a_failed_sale(db, session_factory, seeded):
    service = CheckoutService(SqlStorage(db))

    with pytest.raises(InsufficientStockError):
        service.create_sale(
            seeded.shop_id,
            make_request(
                customer={"name": "Walk-in Buyer", "mobile": "03330000000"},
                items=[{"inventory_id": seeded.last_unit_id, "quantity": 3}],
            ),
        )

    with session_factory() as session:
        assert session.scalar(select(func.count(Customer.id))) == 1


def test_sale_items_snapshot_survives_inventory_edits(db, session_factory, seeded):
    service = CheckoutService(SqlStorage(db))
    sale = service.create_sale(
        seeded.shop_id,
        make_request(customer_id=seeded.customer_id, items=[{"inventory_id": seeded.phone_id, "quantity": 1}]),
    )

    with session_factory() as session:
        item = session.get(InventoryItem, seeded.phone_id)
        item.selling_price = Decimal("150.00")
        item.buying_price = Decimal("120.00")
        item.model = "iPhone 13 Pro"
        session.commit()

    with session_factory() as session:
        line = session.scalar(select(SaleItem).where(SaleItem.sale_id == sale.id))
        assert line.unit_price == Decimal("100.00")
        assert line.cost_price == Decimal("70.00")
        assert line.model == "iPhone 13"


def test_lost_decrement_race_raises_insufficient_stock(db, session_factory, seeded, monkeypatch):
    storage = SqlStorage(db)
    original_get_item = storage.get_item

    def read_then_sold_elsewhere(shop_id, inventory_id, for_update=False):
        item = original_get_item(shop_id, inventory_id, for_update=for_update)
        with session_factory() as other:
            other.get(InventoryItem, inventory_id).quantity = 0
            other.commit()
        return item

    monkeypatch.setattr(storage, "get_item", read_then_sold_elsewhere)
    service = CheckoutService(storage)

    with pytest.raises(InsufficientStockError) as excinfo:
        service.create_sale(
            seeded.shop_id,
            make_request(customer_id=seeded.customer_id, items=[{"inventory_id": seeded.phone_id, "quantity": 2}]),
        )

    assert excinfo.value.details["available"] == 0
    assert sale_count(session_factory) == 0
    assert stock_of(session_factory, seeded.phone_id) == 0


def test_concurrent_checkouts_of_last_unit_oversell_nothing(session_factory, seeded):
    def checkout():
        session = session_factory()
        try:
            service = CheckoutService(SqlStorage(session))
            service.create_sale(
                seeded.shop_id,
                make_request(
                    customer_id=seeded.customer_id,
                    items=[{"inventory_id": seeded.last_unit_id, "quantity": 1}],
                ),
            )
            return "ok"
        except (InsufficientStockError, ConflictError):
            return "rejected"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=2) as pool:
        outcomes = sorted(pool.map(lambda _: checkout(), range(2)))

    assert outcomes == ["ok", "rejected"]
    assert stock_of(session_factory, seeded.last_unit_id) == 0
    assert sale_count(session_factory) == 1


def test_invoice_codes_are_unique():
    now = datetime(2026, 10, 18, 12, 0, 0)
    codes = {generate_invoice_code("INV", now) for _ in range(500)}

    assert len(codes) == 500
    assert all(code.startswith("INV-20261018-") for code in codes)


class SerializationFailure(Exception):
    sqlstate = "40001"


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (OperationalError("INSERT INTO sales", {}, sqlite3.OperationalError("database is locked")), ConflictError),
        (OperationalError("INSERT INTO sales", {}, SerializationFailure("could not serialize access")), ConflictError),
        (
            IntegrityError("INSERT INTO sales", {}, sqlite3.IntegrityError("UNIQUE constraint failed: sales.invoice_code")),
            ConflictError,
        ),
        (OperationalError("INSERT INTO sales", {}, ConnectionRefusedError("Connection refused")), InternalError),
        (OperationalError("INSERT INTO sales", {}, sqlite3.OperationalError("no such table: sales")), InternalError),
        (
            IntegrityError("INSERT INTO sale_items", {}, sqlite3.IntegrityError("CHECK constraint failed: quantity > 0")),
            InternalError,
        ),
    ],
)
def test_database_failures_are_classified(db, session_factory, seeded, monkeypatch, error, expected):
    storage = SqlStorage(db)

    def broken_add_sale(sale):
        raise error

    monkeypatch.setattr(storage, "add_sale", broken_add_sale)
    service = CheckoutService(storage)

    with pytest.raises(expected) as excinfo:
        service.create_sale(
            seeded.shop_id,
            make_request(customer_id=seeded.customer_id, items=[{"inventory_id": seeded.phone_id, "quantity": 1}]),
        )

    assert excinfo.type is expected
    if expected is InternalError:
        assert excinfo.value.message == "Unable to complete the request"
    else:
        assert excinfo.value.details["retryable"] is True
    assert stock_of(session_factory, seeded.phone_id) == 10
    assert sale_count(session_factory) == 0


def test_sale_timestamps_are_naive_utc(db, seeded):
    service = CheckoutService(SqlStorage(db))
    before = datetime.now(timezone.utc).replace(tzinfo=None)

    sale = service.create_sale(
        seeded.shop_id,
        make_request(customer_id=seeded.customer_id, items=[{"inventory_id": seeded.cable_id, "quantity": 1}]),
    )

    after = datetime.now(timezone.utc).replace(tzinfo=None)
    db.expire_all()
    item = db.get(InventoryItem, seeded.cable_id)
    assert sale.created_at.tzinfo is None
    assert before <= sale.created_at <= after
    assert sale.invoice_code.startswith(f"INV-{before:%Y%m%d}") or sale.invoice_code.startswith(f"INV-{after:%Y%m%d}")
    assert before <= item.updated_at <= after
