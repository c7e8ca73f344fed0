from dataclasses import dataclass, replace
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from shoppos.core.config import settings
from shoppos.core.security import hash_password
from shoppos.db.database import Base, build_engine, build_session_factory
from shoppos.main import create_app
from shoppos.models import Customer, InventoryItem, Shop, User, UserRole

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin-pass-123"
OWNER_PASSWORD = "owner-pass-123"
EMPLOYEE_PASSWORD = "employee-pass-123"


@dataclass
class ShopFixture:
    owner_id: int
    employee_id: int
    shop_id: int
    other_shop_id: int
    customer_id: int
    phone_id: int
    last_unit_id: int
    cable_id: int


def seed_shop(db, password_hash: str = "not-a-real-hash") -> ShopFixture:
    owner = User(username="owner", name="Shop Owner", password_hash=password_hash, role=UserRole.BUSINESS_OWNER)
    rival = User(username="rival", name="Rival Owner", password_hash=password_hash, role=UserRole.BUSINESS_OWNER)
    db.add_all([owner, rival])
    db.flush()

    shop = Shop(name="Main Street Mobiles", location="Lahore", address="12 Main St", phone="0300-1234567", owner_id=owner.id)
    other_shop = Shop(name="Rival Phones", location="Karachi", address="9 Side Rd", phone="0300-7654321", owner_id=rival.id)
    db.add_all([shop, other_shop])
    db.flush()

    employee = User(
        username="cashier",
        name="Cashier",
        password_hash=password_hash,
        role=UserRole.EMPLOYEE,
        shop_id=shop.id,
    )
    customer = Customer(shop_id=shop.id, name="Ali Raza", mobile="03001112223", address="House 5")
    phone = InventoryItem(
        shop_id=shop.id,
        brand="Apple",
        model="iPhone 13",
        storage="128GB",
        ram="4GB",
        color="Blue",
        quantity=10,
        buying_price=Decimal("70.00"),
        selling_price=Decimal("100.00"),
        low_stock_threshold=5,
    )
    last_unit = InventoryItem(
        shop_id=shop.id,
        brand="Samsung",
        model="Galaxy S21",
        storage="256GB",
        ram="8GB",
        quantity=1,
        buying_price=Decimal("30.00"),
        selling_price=Decimal("50.00"),
        low_stock_threshold=2,
    )
    cable = InventoryItem(
        shop_id=shop.id,
        name="USB-C Cable",
        sku="CBL-USBC",
        quantity=40,
        buying_price=Decimal("2.25"),
        selling_price=Decimal("5.50"),
        low_stock_threshold=5,
    )
    db.add_all([employee, customer, phone, last_unit, cable])
    db.commit()
    return ShopFixture(
        owner_id=owner.id,
        employee_id=employee.id,
        shop_id=shop.id,
        other_shop_id=other_shop.id,
        customer_id=customer.id,
        phone_id=phone.id,
        last_unit_id=last_unit.id,
        cable_id=cable.id,
    )


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'service.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded(db) -> ShopFixture:
    return seed_shop(db)


@pytest.fixture
def app_settings(tmp_path):
    return replace(
        settings,
        database_url=f"sqlite:///{tmp_path / 'api.db'}",
        auto_create_schema=True,
        bootstrap_admin_username=ADMIN_USERNAME,
        bootstrap_admin_password=ADMIN_PASSWORD,
    )


@pytest.fixture
def client(app_settings):
    with TestClient(create_app(app_settings)) as test_client:
        yield test_client


@pytest.fixture
def api_db(client):
    session = client.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def shop_env(api_db) -> ShopFixture:
    env = seed_shop(api_db, password_hash=hash_password(OWNER_PASSWORD))
    employee = api_db.get(User, env.employee_id)
    employee.password_hash = hash_password(EMPLOYEE_PASSWORD)
    api_db.commit()
    return env


def auth_headers(client: TestClient, username: str, password: str) -> dict[str, str]:
    response = client.post("/auth/token", data={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    return auth_headers(client, ADMIN_USERNAME, ADMIN_PASSWORD)


@pytest.fixture
def owner_headers(client, shop_env):
    return auth_headers(client, "owner", OWNER_PASSWORD)


@pytest.fixture
def employee_headers(client, shop_env):
    return auth_headers(client, "cashier", EMPLOYEE_PASSWORD)
