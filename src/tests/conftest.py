import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import sessionmaker
from src.core.database import create_db_engine, get_db
from src.models.database import Base, InventoryItem
from src.models.schemas import OrderCreate, OrderItemCreate
from src.services.order_service import OrderService
from main import app

@pytest.fixture
def test_engine(tmp_path):
    # File-backed SQLite so concurrent requests use separate connections
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test_rental.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

@pytest.fixture
def test_db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    del app.dependency_overrides[get_db]

@pytest_asyncio.fixture
async def async_client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    del app.dependency_overrides[get_db]

@pytest.fixture
def make_item(test_db):
    """Create an inventory item and return it"""
    def _make_item(name="Folding Chair", total_quantity=10, price_per_item=5.0, price_paid=20.0):
        item = InventoryItem(
            name=name,
            total_quantity=total_quantity,
            price_per_item=price_per_item,
            price_paid=price_paid,
        )
        test_db.add(item)
        test_db.commit()
        test_db.refresh(item)
        return item
    return _make_item

@pytest.fixture
def place_order(test_db):
    """Create an order through the service with one line per (item, quantity) pair"""
    def _place_order(customer_name, pick_up_date, delivery_date, lines, **extra):
        order_data = OrderCreate(
            customer_name=customer_name,
            pick_up_date=pick_up_date,
            delivery_date=delivery_date,
            items=[
                OrderItemCreate(
                    inventory_item_id=item.id,
                    quantity=quantity,
                    unit_price=item.price_per_item,
                    total=item.price_per_item * quantity,
                )
                for item, quantity in lines
            ],
            **extra,
        )
        return OrderService(test_db).create_order(order_data)
    return _place_order
