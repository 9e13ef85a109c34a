import os

# Settings are read at import time, so the test environment goes first
os.environ["ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_DIR", "logs")

import pytest
from decimal import Decimal
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from main import app
from core.database import Base
from utils.deps import get_db
from utils.hashing import get_password_hash
from services.token_service import TokenService
from models.users import User
from models.restaurants import Restaurant
from models.menu_items import MenuItem

# SYNC SQLite for testing (matches sync service layer)
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False}
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

TEST_PASSWORD = "TestPassword123"


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """
    Creates a fresh, empty database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture
async def client(session: Session):
    """
    Yields an HTTP client that talks to the app through the test database.
    The client is async (for FastAPI), the DB session is sync.
    """
    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


def _make_user(session: Session, email: str, full_name: str, role: str = "customer") -> User:
    user = User(
        email=email,
        full_name=full_name,
        hashed_password=get_password_hash(TEST_PASSWORD),
        phone="+84912345678",
        role=role,
        is_active=True
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    token = TokenService.create_access_token(user.email, user.id, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer(session):
    return _make_user(session, "customer@example.com", "Test Customer")


@pytest.fixture
def other_customer(session):
    return _make_user(session, "other@example.com", "Other Customer")


@pytest.fixture
def admin(session):
    return _make_user(session, "admin@example.com", "Admin User", role="admin")


@pytest.fixture
def customer_headers(customer):
    return auth_headers(customer)


@pytest.fixture
def other_headers(other_customer):
    return auth_headers(other_customer)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def restaurant(session):
    restaurant = Restaurant(
        name="Pho Corner",
        slug="pho-corner",
        description="Noodle soups and rice dishes",
        address="12 Nguyen Hue, District 1",
        phone="+84283822111",
        is_open=True
    )
    session.add(restaurant)
    session.commit()
    session.refresh(restaurant)
    return restaurant


@pytest.fixture
def other_restaurant(session):
    restaurant = Restaurant(
        name="Banh Mi House",
        slug="banh-mi-house",
        address="45 Le Loi, District 1",
        is_open=True
    )
    session.add(restaurant)
    session.commit()
    session.refresh(restaurant)
    return restaurant


@pytest.fixture
def menu_items(session, restaurant):
    """Two dishes priced 12.99 and 9.02."""
    items = [
        MenuItem(
            restaurant_id=restaurant.id,
            name="Beef Pho",
            slug="beef-pho",
            price=Decimal("12.99"),
            category="Noodles",
            is_available=True,
            is_featured=True
        ),
        MenuItem(
            restaurant_id=restaurant.id,
            name="Spring Rolls",
            slug="spring-rolls",
            price=Decimal("9.02"),
            category="Starters",
            is_available=True,
            is_featured=False
        ),
    ]
    session.add_all(items)
    session.commit()
    for item in items:
        session.refresh(item)
    return items


@pytest.fixture
def foreign_menu_item(session, other_restaurant):
    item = MenuItem(
        restaurant_id=other_restaurant.id,
        name="Banh Mi",
        slug="banh-mi",
        price=Decimal("4.50"),
        is_available=True
    )
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


@pytest.fixture
def order_payload(restaurant, menu_items):
    """Factory for a checkout body: 2 x 12.99 + 1 x 9.02 with 7% tax."""
    def build(**overrides) -> dict:
        payload = {
            "restaurantId": restaurant.id,
            "deliveryAddress": "221 Pasteur Street, District 3",
            "deliveryPhone": "+84912345678",
            "notes": "Ring the bell",
            "paymentMethod": "cash",
            "subtotalAmount": 35.00,
            "taxAmount": 2.45,
            "deliveryFee": 0.00,
            "totalAmount": 37.45,
            "items": [
                {"menuItemId": menu_items[0].id, "quantity": 2, "price": 12.99},
                {"menuItemId": menu_items[1].id, "quantity": 1, "price": 9.02},
            ],
        }
        payload.update(overrides)
        return payload

    return build
