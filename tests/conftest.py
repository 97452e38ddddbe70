"""Pytest fixtures for storefront tests."""

import os

# Settings are cached on first import; configure before importing the app.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-user-secret"
os.environ["ADMIN_JWT_SECRET"] = "test-admin-secret"
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["ADDRESS_API_RETRY_DELAY"] = "0"

from dataclasses import dataclass, field

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from storefront.core.auth import create_access_token
from storefront.core.stripe_client import GatewayIntent
from storefront.database import engine
from storefront.main import app
from storefront.models.product import Category, Product
from storefront.models.user import User
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.repositories.setting_repo import SettingRepository
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.user import UserCreateData
from storefront.services.order_lifecycle import OrderLocks
from storefront.services.order_service import OrderService
from storefront.services.user_service import UserService

PASSWORD = "secret123"


@dataclass
class FakeGateway:
    """Stands in for Stripe; intents are kept in memory."""

    status: str = "succeeded"
    intents: dict = field(default_factory=dict)
    retrieved: list = field(default_factory=list)

    def create_intent(self, order_id, user_id, amount):
        intent = GatewayIntent(
            id=f"pi_test_{order_id}",
            client_secret=f"pi_test_{order_id}_secret",
            status="requires_payment_method",
            amount=round(amount),
        )
        self.intents[intent.id] = intent
        return intent

    def retrieve_intent(self, intent_id):
        self.retrieved.append(intent_id)
        intent = self.intents[intent_id]
        return GatewayIntent(
            id=intent.id,
            client_secret=intent.client_secret,
            status=self.status,
            amount=intent.amount,
        )


@pytest.fixture(autouse=True)
def reset_db():
    """Fresh schema for every test."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def session():
    with Session(engine) as session:
        yield session


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def user_service():
    return UserService(UserRepository())


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def order_service(gateway):
    return OrderService(
        OrderRepository(),
        CartRepository(),
        ProductRepository(),
        SettingRepository(),
        gateway=gateway,
        locks=OrderLocks(),
    )


@pytest.fixture
def make_user(session, user_service):
    def _make(email="buyer@gmail.com", roles="User", password=PASSWORD, name=None) -> User:
        return user_service.create(
            session,
            UserCreateData(email=email, password=password, name=name, roles=roles),
        )

    return _make


@pytest.fixture
def make_product(session):
    def _make(name="Phone", price=100.0, quantity=10, category_id=None, **extra) -> Product:
        product = Product(
            name=name,
            price=price,
            quantity=quantity,
            category_id=category_id,
            **extra,
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


@pytest.fixture
def make_category(session):
    def _make(name="Phones") -> Category:
        category = Category(name=name)
        session.add(category)
        session.commit()
        session.refresh(category)
        return category

    return _make


@pytest.fixture
def customer(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@shop.vn", roles="Admin", name="Admin User")


@pytest.fixture
def user_headers(customer):
    return {"Authorization": f"Bearer {create_access_token(customer.id, 'user')}"}


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {create_access_token(admin.id, 'admin')}"}
