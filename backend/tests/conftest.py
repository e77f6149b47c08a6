import os

# Throwaway database for the application engine created at import time
os.environ["DATABASE_URL"] = "sqlite://"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models.product import Product
from models.users import User
from services.cart_service import CartService
from services.errors import ProductNotFound
from utils.identity import CartIdentity
from utils.tokenJWT import create_access_token


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_product(db):
    counter = {"n": 0}

    def _make(price="100.00", stock=10, discount_price=None, is_active=True, **extra):
        counter["n"] += 1
        product = Product(
            name=extra.pop("name", f"Product {counter['n']}"),
            code=extra.pop("code", f"P-{counter['n']:04d}"),
            price=Decimal(price),
            discount_price=Decimal(discount_price) if discount_price is not None else None,
            stock_quantity=stock,
            is_active=is_active,
            **extra,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def user(db):
    user = User(email="jan@example.com", password_hash="x", role="customer", first_name="Jan", last_name="Nowak")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def auth_headers(user):
    token = create_access_token({"sub": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


class FakeStockOracle:
    def __init__(self, stock=None):
        self.stock = dict(stock or {})

    def available(self, product_id):
        if product_id not in self.stock:
            raise ProductNotFound(product_id)
        return self.stock[product_id]


class FakePriceOracle:
    def __init__(self, prices=None):
        self.prices = {k: Decimal(str(v)) for k, v in (prices or {}).items()}

    def unit_price(self, product_id):
        if product_id not in self.prices:
            raise ProductNotFound(product_id)
        return self.prices[product_id]


@pytest.fixture
def stock_oracle():
    return FakeStockOracle({5: 10, 7: 3, 9: 100})


@pytest.fixture
def price_oracle():
    return FakePriceOracle({5: "100.00", 7: "20.00", 9: "9.99"})


@pytest.fixture
def service(db, stock_oracle, price_oracle):
    return CartService(db, stock_oracle, price_oracle)


@pytest.fixture
def anon():
    return CartIdentity(session_id="session_test")
