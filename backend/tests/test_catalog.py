from decimal import Decimal

import pytest

from models.product import Product
from services.catalog import CatalogPriceOracle, CatalogStockOracle
from services.errors import ProductNotFound
from utils import import_dummy_data


def test_stock_oracle_reads_catalog(db, make_product):
    product = make_product(stock=7)
    assert CatalogStockOracle(db).available(product.id) == 7


def test_price_oracle_prefers_discount(db, make_product):
    regular = make_product(price="30.00")
    promo = make_product(price="30.00", discount_price="24.50")

    oracle = CatalogPriceOracle(db)

    assert oracle.unit_price(regular.id) == Decimal("30.00")
    assert oracle.unit_price(promo.id) == Decimal("24.50")


def test_inactive_products_are_not_found(db, make_product):
    product = make_product(is_active=False)

    with pytest.raises(ProductNotFound):
        CatalogStockOracle(db).available(product.id)
    with pytest.raises(ProductNotFound):
        CatalogPriceOracle(db).unit_price(product.id)


class FakeResponse:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self.payload


def test_import_dummy_products(db, monkeypatch):
    payload = {"products": [
        {"id": 1, "title": "Mascara", "price": 9.99, "discountPercentage": 10, "stock": 5, "category": "beauty"},
        {"id": 2, "title": "Lamp", "price": 40, "stock": 0},
    ]}
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append((url, params))
        return FakeResponse(payload)

    monkeypatch.setattr(import_dummy_data.requests, "get", fake_get)

    assert import_dummy_data.import_dummy_products(db, limit=2) == 2
    # Existing codes are skipped on a second run
    assert import_dummy_data.import_dummy_products(db, limit=2) == 0

    mascara = db.query(Product).filter(Product.code == "1").one()
    lamp = db.query(Product).filter(Product.code == "2").one()
    assert mascara.discount_price == Decimal("8.99")
    assert mascara.stock_quantity == 5
    assert lamp.discount_price is None
    assert calls[0] == (import_dummy_data.DUMMY_PRODUCTS_URL, {"limit": 2})
