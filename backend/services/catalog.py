# backend/services/catalog.py
from decimal import Decimal

from sqlalchemy.orm import Session

from models.product import Product
from services.errors import ProductNotFound


def _active_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id, Product.is_active.is_(True)).first()
    if not product:
        raise ProductNotFound(product_id)
    return product


class CatalogStockOracle:
    """Current availability straight from the catalog table."""

    def __init__(self, db: Session):
        self.db = db

    def available(self, product_id: int) -> int:
        product = _active_product(self.db, product_id)
        return int(product.stock_quantity or 0)


class CatalogPriceOracle:
    """Current unit price; a promotional price wins over the list price."""

    def __init__(self, db: Session):
        self.db = db

    def unit_price(self, product_id: int) -> Decimal:
        product = _active_product(self.db, product_id)
        price = product.discount_price if product.discount_price is not None else product.price
        return Decimal(price)
