import logging
from decimal import Decimal

import requests
from sqlalchemy.orm import Session
from database import SessionLocal, init_db
from models.product import Product

logger = logging.getLogger(__name__)

DUMMY_PRODUCTS_URL = "https://dummyjson.com/products"


def _discounted(price: Decimal, percent):
    if not percent:
        return None
    return (price * (Decimal("100") - Decimal(str(percent))) / Decimal("100")).quantize(Decimal("0.01"))


# Seed the local catalog with demo products so the cart has something to hold
def import_dummy_products(db: Session, limit: int = 50) -> int:
    logger.info("Importing products from DummyJSON...")
    res = requests.get(DUMMY_PRODUCTS_URL, params={"limit": limit}, timeout=10)
    res.raise_for_status()
    products = res.json().get("products", [])
    count = 0

    for p in products:
        code = str(p["id"])
        exists = db.query(Product).filter(Product.code == code).first()
        if exists:
            continue
        price = Decimal(str(p["price"])).quantize(Decimal("0.01"))
        db.add(Product(
            name=p["title"],
            code=code,
            description=p.get("description"),
            category=p.get("category"),
            price=price,
            discount_price=_discounted(price, p.get("discountPercentage")),
            stock_quantity=int(p.get("stock", 0)),
            is_active=True,
        ))
        count += 1

    db.commit()
    logger.info("Imported %s new products.", count)
    return count


def main():
    logging.basicConfig(level=logging.INFO)
    init_db()
    db = SessionLocal()
    try:
        import_dummy_products(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
