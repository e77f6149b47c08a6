from sqlalchemy import Boolean, Column, Integer, Numeric, String, CheckConstraint
from database import Base

# Model Product
# Catalog entry read by the cart through the stock and price oracles.
# The cart never writes here; it only references products by id.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    code = Column(String, unique=True, nullable=False, index=True)

    description = Column(String)
    category = Column(String)

    # Regular price and optional promotional price
    price = Column(Numeric(10, 2), CheckConstraint("price >= 0"), nullable=False)
    discount_price = Column(Numeric(10, 2), CheckConstraint("discount_price >= 0"), nullable=True)

    # Stock availability
    stock_quantity = Column(Integer, CheckConstraint("stock_quantity >= 0"), nullable=False, default=0)

    # Inactive products are hidden from the storefront and cannot be added
    is_active = Column(Boolean, nullable=False, default=True)
