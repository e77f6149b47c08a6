# backend/models/cart.py
from sqlalchemy import (
    Column, Integer, ForeignKey, String, DateTime, Numeric, CheckConstraint, UniqueConstraint, func,
)
from sqlalchemy.orm import relationship
from database import Base

SESSION_ID_MAX_LENGTH = 128

# A shopping cart owned either by a user or by an anonymous session
class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, index=True, nullable=True)
    session_id = Column(String(SESSION_ID_MAX_LENGTH), unique=True, index=True, nullable=True)

    # Incremented on every write to the cart row (optimistic locking)
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now())

    items = relationship(
        "CartItem",
        cascade="all, delete-orphan",
        order_by="CartItem.id",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint(
            "(user_id IS NULL) <> (session_id IS NULL)",
            name="ck_cart_single_owner",
        ),
    )


# A single product line inside a cart
class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), index=True, nullable=False)
    # Plain id reference, products are looked up through the catalog oracles
    product_id = Column(Integer, index=True, nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity >= 1"), nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False) # Unit price at the moment of addition

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        # One line per product in a cart
        UniqueConstraint("cart_id", "product_id", name="uq_cartitem_cart_product"),
    )
