# backend/repositories/cart_store.py
import logging
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from models.cart import Cart, CartItem
from services.errors import CartError, StoreUnavailable
from utils.identity import CartIdentity

logger = logging.getLogger(__name__)


@contextmanager
def transaction(db: Session):
    """One store transaction per cart operation.

    Commits on success. Any failure rolls back so the cart is left exactly as
    it was; storage errors are reported as StoreUnavailable.
    """
    try:
        yield db
        db.commit()
    except CartError:
        db.rollback()
        raise
    except StaleDataError as e:
        db.rollback()
        logger.warning("Concurrent cart modification detected: %s", e)
        raise StoreUnavailable("Cart was modified concurrently, retry the request") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Cart store failure: %s", e)
        raise StoreUnavailable() from e
    except BaseException:
        # Oracle timeouts and other failures must not leave flushed writes or locks behind
        db.rollback()
        raise


def _owner_filter(identity: CartIdentity):
    if identity.user_id is not None:
        return Cart.user_id == identity.user_id
    return Cart.session_id == identity.session_id


def _touch(cart: Cart):
    # Writing the cart row bumps its version, so concurrent writers collide
    cart.updated_at = datetime.utcnow()


def get(db: Session, identity: CartIdentity, lock: bool = False) -> Optional[Cart]:
    # None stands for the empty cart
    query = db.query(Cart).filter(_owner_filter(identity))
    if lock:
        query = query.with_for_update()
    return query.first()


def get_or_create(db: Session, identity: CartIdentity) -> Cart:
    cart = get(db, identity, lock=True)
    if cart is None:
        cart = Cart(user_id=identity.user_id, session_id=identity.session_id)
        db.add(cart)
        db.flush()
        logger.info("New cart %s created for %s", cart.id, identity)
    return cart


def find_item(cart: Optional[Cart], item_id: int) -> Optional[CartItem]:
    if cart is None:
        return None
    return next((it for it in cart.items if it.id == item_id), None)


def find_line(cart: Optional[Cart], product_id: int) -> Optional[CartItem]:
    if cart is None:
        return None
    return next((it for it in cart.items if it.product_id == product_id), None)


def upsert_item(db: Session, identity: CartIdentity, product_id: int, quantity: int, unit_price: Decimal) -> Cart:
    """Set the quantity of the line for product_id, creating it if missing.

    An existing line keeps the unit price it was created with.
    """
    cart = get_or_create(db, identity)
    item = find_line(cart, product_id)
    if item:
        item.quantity = quantity
        item.updated_at = datetime.utcnow()
    else:
        cart.items.append(CartItem(product_id=product_id, quantity=quantity, unit_price=unit_price))
    _touch(cart)
    db.flush()
    return cart


def set_quantity(db: Session, identity: CartIdentity, item_id: int, quantity: int) -> Optional[Cart]:
    cart = get(db, identity, lock=True)
    item = find_item(cart, item_id)
    if item is None:
        return cart
    item.quantity = quantity
    item.updated_at = datetime.utcnow()
    _touch(cart)
    db.flush()
    return cart


def remove_item(db: Session, identity: CartIdentity, item_id: int) -> Optional[Cart]:
    # Idempotent: removing a line that is not there is not an error
    cart = get(db, identity, lock=True)
    item = find_item(cart, item_id)
    if item is None:
        return cart
    cart.items.remove(item)
    _touch(cart)
    db.flush()
    return cart


def clear(db: Session, identity: CartIdentity) -> None:
    cart = get(db, identity, lock=True)
    if cart is not None:
        delete_cart(db, cart)


def delete_cart(db: Session, cart: Cart) -> None:
    db.delete(cart)
    db.flush()
