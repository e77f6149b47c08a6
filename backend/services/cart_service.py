# backend/services/cart_service.py
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from config import Settings, settings as default_settings
from models.cart import Cart
from repositories import cart_store as store
from services.errors import InvalidQuantity, ItemNotFound, OutOfStock, ProductNotFound
from utils.identity import CartIdentity

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass(frozen=True)
class CartLine:
    id: int
    product_id: int
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    shipping_cost: Decimal
    grand_total: Decimal


@dataclass(frozen=True)
class CartView:
    identity: CartIdentity
    totals: Totals
    lines: List[CartLine] = field(default_factory=list)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)


@dataclass(frozen=True)
class StockIssue:
    item_id: int
    product_id: int
    requested: int
    available: int


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT)


def _check_quantity(quantity, allow_zero: bool):
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantity(quantity)
    if quantity < 0 or (quantity == 0 and not allow_zero):
        raise InvalidQuantity(quantity)


class CartService:
    """Validates cart mutations and keeps the cart invariants.

    Every call takes the cart identity explicitly; nothing is read from
    request or global state. Stock and price come from the oracles, lines
    and their price snapshots from the cart store.
    """

    def __init__(self, db: Session, stock_oracle, price_oracle, settings: Optional[Settings] = None):
        self.db = db
        self.stock = stock_oracle
        self.prices = price_oracle
        self.settings = settings or default_settings

    # --- pricing -----------------------------------------------------------

    def compute_totals(self, lines: List[CartLine]) -> Totals:
        subtotal = sum((line.line_total for line in lines), Decimal("0"))
        subtotal = subtotal.quantize(CENT)
        if not lines or subtotal > _money(self.settings.FREE_SHIPPING_THRESHOLD):
            shipping = Decimal("0.00")
        else:
            shipping = _money(self.settings.SHIPPING_FLAT_FEE)
        return Totals(subtotal=subtotal, shipping_cost=shipping, grand_total=subtotal + shipping)

    def _view(self, identity: CartIdentity, cart: Optional[Cart]) -> CartView:
        lines = []
        if cart is not None:
            lines = [
                CartLine(id=it.id, product_id=it.product_id, quantity=it.quantity, unit_price=_money(it.unit_price))
                for it in cart.items
            ]
        # Totals are derived on every read, never stored
        return CartView(identity=identity, lines=lines, totals=self.compute_totals(lines))

    # --- reads -------------------------------------------------------------

    def get_cart(self, identity: CartIdentity) -> CartView:
        with store.transaction(self.db):
            cart = store.get(self.db, identity)
            view = self._view(identity, cart)
        return view

    def item_count(self, identity: CartIdentity) -> int:
        return self.get_cart(identity).item_count

    def stock_issues(self, identity: CartIdentity) -> List[StockIssue]:
        """Lines that can no longer be fulfilled from current stock."""
        issues = []
        with store.transaction(self.db):
            cart = store.get(self.db, identity)
            for it in (cart.items if cart else []):
                try:
                    available = self.stock.available(it.product_id)
                except ProductNotFound:
                    available = 0
                if it.quantity > available:
                    issues.append(StockIssue(
                        item_id=it.id, product_id=it.product_id,
                        requested=it.quantity, available=available,
                    ))
        return issues

    # --- mutations ---------------------------------------------------------

    def add_to_cart(self, identity: CartIdentity, product_id: int, quantity: int) -> CartView:
        _check_quantity(quantity, allow_zero=False)

        with store.transaction(self.db):
            cart = store.get(self.db, identity, lock=True)
            line = store.find_line(cart, product_id)
            existing = line.quantity if line else 0

            # Both lookups must succeed before anything is written
            available = self.stock.available(product_id)
            unit_price = self.prices.unit_price(product_id)

            new_quantity = existing + quantity
            if new_quantity > available:
                raise OutOfStock(product_id, requested=new_quantity, available=available)

            cart = store.upsert_item(self.db, identity, product_id, new_quantity, unit_price)
            view = self._view(identity, cart)

        logger.info("Cart %s: product %s quantity %s -> %s", identity, product_id, existing, new_quantity)
        return view

    def update_quantity(self, identity: CartIdentity, item_id: int, quantity: int) -> CartView:
        _check_quantity(quantity, allow_zero=True)

        with store.transaction(self.db):
            cart = store.get(self.db, identity, lock=True)
            item = store.find_item(cart, item_id)
            if item is None:
                raise ItemNotFound(item_id)

            if quantity == 0:
                cart = store.remove_item(self.db, identity, item_id)
            else:
                # Stock is checked live, the price snapshot is left untouched
                available = self.stock.available(item.product_id)
                if quantity > available:
                    raise OutOfStock(item.product_id, requested=quantity, available=available)
                cart = store.set_quantity(self.db, identity, item_id, quantity)
            view = self._view(identity, cart)

        logger.info("Cart %s: item %s set to quantity %s", identity, item_id, quantity)
        return view

    def remove_item(self, identity: CartIdentity, item_id: int) -> CartView:
        with store.transaction(self.db):
            cart = store.remove_item(self.db, identity, item_id)
            view = self._view(identity, cart)
        return view

    def clear(self, identity: CartIdentity) -> None:
        with store.transaction(self.db):
            store.clear(self.db, identity)
        logger.info("Cart %s cleared", identity)

    def merge_session_cart(self, user_id: int, session_id: str) -> CartView:
        """Fold an anonymous session cart into the user's cart after login.

        Quantities of the same product are summed and then capped at current
        stock; products without stock are dropped. A line the user already
        had keeps its price snapshot, a moved line keeps the session's one.
        The session cart is deleted. All of it happens in one transaction.
        """
        user = CartIdentity(user_id=user_id)
        session = CartIdentity(session_id=session_id)

        with store.transaction(self.db):
            session_cart = store.get(self.db, session, lock=True)
            user_cart = store.get(self.db, user, lock=True)

            if session_cart is None:
                return self._view(user, user_cart)

            moved, dropped = 0, 0
            for line in list(session_cart.items):
                try:
                    available = self.stock.available(line.product_id)
                except ProductNotFound:
                    available = 0

                existing = store.find_line(user_cart, line.product_id)
                wanted = line.quantity + (existing.quantity if existing else 0)
                quantity = min(wanted, available)

                if quantity >= 1:
                    price = existing.unit_price if existing else line.unit_price
                    user_cart = store.upsert_item(self.db, user, line.product_id, quantity, price)
                    moved += 1
                else:
                    if existing:
                        user_cart = store.remove_item(self.db, user, existing.id)
                    dropped += 1

            store.delete_cart(self.db, session_cart)
            user_cart = store.get(self.db, user)
            view = self._view(user, user_cart)

        logger.info(
            "Merged session cart %s into user %s (%s lines merged, %s dropped)",
            session_id, user_id, moved, dropped,
        )
        return view
