# backend/routes/cart.py
import logging
from typing import List, Tuple

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from utils.audit import write_log
from utils.identity import CartIdentity, get_cart_identity, get_merge_identities
from services.catalog import CatalogPriceOracle, CatalogStockOracle
from services.cart_service import CartService, CartView
from schemas.cart import CartAddItem, CartUpdateItem, CartOut, CartItemOut, CartCountOut, StockIssueOut

router = APIRouter(prefix="/cart", tags=["Cart"])

logger = logging.getLogger(__name__)

def get_cart_service(db: Session = Depends(get_db)) -> CartService:
    return CartService(db, CatalogStockOracle(db), CatalogPriceOracle(db))

def _cart_to_out(view: CartView) -> CartOut:
    items_out = [
        CartItemOut(
            id=line.id,
            product_id=line.product_id,
            quantity=line.quantity,
            unit_price=float(line.unit_price),
            line_total=float(line.line_total),
        )
        for line in view.lines
    ]
    return CartOut(
        items=items_out,
        subtotal=float(view.totals.subtotal),
        shipping_cost=float(view.totals.shipping_cost),
        total=float(view.totals.grand_total),
        item_count=view.item_count,
    )

# The cart change is already committed here, a failed audit write must not fail the request
def _log(db: Session, request: Request, identity: CartIdentity, action: str, meta: dict):
    try:
        write_log(
            db,
            user_id=identity.user_id,
            session_id=identity.session_id,
            action=action,
            resource="cart",
            status="SUCCESS",
            ip=request.client.host if request.client else None,
            meta=meta,
        )
    except Exception as log_e:
        db.rollback()
        logger.exception("Failed to write audit log %s for cart %s: %s", action, identity, log_e)

@router.get("", response_model=CartOut)
def get_cart(
    identity: CartIdentity = Depends(get_cart_identity),
    service: CartService = Depends(get_cart_service),
):
    return _cart_to_out(service.get_cart(identity))

@router.get("/count", response_model=CartCountOut)
def get_cart_count(
    identity: CartIdentity = Depends(get_cart_identity),
    service: CartService = Depends(get_cart_service),
):
    return CartCountOut(count=service.item_count(identity))

@router.get("/stock-issues", response_model=List[StockIssueOut])
def get_stock_issues(
    identity: CartIdentity = Depends(get_cart_identity),
    service: CartService = Depends(get_cart_service),
):
    return service.stock_issues(identity)

@router.post("/items", response_model=CartOut, status_code=status.HTTP_200_OK)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    identity: CartIdentity = Depends(get_cart_identity),
    service: CartService = Depends(get_cart_service),
):
    out = _cart_to_out(service.add_to_cart(identity, payload.product_id, payload.quantity))
    _log(service.db, request, identity, "CART_ADD",
         {"product_id": payload.product_id, "quantity": payload.quantity, "cart_items": len(out.items), "total": out.total})
    return out

@router.put("/items/{item_id}", response_model=CartOut)
def update_cart_item(
    item_id: int,
    payload: CartUpdateItem,
    request: Request,
    identity: CartIdentity = Depends(get_cart_identity),
    service: CartService = Depends(get_cart_service),
):
    out = _cart_to_out(service.update_quantity(identity, item_id, payload.quantity))
    _log(service.db, request, identity, "CART_UPDATE",
         {"item_id": item_id, "quantity": payload.quantity, "total": out.total})
    return out

@router.delete("/items/{item_id}", response_model=CartOut)
def delete_cart_item(
    item_id: int,
    request: Request,
    identity: CartIdentity = Depends(get_cart_identity),
    service: CartService = Depends(get_cart_service),
):
    out = _cart_to_out(service.remove_item(identity, item_id))
    _log(service.db, request, identity, "CART_DELETE",
         {"item_id": item_id, "cart_items": len(out.items), "total": out.total})
    return out

@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear_cart(
    request: Request,
    identity: CartIdentity = Depends(get_cart_identity),
    service: CartService = Depends(get_cart_service),
):
    service.clear(identity)
    _log(service.db, request, identity, "CART_CLEAR", {})

# Absorb the anonymous session cart into the user's cart after login
@router.post("/merge", response_model=CartOut)
def merge_cart(
    request: Request,
    identities: Tuple[int, str] = Depends(get_merge_identities),
    service: CartService = Depends(get_cart_service),
):
    user_id, session_id = identities
    out = _cart_to_out(service.merge_session_cart(user_id, session_id))
    _log(service.db, request, CartIdentity(user_id=user_id), "CART_MERGE",
         {"session_id": session_id, "cart_items": len(out.items), "total": out.total})
    return out
