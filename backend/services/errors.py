# backend/services/errors.py
from fastapi import status


class CartError(Exception):
    """Base class for cart failures that are reported back to the caller."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "cart_error"

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context


class ProductNotFound(CartError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "product_not_found"

    def __init__(self, product_id: int):
        super().__init__("Product not found", product_id=product_id)


class OutOfStock(CartError):
    code = "out_of_stock"

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            "Insufficient stock",
            product_id=product_id,
            requested=requested,
            available=available,
        )


class InvalidQuantity(CartError):
    code = "invalid_quantity"

    def __init__(self, quantity):
        super().__init__("Quantity must be a non-negative integer", quantity=quantity)


class ItemNotFound(CartError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "item_not_found"

    def __init__(self, item_id: int):
        super().__init__("Cart item not found", item_id=item_id)


class StoreUnavailable(CartError):
    """The cart store could not complete the operation; safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "store_unavailable"
    retry_after = 1

    def __init__(self, message: str = "Cart storage is temporarily unavailable"):
        super().__init__(message)
