from pydantic import BaseModel, Field, StrictInt
from typing import List

# Request schema for adding an item to the cart
class CartAddItem(BaseModel):
    product_id: int
    quantity: StrictInt = Field(default=1)

# Request schema for updating cart item quantity (0 removes the line)
class CartUpdateItem(BaseModel):
    quantity: StrictInt

# Response schema for a single cart line item
class CartItemOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price: float
    line_total: float

    class Config:
        from_attributes = True

# Response schema for the entire cart with derived totals
class CartOut(BaseModel):
    items: List[CartItemOut]
    subtotal: float
    shipping_cost: float
    total: float
    item_count: int

class CartCountOut(BaseModel):
    count: int

# A cart line whose quantity exceeds current availability
class StockIssueOut(BaseModel):
    item_id: int
    product_id: int
    requested: int
    available: int

    class Config:
        from_attributes = True
