from pydantic import BaseModel, Field
from typing import List

from storefront.schemas.product import MAX_INT, ProductSnapshot


class CartItemIn(BaseModel):
    productId: int = Field(ge=1, le=MAX_INT)
    quantity: int = Field(default=1, ge=1, le=MAX_INT)


class CartQuantityIn(BaseModel):
    quantity: int = Field(ge=1, le=MAX_INT)


class CartItemOut(BaseModel):
    id: int
    userId: int
    productId: int
    quantity: int
    product: ProductSnapshot


class CartRemovalOut(BaseModel):
    removedCartItemId: int
    remainingItems: int
    cartItems: List[CartItemOut]
