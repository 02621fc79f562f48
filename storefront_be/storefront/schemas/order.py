from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel

from storefront.schemas.product import ProductSnapshot


OrderStatus = Literal["PENDING", "CONFIRMED", "SHIPPED", "DELIVERED", "CANCELLED"]


class OrderItemOut(BaseModel):
    id: int
    productId: int
    quantity: int
    price: float
    product: Optional[ProductSnapshot] = None


class OrderOut(BaseModel):
    id: int
    userId: int
    total: float
    status: OrderStatus
    createdAt: datetime
    items: List[OrderItemOut]
