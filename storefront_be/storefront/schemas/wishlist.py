from pydantic import BaseModel
from typing import List, Optional

from storefront.schemas.product import ProductSnapshot


class WishlistOut(BaseModel):
    id: Optional[int] = None
    userId: Optional[int] = None
    products: List[ProductSnapshot]
