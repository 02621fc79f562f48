from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Upper bound of the INTEGER columns holding stock and quantities
MAX_INT = 2_147_483_647


class ProductIn(BaseModel):
    """Body for create and update. Numeric strings are coerced, strings trimmed."""

    name: str
    description: Optional[str] = None
    price: float = Field(ge=0)
    stock: int = Field(ge=0, le=MAX_INT)
    imageUrl: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("description", "imageUrl")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ProductOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    stock: int
    imageUrl: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProductSnapshot(BaseModel):
    """Product fields embedded in cart lines, order items and wishlists."""

    id: int
    name: str
    price: float
    stock: int
    imageUrl: Optional[str] = None
    description: Optional[str] = None
