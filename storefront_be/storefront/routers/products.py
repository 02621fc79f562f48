import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.models.cart import CartItem
from storefront.models.order import OrderItem
from storefront.models.product import Product
from storefront.models.wishlist import WishlistItem
from storefront.schemas.product import ProductIn, ProductOut, ProductSnapshot
from storefront.utils.pagination import page_meta, offset_for
from storefront.utils.responses import envelope
from storefront.utils.security import Permission, require_permission

logger = logging.getLogger(__name__)

router = APIRouter()

admin_only = require_permission(Permission.WRITE_ADMIN)

# Public sort keys -> columns
SORTABLE_FIELDS = {
    "name": Product.name,
    "price": Product.price,
    "stock": Product.stock,
    "createdAt": Product.created_at,
    "updatedAt": Product.updated_at,
}


# Helpers

def to_product_out(p: Product) -> ProductOut:
    return ProductOut(
        id=p.id,
        name=p.name,
        description=p.description,
        price=float(p.price),
        stock=p.stock,
        imageUrl=p.image_url,
        createdAt=p.created_at,
        updatedAt=p.updated_at,
    )


def to_product_snapshot(p: Product) -> ProductSnapshot:
    return ProductSnapshot(
        id=p.id,
        name=p.name,
        price=float(p.price),
        stock=p.stock,
        imageUrl=p.image_url,
        description=p.description,
    )


def _get_product_or_404(db: Session, id: int) -> Product:
    product = db.query(Product).filter(Product.id == id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def _apply_payload(product: Product, payload: ProductIn) -> None:
    product.name = payload.name
    product.description = payload.description
    product.price = payload.price
    product.stock = payload.stock
    product.image_url = payload.imageUrl


# Create Product (Admin)
@router.post("", status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductIn, db: Session = Depends(get_db), principal=Depends(admin_only)):
    product = Product()
    _apply_payload(product, payload)
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info("Product %s created by user %s", product.id, principal.id)
    return envelope("Product created successfully", to_product_out(product))


# Get All Products (paginated, filtered, sorted)
@router.get("")
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    minPrice: Optional[float] = Query(None, ge=0),
    maxPrice: Optional[float] = Query(None, ge=0),
    sortBy: Optional[str] = None,
    sortOrder: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
):
    query = db.query(Product)
    if minPrice is not None:
        query = query.filter(Product.price >= minPrice)
    if maxPrice is not None:
        query = query.filter(Product.price <= maxPrice)

    total = query.count()

    if sortBy:
        column = SORTABLE_FIELDS.get(sortBy)
        if column is None:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid sortBy '{sortBy}'. Allowed: {', '.join(SORTABLE_FIELDS)}",
            )
        query = query.order_by(column.desc() if sortOrder == "desc" else column.asc(), Product.id.asc())
    else:
        query = query.order_by(Product.id.asc())

    products = query.offset(offset_for(page, limit)).limit(limit).all()
    pagination = page_meta(total, page, limit, len(products))
    data = {
        "items": [to_product_out(p) for p in products],
        "totalCount": total,
        "totalPages": pagination["totalPages"],
        "currentPage": page,
        "hasNextPage": pagination["hasNextPage"],
        "hasPreviousPage": pagination["hasPreviousPage"],
    }
    meta = {
        "pagination": pagination,
        "filters": {"minPrice": minPrice, "maxPrice": maxPrice, "sortBy": sortBy, "sortOrder": sortOrder},
    }
    return envelope("Products retrieved successfully", data, meta=meta)


# Get Product by ID
@router.get("/{id}")
def get_product(id: int, db: Session = Depends(get_db)):
    product = _get_product_or_404(db, id)
    return envelope("Product retrieved successfully", to_product_out(product))


# Update Product (Admin)
@router.put("/{id}")
def update_product(id: int, payload: ProductIn, db: Session = Depends(get_db), principal=Depends(admin_only)):
    product = _get_product_or_404(db, id)
    _apply_payload(product, payload)
    db.commit()
    db.refresh(product)
    logger.info("Product %s updated by user %s", product.id, principal.id)
    return envelope("Product updated successfully", to_product_out(product))


# Delete Product (Admin)
@router.delete("/{id}")
def delete_product(id: int, db: Session = Depends(get_db), principal=Depends(admin_only)):
    product = _get_product_or_404(db, id)

    # Orders keep a reference to the product; refuse rather than break history
    ordered = db.query(OrderItem.id).filter(OrderItem.product_id == product.id).first()
    if ordered:
        raise HTTPException(status_code=409, detail="Product is referenced by existing orders")

    db.query(CartItem).filter(CartItem.product_id == product.id).delete(synchronize_session=False)
    db.query(WishlistItem).filter(WishlistItem.product_id == product.id).delete(synchronize_session=False)
    db.delete(product)
    db.commit()
    logger.info("Product %s deleted by user %s", id, principal.id)
    return envelope("Product deleted successfully")
