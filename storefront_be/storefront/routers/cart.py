import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError

from storefront.database import get_db
from storefront.models.cart import CartItem
from storefront.models.product import Product
from storefront.routers.products import to_product_snapshot
from storefront.schemas.cart import CartItemIn, CartItemOut, CartQuantityIn, CartRemovalOut
from storefront.schemas.product import MAX_INT
from storefront.utils.pagination import page_meta, offset_for
from storefront.utils.responses import envelope
from storefront.utils.security import Principal, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _serialize_line(item: CartItem) -> CartItemOut:
    return CartItemOut(
        id=item.id,
        userId=item.user_id,
        productId=item.product_id,
        quantity=item.quantity,
        product=to_product_snapshot(item.product),
    )


def _user_lines(db: Session, user_id: int):
    return (
        db.query(CartItem)
        .options(joinedload(CartItem.product))
        .filter(CartItem.user_id == user_id)
        .order_by(CartItem.id.asc())
    )


def _find_line(db: Session, user_id: int, product_id: int):
    return (
        db.query(CartItem)
        .filter(CartItem.user_id == user_id, CartItem.product_id == product_id)
        .first()
    )


def _check_merged_quantity(item: CartItem, added: int) -> None:
    if item.quantity + added > MAX_INT:
        raise HTTPException(status_code=400, detail=f"Cart quantity cannot exceed {MAX_INT}")


def _get_owned_line_or_404(db: Session, user_id: int, cart_item_id: int) -> CartItem:
    item = db.query(CartItem).filter(CartItem.id == cart_item_id, CartItem.user_id == user_id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Cart item not found")
    return item


# Add to Cart
@router.post("")
def add_to_cart(
    payload: CartItemIn,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    # Everything below commits or rolls back as one unit
    product = db.query(Product).filter(Product.id == payload.productId).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    existing = _find_line(db, principal.id, payload.productId)
    try:
        if existing:
            _check_merged_quantity(existing, payload.quantity)
            existing.quantity = CartItem.quantity + payload.quantity
            item = existing
        else:
            item = CartItem(user_id=principal.id, product_id=payload.productId, quantity=payload.quantity)
            db.add(item)
        db.commit()
    except IntegrityError:
        # A concurrent request inserted the same line first; merge by incrementing
        db.rollback()
        item = _find_line(db, principal.id, payload.productId)
        if not item:
            raise
        _check_merged_quantity(item, payload.quantity)
        item.quantity = CartItem.quantity + payload.quantity
        db.commit()

    db.refresh(item)
    return envelope("Product added to cart", _serialize_line(item))


# View Cart
@router.get("")
def view_cart(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    total_items = db.query(CartItem).filter(CartItem.user_id == principal.id).count()
    items = _user_lines(db, principal.id).offset(offset_for(page, limit)).limit(limit).all()

    # Summary covers the returned page only
    total_value = sum((Decimal(i.product.price) * i.quantity for i in items), Decimal("0"))

    data = {
        "userId": principal.id,
        "items": [_serialize_line(i) for i in items],
        "meta": {
            "pagination": page_meta(total_items, page, limit, len(items)),
            "summary": {"totalValue": float(total_value)},
        },
    }
    return envelope("Cart retrieved successfully", data)


# Update Cart Quantity
@router.put("/{cartItemId}")
def update_cart_quantity(
    cartItemId: int,
    payload: CartQuantityIn,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    item = _get_owned_line_or_404(db, principal.id, cartItemId)
    item.quantity = payload.quantity
    db.commit()
    db.refresh(item)
    return envelope("Cart quantity updated successfully", _serialize_line(item))


# Remove Cart Item
@router.delete("/{cartItemId}")
def remove_from_cart(
    cartItemId: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    item = _get_owned_line_or_404(db, principal.id, cartItemId)
    db.delete(item)
    db.commit()

    remaining = _user_lines(db, principal.id).all()
    data = CartRemovalOut(
        removedCartItemId=cartItemId,
        remainingItems=len(remaining),
        cartItems=[_serialize_line(i) for i in remaining],
    )
    return envelope("Cart item removed from cart", data)


# Clear Cart
@router.delete("")
def clear_cart(db: Session = Depends(get_db), principal: Principal = Depends(get_current_user)):
    removed = db.query(CartItem).filter(CartItem.user_id == principal.id).delete(synchronize_session=False)
    db.commit()
    logger.info("Cleared %s cart lines for user %s", removed, principal.id)
    return envelope("Cart cleared", {"removedItems": removed, "remainingItems": 0})
