from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from storefront.database import get_db
from storefront.models.product import Product
from storefront.models.wishlist import Wishlist, WishlistItem
from storefront.routers.products import to_product_snapshot
from storefront.schemas.wishlist import WishlistOut
from storefront.utils.responses import envelope
from storefront.utils.security import Principal, get_current_user


router = APIRouter()


def _get_wishlist(db: Session, user_id: int):
    return db.query(Wishlist).filter(Wishlist.user_id == user_id).first()


def _get_or_create_wishlist(db: Session, user_id: int) -> Wishlist:
    wl = _get_wishlist(db, user_id)
    if wl:
        return wl
    try:
        wl = Wishlist(user_id=user_id)
        db.add(wl)
        db.flush()
    except IntegrityError:
        # Created by a concurrent first add
        db.rollback()
        wl = _get_wishlist(db, user_id)
        if not wl:
            raise
    return wl


def _find_item(db: Session, wishlist_id: int, product_id: int):
    return (
        db.query(WishlistItem)
        .filter(WishlistItem.wishlist_id == wishlist_id, WishlistItem.product_id == product_id)
        .first()
    )


def _serialize_wishlist(wl: Wishlist) -> WishlistOut:
    return WishlistOut(
        id=wl.id,
        userId=wl.user_id,
        products=[to_product_snapshot(i.product) for i in wl.items],
    )


# Add to Wishlist
@router.post("/{productId}")
def add_to_wishlist(
    productId: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    product = db.query(Product).filter(Product.id == productId).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    wl = _get_or_create_wishlist(db, principal.id)
    if _find_item(db, wl.id, productId):
        raise HTTPException(status_code=409, detail="Product already in wishlist")

    db.add(WishlistItem(wishlist_id=wl.id, product_id=productId))
    try:
        db.commit()
    except IntegrityError:
        # Concurrent add of the same product won the race
        db.rollback()
        raise HTTPException(status_code=409, detail="Product already in wishlist")
    db.refresh(wl)
    return envelope("Product added to wishlist", _serialize_wishlist(wl))


# Get Wishlist
@router.get("")
def get_wishlist(db: Session = Depends(get_db), principal: Principal = Depends(get_current_user)):
    wl = _get_wishlist(db, principal.id)
    if not wl:
        return envelope("Wishlist retrieved successfully", WishlistOut(products=[]))
    return envelope("Wishlist retrieved successfully", _serialize_wishlist(wl))


# Remove from Wishlist
@router.delete("/{productId}")
def remove_from_wishlist(
    productId: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    wl = _get_wishlist(db, principal.id)
    if not wl:
        raise HTTPException(status_code=404, detail="Wishlist not found")
    item = _find_item(db, wl.id, productId)
    if not item:
        raise HTTPException(status_code=404, detail="Product not in wishlist")

    db.delete(item)
    db.commit()
    return envelope("Product removed from wishlist", {"productId": productId})
