import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, selectinload

from storefront.database import get_db
from storefront.models.cart import CartItem
from storefront.models.order import Order, OrderItem
from storefront.models.product import Product
from storefront.routers.products import to_product_snapshot
from storefront.schemas.order import OrderOut, OrderItemOut
from storefront.utils.pagination import page_meta, offset_for
from storefront.utils.responses import envelope
from storefront.utils.security import Principal, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def map_order_to_out(order: Order) -> OrderOut:
    items = [
        OrderItemOut(
            id=i.id,
            productId=i.product_id,
            quantity=i.quantity,
            price=float(i.price),
            product=to_product_snapshot(i.product) if i.product else None,
        )
        for i in order.items
    ]
    return OrderOut(
        id=order.id,
        userId=order.user_id,
        total=float(order.total),
        status=order.status,
        createdAt=order.created_at,
        items=items,
    )


def _orders_query(db: Session, user_id: int):
    return (
        db.query(Order)
        .options(selectinload(Order.items).joinedload(OrderItem.product))
        .filter(Order.user_id == user_id)
    )


def _locked_cart_lines(db: Session, user_id: int):
    # Row locks keep a concurrent checkout from reading the same lines (no-op on SQLite)
    return (
        db.query(CartItem)
        .filter(CartItem.user_id == user_id)
        .order_by(CartItem.id.asc())
        .with_for_update()
        .all()
    )


# Place Order
@router.post("", status_code=status.HTTP_201_CREATED)
def place_order(db: Session = Depends(get_db), principal: Principal = Depends(get_current_user)):
    """Turn the caller's cart into an order.

    Stock check, order and item creation, stock decrement and cart clearing
    share one transaction: either all of it commits or none of it does.
    """
    try:
        lines = _locked_cart_lines(db, principal.id)
        if not lines:
            raise HTTPException(status_code=400, detail="Cart is empty")

        # Lock the products for the rest of the transaction (no-op on SQLite)
        product_ids = sorted({line.product_id for line in lines})
        products = {
            p.id: p
            for p in db.query(Product).filter(Product.id.in_(product_ids)).with_for_update().all()
        }

        total = Decimal("0")
        for line in lines:
            product = products[line.product_id]
            if line.quantity > product.stock:
                raise HTTPException(
                    status_code=409,
                    detail=f"Insufficient stock for product {product.id}. Available: {product.stock}",
                )
            total += Decimal(product.price) * line.quantity

        order = Order(user_id=principal.id, total=total, status="PENDING")
        for line in lines:
            product = products[line.product_id]
            order.items.append(
                OrderItem(product_id=product.id, quantity=line.quantity, price=product.price)
            )
            product.stock = product.stock - line.quantity
        db.add(order)
        db.flush()

        cleared = db.query(CartItem).filter(
            CartItem.id.in_([line.id for line in lines])
        ).delete(synchronize_session=False)
        if cleared != len(lines):
            # Another checkout consumed these lines first
            raise HTTPException(status_code=409, detail="Cart changed while placing the order")
        db.commit()
    except Exception:
        db.rollback()
        raise

    order = _orders_query(db, principal.id).filter(Order.id == order.id).one()
    logger.info("Order %s placed by user %s: %s items, total %s", order.id, principal.id, len(order.items), order.total)
    return envelope("Order placed", map_order_to_out(order), orderId=order.id)


# View Orders
@router.get("")
def view_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_user),
):
    total_orders = db.query(Order).filter(Order.user_id == principal.id).count()
    orders = (
        _orders_query(db, principal.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .offset(offset_for(page, limit))
        .limit(limit)
        .all()
    )
    data = {
        "orders": [map_order_to_out(o) for o in orders],
        "meta": {"pagination": page_meta(total_orders, page, limit, len(orders))},
    }
    return envelope("Orders retrieved successfully", data)


# Get Order by ID
@router.get("/{id}")
def get_order(id: int, db: Session = Depends(get_db), principal: Principal = Depends(get_current_user)):
    order = _orders_query(db, principal.id).filter(Order.id == id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return envelope("Order retrieved successfully", map_order_to_out(order))
