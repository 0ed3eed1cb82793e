"""Store: products and orders. Payment capture happens outside this API."""

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Order, OrderItem, Product, User
from ..schemas import (
    ORDER_TRANSITIONS,
    OrderCreate,
    OrderRead,
    OrderStatus,
    OrderStatusUpdate,
    ProductCategory,
    ProductCreate,
    ProductRead,
    ProductStatus,
    ProductUpdate,
)
from ..security import get_current_user, is_admin, require_admin, require_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["store"])


# =============================================================================
# PRODUCTS
# =============================================================================


def _visible_products(db: Session, user: User | None):
    query = db.query(Product)
    if not is_admin(user):
        query = query.filter(Product.status == ProductStatus.ACTIVE.value)
    return query


def _get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/products", response_model=list[ProductRead])
def list_products(
    category: ProductCategory | None = None,
    user: User | None = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """All products for admins, active products for everyone else."""
    query = _visible_products(db, user)
    if category:
        query = query.filter(Product.category == category.value)
    return query.order_by(Product.created_at.desc(), Product.id.desc()).all()


@router.get("/products/featured", response_model=list[ProductRead])
def featured_products(db: Session = Depends(get_db)):
    return (
        db.query(Product)
        .filter(Product.featured == True, Product.status == ProductStatus.ACTIVE.value)
        .order_by(Product.created_at.desc(), Product.id.desc())
        .all()
    )


@router.get("/products/category/{category}", response_model=list[ProductRead])
def products_in_category(
    category: ProductCategory,
    user: User | None = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return (
        _visible_products(db, user)
        .filter(Product.category == category.value)
        .order_by(Product.name)
        .all()
    )


@router.get("/products/{product_id}", response_model=ProductRead)
def get_product(
    product_id: int,
    user: User | None = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    product = _get_product(db, product_id)
    if product.status != ProductStatus.ACTIVE.value and not is_admin(user):
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post("/products", response_model=ProductRead, status_code=201)
def create_product(
    body: ProductCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    product = Product(**body.model_dump(mode="json", exclude={"price"}), price=body.price, created_by=admin.id)
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info("Admin %s created product %s (%s)", admin.id, product.id, product.name)
    return product


@router.patch("/products/{product_id}", response_model=ProductRead)
def update_product(
    product_id: int,
    body: ProductUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    product = _get_product(db, product_id)
    changes = body.model_dump(mode="json", exclude_unset=True)
    if "price" in changes:
        changes["price"] = body.price
    for field, value in changes.items():
        setattr(product, field, value)
    db.commit()
    db.refresh(product)
    return product


@router.delete("/products/{product_id}", status_code=204)
def delete_product(
    product_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    product = _get_product(db, product_id)
    ordered = db.query(OrderItem.id).filter(OrderItem.product_id == product_id).first()
    if ordered:
        raise HTTPException(
            status_code=409,
            detail="Product appears on existing orders; set its status to inactive instead",
        )
    db.delete(product)
    db.commit()
    logger.info("Admin %s deleted product %s", admin.id, product_id)


# =============================================================================
# ORDERS
# =============================================================================


def _check_variant(product: Product, variant_info: dict[str, str] | None) -> None:
    if not variant_info:
        return
    options = product.variant_data or {}
    for option, value in variant_info.items():
        allowed = options.get(option)
        if allowed is None or (isinstance(allowed, list) and value not in allowed):
            raise HTTPException(
                status_code=400,
                detail=f"Invalid {option} '{value}' for product {product.name}",
            )


@router.post("/orders", response_model=OrderRead, status_code=201)
def create_order(
    body: OrderCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Record a pending order. Unit prices are copied from the products now."""
    products = {
        p.id: p
        for p in db.query(Product).filter(Product.id.in_([i.product_id for i in body.items])).all()
    }

    total = Decimal("0.00")
    items = []
    for item in body.items:
        product = products.get(item.product_id)
        if not product or product.status != ProductStatus.ACTIVE.value:
            raise HTTPException(status_code=400, detail=f"Product {item.product_id} is not available")
        _check_variant(product, item.variant_info)
        total += product.price * item.quantity
        items.append(OrderItem(
            product_id=product.id,
            quantity=item.quantity,
            price=product.price,
            variant_info=item.variant_info,
        ))

    order = Order(
        user_id=user.id,
        status=OrderStatus.PENDING.value,
        total=total,
        shipping_address=body.shipping_address.model_dump(),
        discount_code=body.discount_code,
        items=items,
    )
    try:
        db.add(order)
        db.commit()
        db.refresh(order)
    except Exception:
        db.rollback()
        raise
    logger.info("User %s placed order %s for %s", user.id, order.id, order.total)
    return order


@router.get("/orders", response_model=list[OrderRead])
def my_orders(user: User = Depends(require_user), db: Session = Depends(get_db)):
    return (
        db.query(Order)
        .filter(Order.user_id == user.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


@router.get("/orders/admin/all", response_model=list[OrderRead])
def all_orders(
    status: OrderStatus | None = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    query = db.query(Order)
    if status:
        query = query.filter(Order.status == status.value)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


@router.get("/orders/{order_id}", response_model=OrderRead)
def get_order(
    order_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    order = db.get(Order, order_id)
    if not order or (order.user_id != user.id and not is_admin(user)):
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.patch("/orders/{order_id}", response_model=OrderRead)
def update_order_status(
    order_id: int,
    body: OrderStatusUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    order = db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    current = OrderStatus(order.status)
    if body.status not in ORDER_TRANSITIONS[current]:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot change order status from {current.value} to {body.status.value}",
        )

    order.status = body.status.value
    if body.tracking_number is not None:
        order.tracking_number = body.tracking_number
    if body.tracking_url is not None:
        order.tracking_url = body.tracking_url
    db.commit()
    db.refresh(order)
    logger.info("Admin %s moved order %s: %s -> %s", admin.id, order.id, current.value, order.status)
    return order
