# showmart/services/cart_service.py
import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, joinedload

from showmart.database import models
from showmart.services import pricing
from showmart.services.catalog_service import get_purchasable_product_or_404, serialize_product

logger = logging.getLogger(__name__)

CUSTOMER_MAX_PER_ITEM = 5


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def get_item_or_404(db: Session, user: models.User, item_id: int) -> models.CartItem:
    item = (
        db.query(models.CartItem)
        .filter(models.CartItem.id == item_id, models.CartItem.user_id == user.id)
        .first()
    )
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cart item not found")
    return item


def _check_quantity(user: models.User, product: models.Product, quantity: int) -> None:
    if quantity < 1:
        raise _bad_request("Quantity must be at least 1")
    if quantity > product.stock_quantity:
        raise _bad_request(f"Only {product.stock_quantity} items available in stock")
    if user.has_role("retailer"):
        moq = pricing.minimum_order_quantity(product.price)
        if quantity < moq:
            raise _bad_request(f"Minimum order quantity for this product is {moq}")
    elif quantity > CUSTOMER_MAX_PER_ITEM:
        raise _bad_request(f"Maximum {CUSTOMER_MAX_PER_ITEM} items allowed per product")


def add_item(db: Session, user: models.User, product_id: int) -> models.CartItem:
    product = get_purchasable_product_or_404(db, user, product_id)
    if product.stock_quantity <= 0:
        raise _bad_request("Product is out of stock")

    item = (
        db.query(models.CartItem)
        .filter(models.CartItem.user_id == user.id, models.CartItem.product_id == product.id)
        .first()
    )
    if item:
        new_quantity = item.quantity + 1
    elif user.has_role("retailer"):
        new_quantity = pricing.minimum_order_quantity(product.price)
    else:
        new_quantity = 1

    _check_quantity(user, product, new_quantity)

    if item:
        item.quantity = new_quantity
    else:
        item = models.CartItem(user_id=user.id, product_id=product.id, quantity=new_quantity)
        db.add(item)
    db.commit()
    db.refresh(item)
    logger.info("Cart updated for user %s: product %s x%s", user.id, product.id, item.quantity)
    return item


def update_quantity(db: Session, user: models.User, item_id: int, quantity: int) -> models.CartItem:
    item = get_item_or_404(db, user, item_id)
    _check_quantity(user, item.product, quantity)
    item.quantity = quantity
    db.commit()
    db.refresh(item)
    return item


def remove_item(db: Session, user: models.User, item_id: int) -> None:
    item = get_item_or_404(db, user, item_id)
    db.delete(item)
    db.commit()


def cart_items(db: Session, user: models.User):
    return (
        db.query(models.CartItem)
        .options(joinedload(models.CartItem.product).joinedload(models.Product.category))
        .filter(models.CartItem.user_id == user.id)
        .order_by(models.CartItem.created_at, models.CartItem.id)
        .all()
    )


def list_cart(db: Session, user: models.User) -> dict:
    lines = []
    total = 0.0
    for item in cart_items(db, user):
        line_total = round(item.product.price * item.quantity, 2)
        total += line_total
        lines.append({
            "id": item.id,
            "product_id": item.product_id,
            "quantity": item.quantity,
            "line_total": line_total,
            "product": serialize_product(item.product),
        })
    return {"items": lines, "total": round(total, 2), "count": sum(line["quantity"] for line in lines)}
