# showmart/services/checkout_service.py
"""
Cart checkout and direct wholesale purchases.

Each public function runs as one database transaction: either every order,
stock change and restock is committed, or nothing is.
"""
import logging
from collections import OrderedDict
from datetime import date, timedelta
from typing import Dict, List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from showmart.database import models
from showmart.services import pricing
from showmart.services.cart_service import cart_items
from showmart.services.catalog_service import can_purchase, get_product_or_404, sellers_with_role

logger = logging.getLogger(__name__)

ESTIMATED_DELIVERY_DAYS = 7
DIRECT_BUY_ADDRESS = "Retailer warehouse"


def _group_by_seller(items: List[models.CartItem]) -> Dict[int, List[models.CartItem]]:
    groups: Dict[int, List[models.CartItem]] = OrderedDict()
    for item in items:
        groups.setdefault(item.product.seller_id, []).append(item)
    return groups


def _checked_cart(db: Session, user: models.User) -> List[models.CartItem]:
    items = cart_items(db, user)
    if not items:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cart is empty")
    for item in items:
        product = item.product
        if not can_purchase(user, product):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{product.name} is not available for purchase",
            )
        if product.stock_quantity < item.quantity:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Insufficient stock for {product.name}. Available: {product.stock_quantity}",
            )
    return items


def _place_orders(db: Session, user: models.User, items, form, estimated: date = None) -> List[models.Order]:
    """Create one order per seller and take the ordered units out of stock."""
    payment_status = "pending" if form.payment_method == "cod" else "paid"
    orders = []
    for seller_id, seller_items in _group_by_seller(items).items():
        order = models.Order(
            customer_id=user.id,
            seller_id=seller_id,
            total_amount=round(sum(i.product.price * i.quantity for i in seller_items), 2),
            status="pending",
            payment_method=form.payment_method,
            payment_status=payment_status,
            delivery_address=form.address,
            delivery_city=form.city,
            delivery_state=form.state,
            delivery_pincode=form.pincode,
            estimated_delivery_date=estimated,
        )
        for item in seller_items:
            order.items.append(models.OrderItem(
                product_id=item.product_id,
                quantity=item.quantity,
                price=item.product.price,
            ))
            item.product.stock_quantity -= item.quantity
        db.add(order)
        orders.append(order)
    return orders


def _commit_orders(db: Session, orders: List[models.Order]) -> List[models.Order]:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    for order in orders:
        db.refresh(order)
    return orders


# ==============================================================
# Customer checkout
# ==============================================================
def customer_checkout(db: Session, user: models.User, form) -> List[models.Order]:
    items = _checked_cart(db, user)
    try:
        orders = _place_orders(
            db, user, items, form,
            estimated=date.today() + timedelta(days=ESTIMATED_DELIVERY_DAYS),
        )
        if user.profile is not None and not user.profile.phone:
            user.profile.phone = form.phone
        for item in items:
            db.delete(item)
    except Exception:
        db.rollback()
        raise

    orders = _commit_orders(db, orders)
    logger.info("Customer %s placed %d order(s)", user.id, len(orders))
    return orders


# ==============================================================
# Retailer restocking
# ==============================================================
def _restock_from(db: Session, retailer: models.User, wholesale: models.Product, quantity: int) -> models.Product:
    mine = (
        db.query(models.Product)
        .filter(models.Product.seller_id == retailer.id, models.Product.name == wholesale.name)
        .first()
    )
    if mine:
        mine.stock_quantity += quantity
        return mine

    mine = models.Product(
        seller_id=retailer.id,
        name=wholesale.name,
        description=wholesale.description,
        price=pricing.retail_price(wholesale.price, pricing.CART_MARKUP),
        purchase_price=wholesale.price,
        stock_quantity=quantity,
        category_id=wholesale.category_id,
        image_url=wholesale.image_url,
        mrp=wholesale.mrp,
        is_local=wholesale.is_local,
    )
    db.add(mine)
    return mine


def retailer_checkout(db: Session, user: models.User, form) -> List[models.Order]:
    items = _checked_cart(db, user)
    try:
        orders = _place_orders(db, user, items, form)
        for item in items:
            _restock_from(db, user, item.product, item.quantity)
            db.delete(item)
            # restocked products must be visible to the next name lookup
            db.flush()
    except Exception:
        db.rollback()
        raise

    orders = _commit_orders(db, orders)
    logger.info("Retailer %s placed %d wholesale order(s)", user.id, len(orders))
    return orders


def buy_from_wholesaler(db: Session, retailer: models.User, product_id: int, quantity: int) -> dict:
    product = get_product_or_404(db, product_id)
    wholesaler_ids = db.scalars(sellers_with_role("wholesaler")).all()
    if product.seller_id not in wholesaler_ids:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Wholesale product not found")
    if quantity < 1:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Quantity must be at least 1")
    if quantity > product.stock_quantity:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Insufficient stock available")

    try:
        product.stock_quantity -= quantity
        order = models.Order(
            customer_id=retailer.id,
            seller_id=product.seller_id,
            total_amount=round(product.price * quantity, 2),
            status="completed",
            payment_method="cod",
            payment_status="paid",
            delivery_address=DIRECT_BUY_ADDRESS,
        )
        order.items.append(models.OrderItem(product_id=product.id, quantity=quantity, price=product.price))
        db.add(order)

        retail_price = pricing.retail_price(product.price, pricing.DIRECT_BUY_MARKUP)
        mine = (
            db.query(models.Product)
            .filter(
                models.Product.seller_id == retailer.id,
                models.Product.name == product.name,
                models.Product.category_id == product.category_id,
            )
            .first()
        )
        if mine:
            mine.stock_quantity += quantity
            mine.price = retail_price
            mine.purchase_price = product.price
        else:
            mine = models.Product(
                seller_id=retailer.id,
                name=product.name,
                description=product.description,
                price=retail_price,
                purchase_price=product.price,
                stock_quantity=quantity,
                category_id=product.category_id,
                image_url=product.image_url,
            )
            db.add(mine)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    db.refresh(mine)
    logger.info("Retailer %s bought %s x%s from wholesaler %s", retailer.id, product.name, quantity, product.seller_id)
    return {"order": order, "product": mine}
