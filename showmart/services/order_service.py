# showmart/services/order_service.py
import logging
from datetime import date
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, joinedload, selectinload

from showmart.database import models

logger = logging.getLogger(__name__)

ORDER_STATUSES = (
    "pending",
    "order placed",
    "shipped",
    "on the way",
    "out for delivery",
    "delivered",
    "cancelled",
)


def _serialize_order(order: models.Order) -> dict:
    return {
        "id": order.id,
        "customer_id": order.customer_id,
        "seller_id": order.seller_id,
        "total_amount": order.total_amount,
        "status": order.status,
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "delivery_address": order.delivery_address,
        "delivery_city": order.delivery_city,
        "delivery_state": order.delivery_state,
        "delivery_pincode": order.delivery_pincode,
        "estimated_delivery_date": order.estimated_delivery_date,
        "actual_delivery_date": order.actual_delivery_date,
        "created_at": order.created_at,
        "items": [
            {
                "id": item.id,
                "product_id": item.product_id,
                "product_name": item.product.name if item.product else None,
                "image_url": item.product.image_url if item.product else None,
                "quantity": item.quantity,
                "price": item.price,
            }
            for item in order.items
        ],
    }


def _orders_query(db: Session):
    return db.query(models.Order).options(
        selectinload(models.Order.items).joinedload(models.OrderItem.product),
        selectinload(models.Order.returns),
    )


def customer_orders(db: Session, user: models.User) -> List[dict]:
    orders = (
        _orders_query(db)
        .filter(models.Order.customer_id == user.id)
        .order_by(models.Order.created_at.desc(), models.Order.id.desc())
        .all()
    )
    return [_serialize_order(order) for order in orders]


def seller_orders(db: Session, seller: models.User) -> List[dict]:
    orders = (
        _orders_query(db)
        .filter(models.Order.seller_id == seller.id)
        .order_by(models.Order.created_at.desc(), models.Order.id.desc())
        .all()
    )
    names = dict(
        db.query(models.Profile.id, models.Profile.full_name)
        .filter(models.Profile.id.in_([o.customer_id for o in orders]))
        .all()
    ) if orders else {}

    results = []
    for order in orders:
        item = _serialize_order(order)
        item["customer_name"] = names.get(order.customer_id) or "Unknown"
        item["has_return"] = bool(order.returns)
        results.append(item)
    return results


def update_status(db: Session, seller: models.User, order_id: int, new_status: str) -> models.Order:
    new_status = (new_status or "").strip().lower()
    if new_status not in ORDER_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status. Allowed: {', '.join(ORDER_STATUSES)}",
        )

    order = db.get(models.Order, order_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    if order.seller_id != seller.id:
        logger.warning("User %s tried to update order %s owned by seller %s", seller.id, order.id, order.seller_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the seller can update this order")

    order.status = new_status
    if new_status == "delivered":
        order.actual_delivery_date = date.today()
    db.commit()
    db.refresh(order)
    logger.info("Order %s status -> %s", order.id, new_status)
    return order
