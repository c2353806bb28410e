# showmart/services/return_service.py
import logging
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from showmart.database import models

logger = logging.getLogger(__name__)

OPEN_STATUSES = ("pending", "approved")
RESOLVED_STATUSES = ("approved", "rejected", "refunded")


def request_return(
    db: Session,
    customer: models.User,
    order_id: int,
    product_id: int,
    reason: str,
    image_url: Optional[str] = None,
) -> models.Return:
    order = db.get(models.Order, order_id)
    if not order or order.customer_id != customer.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    if order.status != "delivered":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only delivered orders can be returned")

    item = next((i for i in order.items if i.product_id == product_id), None)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found in this order")

    reason = (reason or "").strip()
    if not reason:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please provide a reason for return")

    existing = (
        db.query(models.Return)
        .filter(
            models.Return.order_id == order.id,
            models.Return.product_id == product_id,
            models.Return.status.in_(OPEN_STATUSES),
        )
        .first()
    )
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A return for this item is already open")

    ret = models.Return(
        order_id=order.id,
        product_id=product_id,
        customer_id=customer.id,
        retailer_id=order.seller_id,
        quantity=item.quantity,
        reason=reason,
        image_url=image_url,
        status="pending",
    )
    db.add(ret)
    db.commit()
    db.refresh(ret)
    logger.info("Return %s requested for order %s by customer %s", ret.id, order.id, customer.id)
    return ret


def customer_returns(db: Session, customer: models.User) -> List[models.Return]:
    return (
        db.query(models.Return)
        .filter(models.Return.customer_id == customer.id)
        .order_by(models.Return.created_at.desc(), models.Return.id.desc())
        .all()
    )


def retailer_returns(db: Session, retailer: models.User) -> List[models.Return]:
    return (
        db.query(models.Return)
        .filter(models.Return.retailer_id == retailer.id)
        .order_by(models.Return.created_at.desc(), models.Return.id.desc())
        .all()
    )


def update_return_status(db: Session, retailer: models.User, return_id: int, new_status: str) -> models.Return:
    if new_status not in RESOLVED_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid return status")
    ret = db.get(models.Return, return_id)
    if not ret:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Return not found")
    if ret.retailer_id != retailer.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the retailer can update this return")

    ret.status = new_status
    db.commit()
    db.refresh(ret)
    logger.info("Return %s status -> %s", ret.id, new_status)
    return ret
