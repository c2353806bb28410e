# showmart/services/feedback_service.py
import logging
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from showmart.database import models
from showmart.services.catalog_service import get_product_or_404

logger = logging.getLogger(__name__)


def submit(
    db: Session,
    user: models.User,
    product_id: int,
    rating: int,
    comment: Optional[str] = None,
    order_id: Optional[int] = None,
) -> models.Feedback:
    if rating < 1 or rating > 5:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Rating must be between 1 and 5")
    get_product_or_404(db, product_id)
    if order_id is not None:
        order = db.get(models.Order, order_id)
        if not order or order.customer_id != user.id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")

    feedback = models.Feedback(
        user_id=user.id,
        product_id=product_id,
        order_id=order_id,
        rating=rating,
        comment=(comment or "").strip() or None,
    )
    db.add(feedback)
    db.commit()
    db.refresh(feedback)
    logger.info("Feedback %s submitted for product %s", feedback.id, product_id)
    return feedback


def list_for_product(db: Session, product_id: int) -> List[dict]:
    rows = (
        db.query(models.Feedback, models.Profile.full_name)
        .outerjoin(models.Profile, models.Profile.id == models.Feedback.user_id)
        .filter(models.Feedback.product_id == product_id)
        .order_by(models.Feedback.created_at.desc(), models.Feedback.id.desc())
        .all()
    )
    return [
        {
            "id": fb.id,
            "user_id": fb.user_id,
            "rating": fb.rating,
            "comment": fb.comment,
            "created_at": fb.created_at,
            "reviewer_name": full_name or "Anonymous",
        }
        for fb, full_name in rows
    ]


def rating_summary(db: Session, product_id: int) -> dict:
    average, count = (
        db.query(func.avg(models.Feedback.rating), func.count(models.Feedback.id))
        .filter(models.Feedback.product_id == product_id)
        .one()
    )
    return {
        "product_id": product_id,
        "average_rating": round(float(average), 1) if average is not None else 0.0,
        "review_count": count,
    }


def delete(db: Session, user: models.User, feedback_id: int) -> None:
    feedback = db.get(models.Feedback, feedback_id)
    if not feedback or feedback.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Feedback not found")
    db.delete(feedback)
    db.commit()
