# showmart/services/wishlist_service.py
import logging
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, joinedload

from showmart.database import models
from showmart.services.catalog_service import get_visible_product_or_404, serialize_product

logger = logging.getLogger(__name__)


def _find(db: Session, user: models.User, product_id: int):
    return (
        db.query(models.WishlistItem)
        .filter(models.WishlistItem.user_id == user.id, models.WishlistItem.product_id == product_id)
        .first()
    )


def toggle(db: Session, user: models.User, product_id: int) -> dict:
    get_visible_product_or_404(db, user, product_id)
    item = _find(db, user, product_id)
    if item:
        db.delete(item)
        db.commit()
        return {"product_id": product_id, "in_wishlist": False}

    db.add(models.WishlistItem(user_id=user.id, product_id=product_id))
    db.commit()
    return {"product_id": product_id, "in_wishlist": True}


def list_items(db: Session, user: models.User) -> List[dict]:
    items = (
        db.query(models.WishlistItem)
        .options(joinedload(models.WishlistItem.product).joinedload(models.Product.category))
        .filter(models.WishlistItem.user_id == user.id)
        .order_by(models.WishlistItem.created_at.desc(), models.WishlistItem.id.desc())
        .all()
    )
    return [
        {"id": item.id, "added_at": item.created_at, "product": serialize_product(item.product)}
        for item in items
    ]


def remove(db: Session, user: models.User, product_id: int) -> None:
    item = _find(db, user, product_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not in wishlist")
    db.delete(item)
    db.commit()
