# showmart/routers/shop_routes.py
import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from showmart.auth import get_current_user, require_role
from showmart.database import models, schemas
from showmart.database.database import get_db
from showmart.services import catalog_service, feedback_service, pricing, wishlist_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shop", tags=["Shop"])

seller_only = require_role("retailer", "wholesaler")


# ==============================
# CATEGORIES
# ==============================
@router.get("/categories", response_model=List[schemas.CategoryResponse])
def list_categories(top_level_only: bool = False, db: Session = Depends(get_db)):
    return catalog_service.list_categories(db, top_level_only)


@router.post("/categories", response_model=schemas.CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: schemas.CategoryCreate,
    db: Session = Depends(get_db),
    _: Any = Depends(seller_only),
):
    return catalog_service.create_category(db, **payload.model_dump())


@router.get("/categories/counts", response_model=List[schemas.CategoryCount])
def category_counts(db: Session = Depends(get_db)):
    return catalog_service.category_counts(db)


# ==============================
# PRODUCTS
# ==============================
@router.get("/products")
def browse_products(
    search: Optional[str] = None,
    category_id: Optional[List[int]] = Query(None),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    fast_delivery: bool = False,
    sort: str = "newest",
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    try:
        return catalog_service.browse(
            db,
            current_user,
            search=search,
            category_ids=category_id,
            min_price=min_price,
            max_price=max_price,
            fast_delivery=fast_delivery,
            sort=sort,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error browsing products: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.get("/products/{product_id}")
def product_detail(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return catalog_service.product_detail(db, current_user, product_id)


@router.post("/delivery-check")
def delivery_check(payload: schemas.DeliveryCheck):
    try:
        return pricing.estimate_delivery(payload.pincode)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# ==============================
# FEEDBACK
# ==============================
@router.get("/products/{product_id}/feedback")
def list_feedback(product_id: int, db: Session = Depends(get_db)):
    catalog_service.get_product_or_404(db, product_id)
    return {
        "summary": feedback_service.rating_summary(db, product_id),
        "reviews": feedback_service.list_for_product(db, product_id),
    }


@router.post("/products/{product_id}/feedback", status_code=status.HTTP_201_CREATED)
def submit_feedback(
    product_id: int,
    payload: schemas.FeedbackCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    feedback = feedback_service.submit(
        db, current_user, product_id, payload.rating, payload.comment, payload.order_id
    )
    return {"id": feedback.id, "rating": feedback.rating, "comment": feedback.comment}


@router.delete("/feedback/{feedback_id}")
def delete_feedback(
    feedback_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    feedback_service.delete(db, current_user, feedback_id)
    return {"detail": "Feedback deleted"}


# ==============================
# WISHLIST
# ==============================
@router.get("/wishlist")
def list_wishlist(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    return wishlist_service.list_items(db, current_user)


@router.post("/wishlist/toggle")
def toggle_wishlist(
    payload: schemas.WishlistToggle,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return wishlist_service.toggle(db, current_user, payload.product_id)


@router.delete("/wishlist/{product_id}")
def remove_from_wishlist(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    wishlist_service.remove(db, current_user, product_id)
    return {"detail": "Removed from wishlist"}
