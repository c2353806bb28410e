# showmart/services/catalog_service.py
import logging
from typing import Iterable, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from showmart.database import models
from showmart.services import pricing

logger = logging.getLogger(__name__)

SORT_OPTIONS = ("newest", "price-low", "price-high", "name")


def sellers_with_role(role: str):
    """SELECT of user ids holding ``role``, for use inside ``IN (...)``."""
    return select(models.UserRole.user_id).where(models.UserRole.role == role)


def serialize_product(product: models.Product) -> dict:
    return {
        "id": product.id,
        "seller_id": product.seller_id,
        "category_id": product.category_id,
        "category_name": product.category.name if product.category else None,
        "name": product.name,
        "description": product.description,
        "price": product.price,
        "purchase_price": product.purchase_price,
        "mrp": product.mrp,
        "discount_percentage": product.discount_percentage,
        "stock_quantity": product.stock_quantity,
        "image_url": product.image_url,
        "is_local": bool(product.is_local),
        "available_date": product.available_date,
        "created_at": product.created_at,
    }


def get_product_or_404(db: Session, product_id: int) -> models.Product:
    product = db.query(models.Product).filter(models.Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


# ==============================================================
# Categories
# ==============================================================
def list_categories(db: Session, top_level_only: bool = False) -> List[models.Category]:
    query = db.query(models.Category)
    if top_level_only:
        query = query.filter(models.Category.parent_id.is_(None))
    return query.order_by(models.Category.name).all()


def create_category(
    db: Session,
    name: str,
    description: Optional[str] = None,
    image_url: Optional[str] = None,
    parent_id: Optional[int] = None,
) -> models.Category:
    name = (name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category name is required")

    if parent_id is not None and db.get(models.Category, parent_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Parent category not found")

    if db.query(models.Category).filter(func.lower(models.Category.name) == name.lower()).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category already exists")

    category = models.Category(name=name, description=description, image_url=image_url, parent_id=parent_id)
    db.add(category)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category already exists")
    db.refresh(category)
    logger.info("Category created: %s", category.name)
    return category


def category_counts(db: Session) -> List[dict]:
    """In-stock retailer products per category; empty categories are left out."""
    rows = (
        db.query(models.Category.id, models.Category.name, func.count(models.Product.id))
        .join(models.Product, models.Product.category_id == models.Category.id)
        .filter(
            models.Product.stock_quantity > 0,
            models.Product.seller_id.in_(sellers_with_role("retailer")),
        )
        .group_by(models.Category.id, models.Category.name)
        .order_by(models.Category.name)
        .all()
    )
    return [{"id": cid, "name": name, "product_count": count} for cid, name, count in rows if count > 0]


# ==============================================================
# Customer browsing
# ==============================================================
def _city_of(user: Optional[models.User]) -> Optional[str]:
    if user is None or user.profile is None or not user.profile.city:
        return None
    return user.profile.city.strip().lower() or None


def browse(
    db: Session,
    customer: Optional[models.User],
    search: Optional[str] = None,
    category_ids: Optional[Iterable[int]] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    fast_delivery: bool = False,
    sort: str = "newest",
) -> List[dict]:
    if sort not in SORT_OPTIONS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid sort option: {sort}")

    query = (
        db.query(models.Product, models.Profile.city)
        .outerjoin(models.Profile, models.Profile.id == models.Product.seller_id)
        .options(joinedload(models.Product.category))
        .filter(
            models.Product.seller_id.in_(sellers_with_role("retailer")),
            models.Product.stock_quantity > 0,
        )
    )

    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(or_(
            func.lower(models.Product.name).like(pattern),
            func.lower(models.Product.description).like(pattern),
        ))
    category_ids = list(category_ids or [])
    if category_ids:
        query = query.filter(models.Product.category_id.in_(category_ids))
    if min_price is not None:
        query = query.filter(models.Product.price >= min_price)
    if max_price is not None:
        query = query.filter(models.Product.price <= max_price)

    customer_city = _city_of(customer)
    if fast_delivery:
        if not customer_city:
            return []
        query = query.filter(func.lower(func.trim(models.Profile.city)) == customer_city)

    order_by = {
        "newest": (models.Product.created_at.desc(), models.Product.id.desc()),
        "price-low": (models.Product.price.asc(), models.Product.id),
        "price-high": (models.Product.price.desc(), models.Product.id),
        "name": (models.Product.name.asc(), models.Product.id),
    }[sort]

    results = []
    for product, seller_city in query.order_by(*order_by).all():
        item = serialize_product(product)
        item["seller_city"] = seller_city
        item["is_local"] = bool(
            customer_city and seller_city and seller_city.strip().lower() == customer_city
        )
        results.append(item)
    return results


def _sold_by(product: models.Product, role: str) -> bool:
    return product.seller is not None and product.seller.has_role(role)


def _can_view(user: models.User, product: models.Product) -> bool:
    if product.seller_id == user.id:
        return True
    if user.has_role("retailer") or user.has_role("wholesaler"):
        return True
    return _sold_by(product, "retailer")


def can_purchase(user: models.User, product: models.Product) -> bool:
    """Retailers buy wholesale stock; everyone else buys from retailers."""
    if product.seller_id == user.id:
        return False
    if user.has_role("retailer"):
        return _sold_by(product, "wholesaler")
    return _sold_by(product, "retailer")


def get_visible_product_or_404(db: Session, user: models.User, product_id: int) -> models.Product:
    product = get_product_or_404(db, product_id)
    if not _can_view(user, product):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


def get_purchasable_product_or_404(db: Session, user: models.User, product_id: int) -> models.Product:
    product = get_visible_product_or_404(db, user, product_id)
    if not can_purchase(user, product):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


def product_detail(db: Session, user: models.User, product_id: int) -> dict:
    product = get_visible_product_or_404(db, user, product_id)
    seller = product.seller

    average, count = (
        db.query(func.avg(models.Feedback.rating), func.count(models.Feedback.id))
        .filter(models.Feedback.product_id == product.id)
        .one()
    )
    detail = serialize_product(product)
    detail.update({
        "seller_name": seller.profile.full_name if seller and seller.profile else None,
        "seller_city": seller.profile.city if seller and seller.profile else None,
        "average_rating": round(float(average), 1) if average is not None else 0.0,
        "review_count": count,
    })
    return detail


# ==============================================================
# Wholesale market (retailers)
# ==============================================================
def wholesale_market(db: Session) -> List[dict]:
    products = (
        db.query(models.Product)
        .options(joinedload(models.Product.category))
        .filter(models.Product.seller_id.in_(sellers_with_role("wholesaler")))
        .order_by(models.Product.created_at.desc(), models.Product.id.desc())
        .all()
    )
    results = []
    for product in products:
        item = serialize_product(product)
        profile = product.seller.profile if product.seller else None
        item["wholesaler_name"] = profile.full_name if profile else None
        item["minimum_order_quantity"] = pricing.minimum_order_quantity(product.price)
        results.append(item)
    return results
