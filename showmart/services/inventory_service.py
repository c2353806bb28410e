# showmart/services/inventory_service.py
import logging
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, joinedload

from showmart.database import models
from showmart.services import pricing
from showmart.services.catalog_service import serialize_product

logger = logging.getLogger(__name__)

WHOLESALER_LOW_STOCK = 50
RETAILER_LOW_STOCK = 10


def get_own_product_or_404(db: Session, seller: models.User, product_id: int) -> models.Product:
    product = (
        db.query(models.Product)
        .filter(models.Product.id == product_id, models.Product.seller_id == seller.id)
        .first()
    )
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


def create_product(db: Session, seller: models.User, data: dict) -> models.Product:
    if db.get(models.Category, data["category_id"]) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

    product = models.Product(seller_id=seller.id, mrp=data["price"], **data)
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info("Product created by seller %s: %s", seller.id, product.name)
    return product


def list_own(db: Session, seller: models.User) -> List[models.Product]:
    return (
        db.query(models.Product)
        .options(joinedload(models.Product.category))
        .filter(models.Product.seller_id == seller.id)
        .order_by(models.Product.created_at.desc(), models.Product.id.desc())
        .all()
    )


def add_stock(db: Session, seller: models.User, product_id: int, quantity: int) -> models.Product:
    if quantity <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Quantity must be greater than 0")
    product = get_own_product_or_404(db, seller, product_id)
    product.stock_quantity += quantity
    db.commit()
    db.refresh(product)
    logger.info("Stock added for product %s: +%s", product.id, quantity)
    return product


def remove_stock(db: Session, seller: models.User, product_id: int, quantity: int) -> models.Product:
    if quantity <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Quantity must be greater than 0")
    product = get_own_product_or_404(db, seller, product_id)
    if quantity > product.stock_quantity:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot remove more than current stock ({product.stock_quantity})",
        )
    product.stock_quantity -= quantity
    db.commit()
    db.refresh(product)
    logger.info("Stock removed for product %s: -%s", product.id, quantity)
    return product


def set_price(db: Session, seller: models.User, product_id: int, mrp: float, price: float) -> models.Product:
    product = get_own_product_or_404(db, seller, product_id)
    try:
        pricing.validate_selling_price(mrp, price, product.purchase_price)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    product.mrp = mrp
    product.price = price
    db.commit()
    db.refresh(product)
    logger.info("Price set for product %s: price=%s mrp=%s", product.id, price, mrp)
    return product


def delete_product(db: Session, seller: models.User, product_id: int) -> None:
    product = get_own_product_or_404(db, seller, product_id)
    ordered = db.query(models.OrderItem.id).filter(models.OrderItem.product_id == product.id).first()
    if ordered:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Product has orders and cannot be deleted; remove its stock instead",
        )
    db.delete(product)
    db.commit()
    logger.info("Product %s deleted by seller %s", product_id, seller.id)


# ==============================================================
# Dashboard statistics
# ==============================================================
def wholesaler_stats(db: Session, seller: models.User) -> dict:
    products = list_own(db, seller)
    return {
        "product_count": len(products),
        "total_units": sum(p.stock_quantity for p in products),
        "low_stock_count": sum(1 for p in products if p.stock_quantity < WHOLESALER_LOW_STOCK),
        "stock_value": round(sum(p.price * p.stock_quantity for p in products), 2),
    }


def retailer_stats(db: Session, seller: models.User) -> dict:
    products = list_own(db, seller)
    inventory_value = sum(p.price * p.stock_quantity for p in products)
    total_cost = sum((p.purchase_price or 0) * p.stock_quantity for p in products)
    net_profit = round(inventory_value - total_cost, 2)

    per_product = []
    for product in products:
        item = serialize_product(product)
        item.update(pricing.profit_summary(product.price, product.purchase_price, product.stock_quantity))
        per_product.append(item)

    return {
        "product_count": len(products),
        "total_units": sum(p.stock_quantity for p in products),
        "inventory_value": round(inventory_value, 2),
        "total_cost": round(total_cost, 2),
        "net_profit": net_profit,
        "is_profitable": net_profit >= 0,
        "low_stock_count": sum(1 for p in products if p.stock_quantity < RETAILER_LOW_STOCK),
        "products": per_product,
    }
