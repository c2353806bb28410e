# showmart/routers/seller_routes.py
import logging
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from showmart.auth import require_role
from showmart.database import models, schemas
from showmart.database.database import get_db
from showmart.services import (
    catalog_service, checkout_service, inventory_service, order_service, return_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/seller", tags=["Seller"])

seller_only = require_role("retailer", "wholesaler")
retailer_only = require_role("retailer")


# ==============================
# INVENTORY
# ==============================
@router.get("/products", response_model=List[schemas.ProductResponse])
def my_products(db: Session = Depends(get_db), current_user: models.User = Depends(seller_only)):
    return inventory_service.list_own(db, current_user)


@router.post("/products", response_model=schemas.ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: schemas.ProductCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(seller_only),
):
    return inventory_service.create_product(db, current_user, payload.model_dump())


@router.post("/products/{product_id}/add-stock", response_model=schemas.ProductResponse)
def add_stock(
    product_id: int,
    payload: schemas.StockChange,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(seller_only),
):
    return inventory_service.add_stock(db, current_user, product_id, payload.quantity)


@router.post("/products/{product_id}/remove-stock", response_model=schemas.ProductResponse)
def remove_stock(
    product_id: int,
    payload: schemas.StockChange,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(seller_only),
):
    return inventory_service.remove_stock(db, current_user, product_id, payload.quantity)


@router.put("/products/{product_id}/price", response_model=schemas.ProductResponse)
def set_price(
    product_id: int,
    payload: schemas.PriceUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(retailer_only),
):
    return inventory_service.set_price(db, current_user, product_id, payload.mrp, payload.price)


@router.delete("/products/{product_id}")
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(seller_only),
):
    inventory_service.delete_product(db, current_user, product_id)
    return {"detail": "Product deleted successfully"}


@router.get("/stats")
def stats(db: Session = Depends(get_db), current_user: models.User = Depends(seller_only)):
    if current_user.has_role("retailer"):
        return inventory_service.retailer_stats(db, current_user)
    return inventory_service.wholesaler_stats(db, current_user)


# ==============================
# WHOLESALE MARKET (retailers)
# ==============================
@router.get("/wholesale")
def wholesale_market(db: Session = Depends(get_db), _: Any = Depends(retailer_only)):
    return catalog_service.wholesale_market(db)


@router.post("/wholesale/buy", status_code=status.HTTP_201_CREATED)
def buy_from_wholesaler(
    payload: schemas.BuyNowRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(retailer_only),
):
    try:
        result = checkout_service.buy_from_wholesaler(db, current_user, payload.product_id, payload.quantity)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Wholesale purchase failed for retailer %s: %s", current_user.id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to place order")
    return {
        "order": schemas.OrderResponse.model_validate(result["order"]),
        "product": schemas.ProductResponse.model_validate(result["product"]),
    }


# ==============================
# ORDERS & RETURNS
# ==============================
@router.get("/orders")
def seller_orders(db: Session = Depends(get_db), current_user: models.User = Depends(seller_only)):
    return order_service.seller_orders(db, current_user)


@router.put("/orders/{order_id}/status", response_model=schemas.OrderResponse)
def update_order_status(
    order_id: int,
    payload: schemas.OrderStatusUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(seller_only),
):
    return order_service.update_status(db, current_user, order_id, payload.status)


@router.get("/returns", response_model=List[schemas.ReturnResponse])
def retailer_returns(db: Session = Depends(get_db), current_user: models.User = Depends(retailer_only)):
    return return_service.retailer_returns(db, current_user)


@router.put("/returns/{return_id}/status", response_model=schemas.ReturnResponse)
def update_return_status(
    return_id: int,
    payload: schemas.ReturnStatusUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(retailer_only),
):
    return return_service.update_return_status(db, current_user, return_id, payload.status)
