# showmart/routers/cart_routes.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from showmart.auth import require_role
from showmart.database import models, schemas
from showmart.database.database import get_db
from showmart.services import cart_service, checkout_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cart", tags=["Cart"])

buyer_only = require_role("customer", "retailer")


@router.get("")
def get_cart(db: Session = Depends(get_db), current_user: models.User = Depends(buyer_only)):
    return cart_service.list_cart(db, current_user)


@router.post("", status_code=status.HTTP_201_CREATED)
def add_to_cart(
    payload: schemas.CartAdd,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(buyer_only),
):
    item = cart_service.add_item(db, current_user, payload.product_id)
    return {"id": item.id, "product_id": item.product_id, "quantity": item.quantity}


@router.put("/{item_id}")
def update_cart_item(
    item_id: int,
    payload: schemas.CartUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(buyer_only),
):
    item = cart_service.update_quantity(db, current_user, item_id, payload.quantity)
    return {"id": item.id, "product_id": item.product_id, "quantity": item.quantity}


@router.delete("/{item_id}")
def remove_cart_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(buyer_only),
):
    cart_service.remove_item(db, current_user, item_id)
    return {"detail": "Item removed from cart"}


# ==============================
# CHECKOUT
# ==============================
@router.post("/checkout", response_model=List[schemas.OrderResponse], status_code=status.HTTP_201_CREATED)
def customer_checkout(
    form: schemas.CustomerCheckout,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_role("customer")),
):
    try:
        return checkout_service.customer_checkout(db, current_user, form)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Checkout failed for user %s: %s", current_user.id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to place order")


@router.post("/retailer-checkout", response_model=List[schemas.OrderResponse], status_code=status.HTTP_201_CREATED)
def retailer_checkout(
    form: schemas.RetailerCheckout,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_role("retailer")),
):
    try:
        return checkout_service.retailer_checkout(db, current_user, form)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Retailer checkout failed for user %s: %s", current_user.id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to place order")
