# showmart/routers/order_routes.py
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from showmart.auth import get_current_user, require_role
from showmart.database import models, schemas
from showmart.database.database import get_db
from showmart.services import order_service, return_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.get("")
def my_orders(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    return order_service.customer_orders(db, current_user)


@router.get("/returns", response_model=List[schemas.ReturnResponse])
def my_returns(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    return return_service.customer_returns(db, current_user)


@router.post("/returns", response_model=schemas.ReturnResponse, status_code=status.HTTP_201_CREATED)
def request_return(
    payload: schemas.ReturnCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_role("customer")),
):
    return return_service.request_return(
        db, current_user, payload.order_id, payload.product_id, payload.reason, payload.image_url
    )
