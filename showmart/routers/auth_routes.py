# showmart/routers/auth_routes.py
import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from redis.asyncio import Redis
from sqlalchemy.orm import Session

from showmart.auth import get_current_user, oauth2_scheme
from showmart.core.redis import get_redis_or_none
from showmart.database import models, schemas
from showmart.database.database import get_db
from showmart.services import account_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


# -------------------- Registration --------------------
@router.post("/send-otp", response_model=Dict[str, str])
async def send_otp(
    request: schemas.OTPRequest,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis_or_none),
):
    try:
        return await account_service.send_registration_otp(db, redis, request.email)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Unexpected error sending OTP to %s: %s", request.email, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.post("/verify-otp", response_model=Dict)
async def verify_otp(request: schemas.OTPVerifyRequest, redis: Redis = Depends(get_redis_or_none)):
    return await account_service.verify_registration_otp(redis, request.email, request.otp)


@router.post("/signup", status_code=status.HTTP_201_CREATED, response_model=schemas.TokenResponse)
async def signup(
    payload: schemas.SignupRequest,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis_or_none),
):
    """
    Create an account once the email has been verified with an OTP.
    Customers and retailers may pass their city; it drives local delivery matching.
    """
    try:
        return await account_service.signup(db, redis, payload)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Unexpected error during signup: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


# -------------------- Sessions --------------------
@router.post("/login", response_model=schemas.TokenResponse)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """
    Expects form-urlencoded data with username (email) and password.
    """
    try:
        return account_service.login(db, form_data.username, form_data.password)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Unexpected error during login: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.post("/logout", response_model=Dict)
def logout(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    """Blacklist the bearer token. Logging out twice is not an error."""
    try:
        return account_service.logout(db, token)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Error during logout: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to logout")


# -------------------- Profile --------------------
@router.get("/me", response_model=schemas.MeResponse)
def me(current_user: models.User = Depends(get_current_user)):
    return account_service.describe_user(current_user)


@router.put("/me/profile", response_model=schemas.ProfileResponse)
def update_profile(
    payload: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return account_service.update_profile(db, current_user, payload.model_dump(exclude_unset=True))


@router.put("/me/location", response_model=schemas.ProfileResponse)
def set_location(
    payload: schemas.LocationUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return account_service.set_location(db, current_user, payload.city)
