# showmart/services/account_service.py
import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status
from redis.asyncio import Redis
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from showmart.auth import create_access_token, decode_access_token, is_token_revoked
from showmart.core.config import OTP_TTL_SECONDS
from showmart.database import models
from showmart.utils import generate_otp, hash_password, normalize_email, send_email, verify_password

logger = logging.getLogger(__name__)

CITY_ROLES = ("customer", "retailer")
HOME_BY_ROLE = (
    ("retailer", "dashboard"),
    ("wholesaler", "dashboard"),
    ("customer", "shop"),
    ("admin", "cinema"),
)


def _otp_key(email: str) -> str:
    return f"reg_otp:{email}"


def _verified_key(email: str) -> str:
    return f"reg_verified:{email}"


def _require_redis(redis: Optional[Redis]) -> Redis:
    if redis is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Email verification service unavailable",
        )
    return redis


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email).first()


# ==============================================================
# Registration
# ==============================================================
async def send_registration_otp(db: Session, redis: Optional[Redis], email: str) -> dict:
    if get_user_by_email(db, email):
        logger.warning("OTP requested for already registered email: %s", email)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    redis = _require_redis(redis)
    otp = generate_otp()
    try:
        await redis.setex(_otp_key(email), OTP_TTL_SECONDS, otp)
    except Exception as e:
        logger.warning("Could not store registration OTP for %s: %s", email, e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Email verification service unavailable")

    body = f"Your ShowMart verification code is: {otp}\nIt expires in {OTP_TTL_SECONDS // 60} minutes."
    result = await send_email(email, "ShowMart registration OTP", body)
    if not result:
        logger.warning("OTP for %s stored but email could not be sent", email)
        return {"detail": "OTP generated; email could not be sent (check SMTP settings)"}
    return {"detail": "OTP sent to your email"}


async def verify_registration_otp(redis: Optional[Redis], email: str, otp: str) -> dict:
    redis = _require_redis(redis)
    try:
        stored = await redis.get(_otp_key(email))
        if not stored or stored != otp:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid OTP")
        await redis.setex(_verified_key(email), OTP_TTL_SECONDS, "true")
        await redis.delete(_otp_key(email))
    except HTTPException:
        raise
    except Exception as e:
        logger.warning("Redis error while verifying OTP for %s: %s", email, e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="OTP verification service temporarily unavailable")

    logger.info("Registration OTP verified for %s", email)
    return {"success": True, "message": "OTP verified successfully"}


def create_user(
    db: Session,
    email: str,
    password: str,
    role: str,
    full_name: Optional[str] = None,
    city: Optional[str] = None,
) -> models.User:
    """Insert the user with its profile and role row. Commits."""
    user = models.User(email=email, password=hash_password(password))
    profile = models.Profile(full_name=(full_name or "").strip() or "User")
    if role in CITY_ROLES and city and city.strip():
        profile.city = city.strip()
    user.profile = profile
    user.roles.append(models.UserRole(role=role))

    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    db.refresh(user)
    return user


async def signup(db: Session, redis: Optional[Redis], payload) -> dict:
    if get_user_by_email(db, payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    redis = _require_redis(redis)
    try:
        verified = await redis.get(_verified_key(payload.email))
    except Exception as e:
        logger.warning("Redis error during signup for %s: %s", payload.email, e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Email verification service unavailable")

    if verified != "true":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email not verified. Please verify your email with OTP first.",
        )

    user = create_user(db, payload.email, payload.password, payload.role, payload.full_name, payload.city)
    try:
        await redis.delete(_verified_key(payload.email))
    except Exception as e:
        logger.warning("Could not clear verification flag for %s: %s", payload.email, e)

    logger.info("User registered: %s (%s)", user.email, payload.role)
    token = create_access_token({"sub": user.email})
    return {"access_token": token, "token_type": "bearer", "roles": user.role_names}


# ==============================================================
# Sessions
# ==============================================================
def login(db: Session, email: str, password: str) -> dict:
    try:
        email = normalize_email(email)
    except ValueError:
        logger.warning("Login attempted with malformed email: %s", email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password):
        logger.warning("Failed login for %s", email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = create_access_token({"sub": user.email})
    logger.info("Login successful for %s", user.email)
    return {"access_token": token, "token_type": "bearer", "roles": user.role_names}


def logout(db: Session, token: str) -> dict:
    if is_token_revoked(db, token):
        return {"success": True, "message": "Already logged out"}

    payload = decode_access_token(token)
    expires_at = datetime.utcfromtimestamp(payload.get("exp", datetime.utcnow().timestamp()))
    db.add(models.BlacklistedToken(token=token, expires_at=expires_at))
    db.commit()
    return {"success": True, "message": "Logged out successfully"}


# ==============================================================
# Profile
# ==============================================================
def home_for(user: models.User) -> str:
    for role, home in HOME_BY_ROLE:
        if user.has_role(role):
            return home
    return "shop"


def describe_user(user: models.User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "roles": user.role_names,
        "home": home_for(user),
        "profile": user.profile,
    }


def _ensure_profile(db: Session, user: models.User) -> models.Profile:
    if user.profile is None:
        user.profile = models.Profile(full_name="User")
        db.add(user.profile)
    return user.profile


def update_profile(db: Session, user: models.User, changes: dict) -> models.Profile:
    profile = _ensure_profile(db, user)
    for field, value in changes.items():
        if isinstance(value, str):
            value = value.strip() or None
        if field == "full_name" and not value:
            continue
        setattr(profile, field, value)
    db.commit()
    db.refresh(profile)
    return profile


def set_location(db: Session, user: models.User, city: str) -> models.Profile:
    city = (city or "").strip()
    if not city:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="City is required")
    profile = _ensure_profile(db, user)
    profile.city = city
    db.commit()
    db.refresh(profile)
    logger.info("Location set for %s: %s", user.email, city)
    return profile


def create_admin(db: Session, email: str, password: str, full_name: str = "Admin") -> models.User:
    """Create an admin account, or grant the admin role to an existing user."""
    email = normalize_email(email)
    user = get_user_by_email(db, email)
    if user is None:
        return create_user(db, email, password, "admin", full_name)
    if not user.has_role("admin"):
        user.roles.append(models.UserRole(role="admin"))
        db.commit()
        db.refresh(user)
    return user
