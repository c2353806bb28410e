# showmart/auth.py
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from showmart.core.config import ACCESS_TOKEN_EXPIRE_MINUTES, SECRET_KEY
from showmart.database import models
from showmart.database.database import get_db

ALGORITHM = "HS256"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# =====================================
# Tokens
# =====================================
def create_access_token(data: dict, expires_minutes: Optional[int] = None) -> str:
    """Sign ``data`` (``sub`` = email) with an ``exp`` claim."""
    claims = dict(data)
    claims["exp"] = datetime.utcnow() + timedelta(minutes=expires_minutes or ACCESS_TOKEN_EXPIRE_MINUTES)
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise _unauthorized("Invalid or expired token")


def is_token_revoked(db: Session, token: str) -> bool:
    return db.query(models.BlacklistedToken.id).filter(models.BlacklistedToken.token == token).first() is not None


# =====================================
# Dependencies
# =====================================
def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> models.User:
    if is_token_revoked(db, token):
        raise _unauthorized("Token has been revoked (logged out)")

    email = decode_access_token(token).get("sub")
    if not email:
        raise _unauthorized("Invalid credentials")

    user = db.query(models.User).filter(models.User.email == email).first()
    if user is None:
        raise _unauthorized("User not found")
    return user


def require_role(*roles: str):
    """Allow the request when the user holds at least one of ``roles``."""
    def checker(current_user: models.User = Depends(get_current_user)) -> models.User:
        if not any(current_user.has_role(role) for role in roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access forbidden: {' or '.join(roles)} role required",
            )
        return current_user
    return checker
