# showmart/routers/health.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from showmart.core.redis import health_check_redis
from showmart.database.database import get_db

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health(db: Session = Depends(get_db)):
    """Database round trip."""
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        raise HTTPException(status_code=503, detail=f"Database error: {str(e)}") from e
    return {"ok": True, "database": "healthy"}


@router.get("/redis")
async def redis_health():
    result = await health_check_redis()
    if result["status"] != "healthy":
        raise HTTPException(status_code=503, detail=result)
    return {"ok": True, **result}
