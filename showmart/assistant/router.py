"""
FastAPI routes for the shopping assistant
"""
import logging
from collections import defaultdict
from time import time
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from showmart.assistant import config
from showmart.assistant.schema import AssistantRequest, AssistantResponse
from showmart.assistant.service import chat as run_chat
from showmart.auth import get_current_user
from showmart.database import models
from showmart.database.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assistant", tags=["Assistant"])

# Simple in-memory rate limiting per user
_rate_limit_store: Dict[int, List[float]] = defaultdict(list)


def check_rate_limit(user_id: int) -> bool:
    now = time()
    recent = [t for t in _rate_limit_store[user_id] if now - t < 60]
    if len(recent) >= config.MAX_REQUESTS_PER_MINUTE:
        _rate_limit_store[user_id] = recent
        return False
    recent.append(now)
    _rate_limit_store[user_id] = recent
    return True


@router.get("/health")
def assistant_health() -> Dict[str, object]:
    return {"ok": True, "llm_enabled": config.ASSISTANT_ENABLED, "model": config.LLM_MODEL}


@router.post("/chat", response_model=AssistantResponse)
def chat(
    request: AssistantRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    if not check_rate_limit(current_user.id):
        raise HTTPException(
            status_code=429,
            detail="Rate limit exceeded. Please wait a minute before trying again.",
            headers={"Retry-After": "60"},
        )
    try:
        return run_chat(db, request.messages)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Assistant chat failed: %s", e)
        raise HTTPException(status_code=500, detail="Internal server error")
