"""
OpenAI-backed shopping assistant.

The last user message is matched against in-stock retailer products; the
matches are handed to the model as context and returned to the caller so the
front end can render them next to the reply.
"""
import logging
import re
from typing import List, Optional

from fastapi import HTTPException, status
from openai import APIConnectionError, APIError, OpenAI, RateLimitError
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from showmart.assistant import config
from showmart.assistant.schema import AssistantMessage
from showmart.database import models
from showmart.services.catalog_service import sellers_with_role

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are ShowMart's shopping assistant. Help customers find products from local retailers. "
    "Only recommend products from the list you are given, mention prices in rupees, "
    "and keep answers to 2-4 sentences."
)

_STOPWORDS = {
    "the", "and", "for", "you", "have", "any", "with", "want", "need", "show", "some",
    "can", "please", "looking", "buy", "get", "what", "are", "there", "me", "find",
}

_client: Optional[OpenAI] = None


def get_openai_client() -> OpenAI:
    """Get or create the OpenAI client"""
    global _client
    if _client is None:
        _client = OpenAI(api_key=config.OPENAI_API_KEY)
    return _client


def _keywords(text: str) -> List[str]:
    words = re.findall(r"[a-z0-9]+", text.lower())
    return [w for w in dict.fromkeys(words) if len(w) >= 3 and w not in _STOPWORDS]


def find_products(db: Session, text: str, limit: int = config.MAX_PRODUCT_SUGGESTIONS) -> List[models.Product]:
    words = _keywords(text)
    if not words:
        return []
    clauses = []
    for word in words:
        pattern = f"%{word}%"
        clauses.append(func.lower(models.Product.name).like(pattern))
        clauses.append(func.lower(models.Product.description).like(pattern))
    return (
        db.query(models.Product)
        .filter(
            models.Product.seller_id.in_(sellers_with_role("retailer")),
            models.Product.stock_quantity > 0,
            or_(*clauses),
        )
        .order_by(models.Product.price, models.Product.id)
        .limit(limit)
        .all()
    )


def _product_context(products: List[models.Product]) -> str:
    if not products:
        return "No matching products are currently in stock."
    lines = [f"- {p.name}: Rs. {p.price:.2f} ({p.stock_quantity} in stock)" for p in products]
    return "Matching products:\n" + "\n".join(lines)


def _template_reply(query: str, products: List[models.Product]) -> str:
    if not products:
        return f"I couldn't find anything in stock matching \"{query}\". Try a different product name."
    names = ", ".join(p.name for p in products[:3])
    return f"I found {len(products)} product(s) that match \"{query}\", including {names}."


def chat(db: Session, messages: List[AssistantMessage]) -> dict:
    if not messages:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No messages provided")
    last_user = next((m for m in reversed(messages) if m.role == "user" and m.content.strip()), None)
    if last_user is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No user message provided")

    query = last_user.content.strip()
    products = find_products(db, query)
    suggestions = [
        {"id": p.id, "name": p.name, "price": p.price, "image_url": p.image_url, "stock_quantity": p.stock_quantity}
        for p in products
    ]

    if not config.ASSISTANT_ENABLED:
        return {"reply": _template_reply(query, products), "products": suggestions, "model": None}

    history = [{"role": m.role, "content": m.content} for m in messages if m.role != "system"]
    payload = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "system", "content": _product_context(products)},
    ] + history[-config.MAX_HISTORY_MESSAGES:]

    try:
        response = get_openai_client().chat.completions.create(
            model=config.LLM_MODEL,
            messages=payload,
            temperature=config.LLM_TEMPERATURE,
            max_tokens=config.MAX_REPLY_TOKENS,
        )
    except RateLimitError as e:
        logger.warning("OpenAI rate limit: %s", e)
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Rate limit exceeded, please try again later")
    except (APIConnectionError, APIError) as e:
        logger.error("OpenAI error: %s", str(e)[:200])
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="AI service error, please try again")

    reply = response.choices[0].message.content or ""
    return {"reply": reply.strip(), "products": suggestions, "model": config.LLM_MODEL}
