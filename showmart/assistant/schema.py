"""
Request and response schemas for the shopping assistant API
"""
from typing import List, Literal, Optional

from pydantic import BaseModel


class AssistantMessage(BaseModel):
    """Message in chat history"""
    role: Literal["user", "assistant", "system"]
    content: str


class AssistantRequest(BaseModel):
    messages: List[AssistantMessage]


class SuggestedProduct(BaseModel):
    id: int
    name: str
    price: float
    image_url: Optional[str] = None
    stock_quantity: int


class AssistantResponse(BaseModel):
    reply: str
    products: List[SuggestedProduct] = []
    model: Optional[str] = None
