from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """Single conversation turn as sent by the chat client."""
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    """Request payload for chat API."""
    messages: List[ChatMessage]


class DebugInfo(BaseModel):
    """Non-production diagnostics attached to a chat response."""
    contextLength: int


class ChatResponse(BaseModel):
    """Response payload returned by the chat API."""
    response: str
    intents: List[str]
    debug: Optional[DebugInfo] = None


class OrderRecord(BaseModel):
    """Order status snapshot resolved for a single request."""
    orderId: str
    status: Literal["processing", "shipped", "delivered", "pending"]
    tracking: Optional[str] = None
    items: List[str] = Field(default_factory=list)
    estimatedDelivery: Optional[str] = None
