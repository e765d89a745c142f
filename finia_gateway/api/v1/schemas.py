"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field


class InboundMessage(BaseModel):
    """Request body for POST /v1/webhook/message"""

    text: str = Field("", description="Message text as typed by the user")
    sender_address: str = Field(..., min_length=1, description="Channel address, e.g. whatsapp:+5511999999999")


class ReplyResponse(BaseModel):
    """Plain-text reply to send back through the channel"""

    reply: str
