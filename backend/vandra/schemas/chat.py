from pydantic import BaseModel, Field
from typing import List, Literal, Optional

from vandra.schemas.alert import AlertResponse


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(min_length=1)


class ChatReply(BaseModel):
    message: str


class ExtractResponse(BaseModel):
    success: bool = True
    alert: AlertResponse
    origin_fallback_used: bool = False


class MonitorJobRequest(BaseModel):
    alert_id: Optional[int] = None
