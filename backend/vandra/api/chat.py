import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vandra.api.errors import ApiError
from vandra.database import get_db
from vandra.models import User
from vandra.schemas import ChatRequest, ChatReply, ExtractResponse, AlertResponse
from vandra.services.ai_service import AIServiceError, chat_reply
from vandra.services.auth import get_current_user
from vandra.services.preference_extractor import create_alert_from_conversation

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=ChatReply)
async def chat(payload: ChatRequest):
    messages = [m.model_dump() for m in payload.messages]
    try:
        reply = await chat_reply(messages)
    except AIServiceError as e:
        logger.error(f"Chat reply failed: {e}")
        raise ApiError("API_ERROR", "Failed to get response", 502)
    return ChatReply(message=reply)


@router.post("/extract", response_model=ExtractResponse)
async def extract(
    payload: ChatRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    messages = [m.model_dump() for m in payload.messages]
    try:
        created = await create_alert_from_conversation(db, user.id, messages)
    except AIServiceError as e:
        logger.error(f"Preference extraction failed for user {user.id}: {e}")
        raise ApiError("API_ERROR", "Failed to save preferences", 502)

    return ExtractResponse(
        success=True,
        alert=AlertResponse.model_validate(created.alert),
        origin_fallback_used=created.origin_fallback_used,
    )
