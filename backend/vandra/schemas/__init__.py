from vandra.schemas.user import UserRegister, UserLogin, UserResponse, TokenResponse
from vandra.schemas.flight import AirportResponse, FlightSearchRequest
from vandra.schemas.alert import AlertResponse, AlertUpdate, NotificationResponse
from vandra.schemas.chat import ChatMessage, ChatRequest, ChatReply, ExtractResponse, MonitorJobRequest

__all__ = [
    "UserRegister", "UserLogin", "UserResponse", "TokenResponse",
    "AirportResponse", "FlightSearchRequest",
    "AlertResponse", "AlertUpdate", "NotificationResponse",
    "ChatMessage", "ChatRequest", "ChatReply", "ExtractResponse", "MonitorJobRequest",
]
