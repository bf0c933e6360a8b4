from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, Literal, Any

from vandra.schemas.flight import AirportResponse


class AlertResponse(BaseModel):
    id: int
    origin_code: str
    origin: Optional[AirportResponse] = None
    destination_code: Optional[str] = None
    destination_text: Optional[str] = None
    timing_text: Optional[str] = None
    price_text: Optional[str] = None
    max_price: Optional[float] = None
    min_discount: Optional[int] = None
    departure_after: Optional[datetime] = None
    departure_before: Optional[datetime] = None
    summary: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AlertUpdate(BaseModel):
    destination_code: Optional[str] = Field(default=None, min_length=3, max_length=3)
    destination_text: Optional[str] = None
    timing_text: Optional[str] = None
    price_text: Optional[str] = None
    max_price: Optional[float] = Field(default=None, gt=0)
    min_discount: Optional[int] = Field(default=None, ge=0, le=100)
    departure_after: Optional[datetime] = None
    departure_before: Optional[datetime] = None
    summary: Optional[str] = None
    # Users toggle between active and paused; expiry is not user-settable
    status: Optional[Literal["active", "paused"]] = None


class NotificationResponse(BaseModel):
    id: int
    alert_id: int
    channel: str
    status: str
    flight_data: dict[str, Any]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
