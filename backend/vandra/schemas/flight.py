from pydantic import BaseModel, Field, field_validator
from datetime import date
from typing import Optional


class AirportResponse(BaseModel):
    code: str
    name: str
    city: str
    country: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timezone: Optional[str] = None

    class Config:
        from_attributes = True


class FlightSearchRequest(BaseModel):
    origin: str = Field(min_length=3, max_length=3)
    destination: Optional[str] = None
    departure_date: date
    return_date: Optional[date] = None
    max_price: Optional[float] = Field(default=None, gt=0)

    @field_validator("origin")
    @classmethod
    def upper_origin(cls, v: str) -> str:
        v = v.strip().upper()
        if not v.isalpha():
            raise ValueError("Airport code must contain only letters")
        return v

    @field_validator("destination")
    @classmethod
    def upper_destination(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError("Airport code must be 3 letters")
        return v
