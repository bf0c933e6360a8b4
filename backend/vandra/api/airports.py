from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vandra.api.errors import ApiError
from vandra.database import get_db
from vandra.schemas import AirportResponse
from vandra.services.airports import AirportService, get_airport

router = APIRouter()


@router.get("/{code}", response_model=AirportResponse)
async def airport_detail(code: str, db: Session = Depends(get_db)):
    valid, error = AirportService.validate(code)
    if not valid:
        raise ApiError("VALIDATION_ERROR", error, 400)

    airport = get_airport(db, code)
    if not airport:
        raise ApiError("NOT_FOUND", f"Airport {code.upper()} not found", 404)
    return airport
