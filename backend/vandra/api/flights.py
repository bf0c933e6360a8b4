import logging

from fastapi import APIRouter, Depends

from vandra.api.errors import ApiError
from vandra.models import User
from vandra.schemas import FlightSearchRequest
from vandra.services.amadeus_client import AmadeusClient, ProviderError, get_amadeus_client
from vandra.services.auth import get_current_user
from vandra.services.flight_search import FlightSearchService, format_duration, format_price

logger = logging.getLogger(__name__)

router = APIRouter()


def get_search_service(client: AmadeusClient = Depends(get_amadeus_client)) -> FlightSearchService:
    return FlightSearchService(client)


@router.post("/search")
async def search_flights(
    payload: FlightSearchRequest,
    user: User = Depends(get_current_user),
    service: FlightSearchService = Depends(get_search_service),
):
    if not payload.destination:
        raise ApiError("VALIDATION_ERROR", "Destination is required", 400)

    logger.info(f"Searching flights {payload.origin} -> {payload.destination} on {payload.departure_date}")

    try:
        flights = await service.search_flights(
            origin=payload.origin,
            destination=payload.destination,
            departure_date=payload.departure_date,
            return_date=payload.return_date,
            max_price=payload.max_price,
        )
    except ProviderError as e:
        logger.error(f"Flight search failed: {e!r}")
        raise ApiError("API_ERROR", "Flight search failed. Please try again.", 502)

    data = []
    for flight in flights:
        item = flight.to_dict()
        item["price_formatted"] = format_price(flight.price, flight.currency)
        item["duration_formatted"] = format_duration(flight.duration_minutes)
        data.append(item)

    return {"data": data, "count": len(data)}
