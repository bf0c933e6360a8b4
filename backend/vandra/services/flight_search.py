"""
Flight search over the Amadeus Flight Offers Search API.

Offers are normalized into Flight objects that the deal detector and the
web layer share.
"""
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, List, Optional, Union
from urllib.parse import urlencode

from vandra.config import get_settings
from vandra.services.amadeus_client import AmadeusClient, get_amadeus_client

logger = logging.getLogger(__name__)

FLIGHT_OFFERS_ENDPOINT = "/v2/shopping/flight-offers"
MAX_OFFERS_PER_SEARCH = 50

AIRLINE_NAMES: dict[str, str] = {
    "AA": "American Airlines",
    "UA": "United Airlines",
    "DL": "Delta Air Lines",
    "WN": "Southwest Airlines",
    "B6": "JetBlue Airways",
    "AS": "Alaska Airlines",
    "NK": "Spirit Airlines",
    "F9": "Frontier Airlines",
    "G4": "Allegiant Air",
    "BA": "British Airways",
    "LH": "Lufthansa",
    "AF": "Air France",
    "KL": "KLM",
    "EK": "Emirates",
    "QR": "Qatar Airways",
    "SQ": "Singapore Airlines",
    "CX": "Cathay Pacific",
    "JL": "Japan Airlines",
    "NH": "ANA",
    "AC": "Air Canada",
    "QF": "Qantas",
    "VS": "Virgin Atlantic",
    "IB": "Iberia",
    "AZ": "ITA Airways",
    "TK": "Turkish Airlines",
    "EY": "Etihad Airways",
    "LX": "Swiss",
    "OS": "Austrian",
    "SK": "SAS",
    "AY": "Finnair",
    "TP": "TAP Portugal",
}

# Popular international destinations by US departure airport
POPULAR_ROUTES: dict[str, list[str]] = {
    # West Coast
    "LAX": ["NRT", "HND", "CDG", "LHR", "CUN", "FCO", "BCN", "HNL", "SYD", "AKL"],
    "SFO": ["NRT", "HND", "CDG", "LHR", "CUN", "FCO", "BCN", "HNL", "TPE", "ICN"],
    "SEA": ["NRT", "HND", "CDG", "LHR", "CUN", "ANC", "HNL", "ICN", "YVR", "MEX"],
    # Mountain
    "SLC": ["CUN", "MEX", "LHR", "CDG", "AMS", "FCO", "HNL", "NRT", "PVR", "SJD"],
    "DEN": ["CUN", "MEX", "LHR", "CDG", "AMS", "FCO", "HNL", "NRT", "PVR", "SJD"],
    "PHX": ["CUN", "MEX", "LHR", "CDG", "SJD", "PVR", "GDL", "HNL", "NRT", "FCO"],
    # Central
    "ORD": ["LHR", "CDG", "FRA", "DUB", "CUN", "FCO", "BCN", "AMS", "NRT", "ICN"],
    "DFW": ["LHR", "CDG", "CUN", "MEX", "FCO", "NRT", "HKG", "GRU", "EZE", "SCL"],
    # East Coast
    "JFK": ["LHR", "CDG", "FCO", "BCN", "AMS", "DUB", "NRT", "HKG", "TLV", "ATH"],
    "BOS": ["LHR", "CDG", "DUB", "FCO", "BCN", "AMS", "LIS", "KEF", "NRT", "CUN"],
    "MIA": ["LHR", "CDG", "MAD", "BCN", "GRU", "EZE", "BOG", "SCL", "CUN", "SJU"],
    "ATL": ["LHR", "CDG", "CUN", "MEX", "FCO", "AMS", "DUB", "NRT", "SJU", "GRU"],
}

DEFAULT_POPULAR_DESTINATIONS = ["LHR", "CDG", "CUN", "FCO", "NRT", "BCN", "AMS", "MEX", "HNL", "DUB"]

_ISO_DURATION_RE = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?")

DateLike = Union[date, datetime, str]


@dataclass
class Flight:
    id: str
    price: float
    currency: str
    origin: str
    destination: str
    departure_date: datetime
    airline: str
    stops: int = 0
    duration_minutes: int = 0
    booking_url: str = ""
    airline_name: Optional[str] = None
    return_date: Optional[datetime] = None
    raw_offer: Optional[dict] = field(default=None, repr=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "price": self.price,
            "currency": self.currency,
            "origin": self.origin,
            "destination": self.destination,
            "departure_date": self.departure_date.isoformat(),
            "return_date": self.return_date.isoformat() if self.return_date else None,
            "airline": self.airline,
            "airline_name": self.airline_name,
            "stops": self.stops,
            "duration": self.duration_minutes,
            "booking_url": self.booking_url,
        }


def parse_iso_duration(value: Optional[str]) -> int:
    """Convert an ISO 8601 duration like "PT12H30M" into minutes (0 when unparseable)."""
    if not value:
        return 0
    match = _ISO_DURATION_RE.match(value)
    if not match:
        return 0
    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    return hours * 60 + minutes


def _as_date_str(value: DateLike) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


def generate_booking_url(offer: dict) -> str:
    """Deep link to a Google Flights search for the offer's route and dates."""
    itineraries = offer["itineraries"]
    outbound = itineraries[0]
    segments = outbound["segments"]
    origin = segments[0]["departure"]["iataCode"]
    destination = segments[-1]["arrival"]["iataCode"]
    depart_date = segments[0]["departure"]["at"].split("T")[0]

    flight_path = f"/{origin}.{destination}.{depart_date}"
    if len(itineraries) > 1:
        return_date = itineraries[1]["segments"][0]["departure"]["at"].split("T")[0]
        flight_path += f"*{destination}.{origin}.{return_date}"

    query = urlencode({"hl": "en", "gl": "us", "curr": "USD"})
    return f"https://www.google.com/travel/flights{flight_path}?{query}"


def normalize_flight_offer(offer: dict, carriers: Optional[dict[str, str]] = None) -> Flight:
    itineraries = offer["itineraries"]
    outbound = itineraries[0]
    inbound = itineraries[1] if len(itineraries) > 1 else None
    first_segment = outbound["segments"][0]
    last_segment = outbound["segments"][-1]

    validating = offer.get("validatingAirlineCodes") or []
    airline_code = validating[0] if validating else first_segment["carrierCode"]
    airline_name = (carriers or {}).get(airline_code) or AIRLINE_NAMES.get(airline_code) or airline_code

    price = offer.get("price", {})

    return Flight(
        id=str(offer.get("id", "")),
        price=float(price.get("grandTotal") or price.get("total")),
        currency=price.get("currency", "USD"),
        origin=first_segment["departure"]["iataCode"],
        destination=last_segment["arrival"]["iataCode"],
        departure_date=_parse_datetime(first_segment["departure"]["at"]),
        return_date=_parse_datetime(inbound["segments"][0]["departure"]["at"]) if inbound else None,
        airline=airline_code,
        airline_name=airline_name,
        stops=len(outbound["segments"]) - 1,
        duration_minutes=parse_iso_duration(outbound.get("duration")),
        booking_url=generate_booking_url(offer),
        raw_offer=offer,
    )


class FlightSearchService:
    """Runs offer searches through an AmadeusClient and returns Flights."""

    def __init__(self, client: Optional[AmadeusClient] = None, currency: Optional[str] = None):
        self.client = client or get_amadeus_client()
        self.currency = currency or get_settings().default_currency

    async def search_flights(
        self,
        origin: str,
        destination: Optional[str],
        departure_date: DateLike,
        return_date: Optional[DateLike] = None,
        max_price: Optional[float] = None,
        adults: int = 1,
    ) -> List[Flight]:
        # The provider requires a destination
        if not destination:
            logger.info(f"No destination specified for {origin}, skipping search")
            return []

        params: dict[str, Any] = {
            "originLocationCode": origin,
            "destinationLocationCode": destination,
            "departureDate": _as_date_str(departure_date),
            "adults": adults or 1,
            "currencyCode": self.currency,
            "max": MAX_OFFERS_PER_SEARCH,
        }
        if return_date:
            params["returnDate"] = _as_date_str(return_date)
        if max_price:
            params["maxPrice"] = int(max_price)

        data = await self.client.request_with_rate_limit(FLIGHT_OFFERS_ENDPOINT, params=params)

        carriers = (data.get("dictionaries") or {}).get("carriers")
        flights = []
        for offer in data.get("data", []):
            try:
                flights.append(normalize_flight_offer(offer, carriers))
            except (KeyError, IndexError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed offer {offer.get('id')} for {origin}-{destination}: {e}")
        return flights

    async def search_multiple_destinations(
        self,
        origin: str,
        destinations: List[str],
        departure_date: DateLike,
        max_price: Optional[float] = None,
    ) -> List[Flight]:
        """Search each destination in turn; one failing destination never stops the rest."""
        all_flights: List[Flight] = []

        for destination in destinations:
            try:
                flights = await self.search_flights(
                    origin=origin,
                    destination=destination,
                    departure_date=departure_date,
                    max_price=max_price,
                )
                all_flights.extend(flights)
            except Exception as e:
                logger.error(f"Failed to search {origin} -> {destination}: {e}")

        return sorted(all_flights, key=lambda f: f.price)


def get_popular_destinations(origin: str) -> List[str]:
    return list(POPULAR_ROUTES.get((origin or "").upper(), DEFAULT_POPULAR_DESTINATIONS))


def format_duration(minutes: int) -> str:
    hours, mins = divmod(int(minutes or 0), 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "JPY": "¥", "CAD": "CA$", "AUD": "A$", "MXN": "MX$"}


def format_price(price: float, currency: str = "USD") -> str:
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), f"{currency.upper()} ")
    return f"{symbol}{math.floor(price + 0.5):,}"
