from typing import Optional
from dataclasses import dataclass, asdict
import logging
import re

from sqlalchemy.orm import Session

from vandra.config import get_settings
from vandra.models.airport import Airport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AirportInfo:
    code: str
    name: str
    city: str
    country: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timezone: Optional[str] = None


SEED_AIRPORTS = [
    # Major US airports
    AirportInfo('ATL', 'Hartsfield-Jackson Atlanta International Airport', 'Atlanta', 'USA', 33.6407, -84.4277, 'America/New_York'),
    AirportInfo('LAX', 'Los Angeles International Airport', 'Los Angeles', 'USA', 33.9425, -118.4081, 'America/Los_Angeles'),
    AirportInfo('ORD', "O'Hare International Airport", 'Chicago', 'USA', 41.9742, -87.9073, 'America/Chicago'),
    AirportInfo('DFW', 'Dallas/Fort Worth International Airport', 'Dallas', 'USA', 32.8998, -97.0403, 'America/Chicago'),
    AirportInfo('DEN', 'Denver International Airport', 'Denver', 'USA', 39.8561, -104.6737, 'America/Denver'),
    AirportInfo('JFK', 'John F. Kennedy International Airport', 'New York', 'USA', 40.6413, -73.7781, 'America/New_York'),
    AirportInfo('SFO', 'San Francisco International Airport', 'San Francisco', 'USA', 37.6213, -122.3790, 'America/Los_Angeles'),
    AirportInfo('SEA', 'Seattle-Tacoma International Airport', 'Seattle', 'USA', 47.4502, -122.3088, 'America/Los_Angeles'),
    AirportInfo('LAS', 'Harry Reid International Airport', 'Las Vegas', 'USA', 36.0840, -115.1537, 'America/Los_Angeles'),
    AirportInfo('MCO', 'Orlando International Airport', 'Orlando', 'USA', 28.4312, -81.3081, 'America/New_York'),
    AirportInfo('MIA', 'Miami International Airport', 'Miami', 'USA', 25.7959, -80.2870, 'America/New_York'),
    AirportInfo('PHX', 'Phoenix Sky Harbor International Airport', 'Phoenix', 'USA', 33.4373, -112.0078, 'America/Phoenix'),
    AirportInfo('IAH', 'George Bush Intercontinental Airport', 'Houston', 'USA', 29.9902, -95.3368, 'America/Chicago'),
    AirportInfo('BOS', 'Boston Logan International Airport', 'Boston', 'USA', 42.3656, -71.0096, 'America/New_York'),
    AirportInfo('MSP', 'Minneapolis-Saint Paul International Airport', 'Minneapolis', 'USA', 44.8848, -93.2223, 'America/Chicago'),
    AirportInfo('DTW', 'Detroit Metropolitan Wayne County Airport', 'Detroit', 'USA', 42.2162, -83.3554, 'America/Detroit'),
    AirportInfo('PHL', 'Philadelphia International Airport', 'Philadelphia', 'USA', 39.8729, -75.2437, 'America/New_York'),
    AirportInfo('LGA', 'LaGuardia Airport', 'New York', 'USA', 40.7769, -73.8740, 'America/New_York'),
    AirportInfo('EWR', 'Newark Liberty International Airport', 'Newark', 'USA', 40.6895, -74.1745, 'America/New_York'),
    AirportInfo('SLC', 'Salt Lake City International Airport', 'Salt Lake City', 'USA', 40.7899, -111.9791, 'America/Denver'),
    AirportInfo('DCA', 'Ronald Reagan Washington National Airport', 'Washington', 'USA', 38.8512, -77.0402, 'America/New_York'),
    AirportInfo('IAD', 'Washington Dulles International Airport', 'Washington', 'USA', 38.9531, -77.4565, 'America/New_York'),
    AirportInfo('SAN', 'San Diego International Airport', 'San Diego', 'USA', 32.7338, -117.1933, 'America/Los_Angeles'),
    AirportInfo('TPA', 'Tampa International Airport', 'Tampa', 'USA', 27.9756, -82.5333, 'America/New_York'),
    AirportInfo('PDX', 'Portland International Airport', 'Portland', 'USA', 45.5898, -122.5951, 'America/Los_Angeles'),
    # International destinations
    AirportInfo('LHR', 'London Heathrow Airport', 'London', 'UK', 51.4700, -0.4543, 'Europe/London'),
    AirportInfo('CDG', 'Charles de Gaulle Airport', 'Paris', 'France', 49.0097, 2.5479, 'Europe/Paris'),
    AirportInfo('FRA', 'Frankfurt Airport', 'Frankfurt', 'Germany', 50.0379, 8.5622, 'Europe/Berlin'),
    AirportInfo('AMS', 'Amsterdam Airport Schiphol', 'Amsterdam', 'Netherlands', 52.3105, 4.7683, 'Europe/Amsterdam'),
    AirportInfo('NRT', 'Narita International Airport', 'Tokyo', 'Japan', 35.7720, 140.3929, 'Asia/Tokyo'),
    AirportInfo('HND', 'Tokyo Haneda Airport', 'Tokyo', 'Japan', 35.5494, 139.7798, 'Asia/Tokyo'),
    AirportInfo('ICN', 'Incheon International Airport', 'Seoul', 'South Korea', 37.4602, 126.4407, 'Asia/Seoul'),
    AirportInfo('SIN', 'Singapore Changi Airport', 'Singapore', 'Singapore', 1.3644, 103.9915, 'Asia/Singapore'),
    AirportInfo('HKG', 'Hong Kong International Airport', 'Hong Kong', 'Hong Kong', 22.3080, 113.9185, 'Asia/Hong_Kong'),
    AirportInfo('SYD', 'Sydney Kingsford Smith Airport', 'Sydney', 'Australia', -33.9399, 151.1753, 'Australia/Sydney'),
    AirportInfo('MEX', 'Mexico City International Airport', 'Mexico City', 'Mexico', 19.4363, -99.0721, 'America/Mexico_City'),
    AirportInfo('CUN', 'Cancún International Airport', 'Cancún', 'Mexico', 21.0365, -86.8771, 'America/Cancun'),
    AirportInfo('GRU', 'São Paulo–Guarulhos International Airport', 'São Paulo', 'Brazil', -23.4356, -46.4731, 'America/Sao_Paulo'),
    AirportInfo('DXB', 'Dubai International Airport', 'Dubai', 'UAE', 25.2532, 55.3657, 'Asia/Dubai'),
    AirportInfo('FCO', 'Leonardo da Vinci–Fiumicino Airport', 'Rome', 'Italy', 41.8003, 12.2389, 'Europe/Rome'),
    AirportInfo('BCN', 'Barcelona–El Prat Airport', 'Barcelona', 'Spain', 41.2974, 2.0833, 'Europe/Madrid'),
    AirportInfo('MAD', 'Adolfo Suárez Madrid–Barajas Airport', 'Madrid', 'Spain', 40.4983, -3.5676, 'Europe/Madrid'),
]

AIRPORTS: dict[str, AirportInfo] = {a.code: a for a in SEED_AIRPORTS}

# Spoken names people use for their home airport.
CITY_TO_CODE: dict[str, str] = {
    "salt lake": "SLC",
    "salt lake city": "SLC",
    "slc": "SLC",
    "denver": "DEN",
    "new york": "JFK",
    "nyc": "JFK",
    "los angeles": "LAX",
    "la": "LAX",
    "san francisco": "SFO",
    "sf": "SFO",
    "chicago": "ORD",
    "seattle": "SEA",
    "portland": "PDX",
    "austin": "AUS",
    "miami": "MIA",
    "boston": "BOS",
    "phoenix": "PHX",
    "atlanta": "ATL",
    "dallas": "DFW",
    "houston": "IAH",
    "las vegas": "LAS",
    "vegas": "LAS",
    "washington": "DCA",
    "dc": "DCA",
    "philadelphia": "PHL",
    "philly": "PHL",
    "san diego": "SAN",
    "minneapolis": "MSP",
    "detroit": "DTW",
    "orlando": "MCO",
    "tampa": "TPA",
    "nashville": "BNA",
    "new orleans": "MSY",
    "honolulu": "HNL",
    "hawaii": "HNL",
    "anchorage": "ANC",
    "alaska": "ANC",
}


def find_city_name(text: str) -> Optional[str]:
    """Longest CITY_TO_CODE key that appears in the text as whole words."""
    lowered = text.lower()
    for city in sorted(CITY_TO_CODE, key=len, reverse=True):
        if re.search(rf"\b{re.escape(city)}\b", lowered):
            return city
    return None


def resolve_airport_code(value: Optional[str]) -> Optional[str]:
    """
    Turn a free-text home airport ("Salt Lake", "slc", "Denver, CO") into an IATA code.

    Tries, in order: an exact 3-letter code, an exact city name, a city name
    appearing as whole words, then a partial name of at least four letters
    ("salt" for "salt lake"). Returns None when nothing matches.
    """
    if not value:
        return None

    normalized = value.lower().strip()

    if len(normalized) == 3 and normalized.isalpha():
        return normalized.upper()

    if normalized in CITY_TO_CODE:
        return CITY_TO_CODE[normalized]

    city = find_city_name(normalized)
    if city:
        return CITY_TO_CODE[city]

    if len(normalized) >= 4:
        for city, code in CITY_TO_CODE.items():
            if normalized in city:
                return code

    return None


def normalize_airport_code(value: Optional[str], fallback: Optional[str] = None) -> str:
    """Like resolve_airport_code, but unresolved input becomes the fallback code."""
    return resolve_airport_code(value) or fallback or get_settings().fallback_origin_code


def seed_airports(db: Session) -> int:
    """Upsert the reference airports. Returns the number of rows written."""
    count = 0
    for info in SEED_AIRPORTS:
        existing = db.query(Airport).filter(Airport.code == info.code).first()
        if existing:
            for field, value in asdict(info).items():
                setattr(existing, field, value)
        else:
            db.add(Airport(**asdict(info)))
        count += 1
    db.commit()
    logger.info(f"Seeded {count} airports")
    return count


def get_airport(db: Session, code: str) -> Optional[Airport]:
    if not code:
        return None
    return db.query(Airport).filter(Airport.code == code.strip().upper()).first()


class AirportService:

    @staticmethod
    def validate(code: str) -> tuple[bool, Optional[str]]:
        if not code:
            return False, "Airport code is required"

        code = code.strip().upper()

        if len(code) != 3:
            return False, f"Airport code must be 3 characters, got '{code}'"

        if not code.isalpha():
            return False, f"Airport code must contain only letters, got '{code}'"

        return True, None
