import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vandra.models.flight_alert import FlightAlert
from vandra.models.price_history import PriceHistory
from vandra.services.flight_search import Flight

logger = logging.getLogger(__name__)


RATING_THRESHOLDS = {
    "great": 30,
    "good": 20,
}

# Minimum discount for a flight to count as a deal
MIN_DEAL_THRESHOLD = 15

# Without history, a price this far under the budget reads as "good"
NO_HISTORY_BUDGET_RATIO = 0.8
NO_HISTORY_ESTIMATED_DISCOUNT = 20

# A price this far under the budget is a deal regardless of history
BUDGET_DEAL_RATIO = 0.85

HISTORY_TRAVEL_WINDOW_DAYS = 7
HISTORY_MAX_AGE_DAYS = 30
MIN_HISTORY_SAMPLES = 3


@dataclass
class DealResult:
    flight: Flight
    average_price: float
    discount_percent: int
    is_good_deal: bool
    price_rating: str  # great | good | average | high
    has_history: bool = False

    def to_dict(self) -> dict:
        return {
            "flight": self.flight.to_dict(),
            "average_price": self.average_price,
            "discount_percent": self.discount_percent,
            "is_good_deal": self.is_good_deal,
            "price_rating": self.price_rating,
            "has_history": self.has_history,
        }


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_discount(average_price: float, price: float) -> int:
    if average_price <= 0:
        return 0
    return _round_half_up((average_price - price) / average_price * 100)


def rate_discount(discount_percent: int) -> str:
    if discount_percent >= RATING_THRESHOLDS["great"]:
        return "great"
    elif discount_percent >= RATING_THRESHOLDS["good"]:
        return "good"
    elif discount_percent < 0:
        return "high"
    return "average"


def get_average_price(
    db: Session,
    origin: str,
    destination: str,
    travel_date: datetime,
    now: Optional[datetime] = None,
) -> Optional[float]:
    """
    Average observed price for the route within a week of the travel date,
    counting only observations from the last 30 days.

    Returns None when fewer than MIN_HISTORY_SAMPLES observations exist.
    """
    now = now or datetime.utcnow()
    window = timedelta(days=HISTORY_TRAVEL_WINDOW_DAYS)

    count, average = db.query(
        func.count(PriceHistory.id),
        func.avg(PriceHistory.price),
    ).filter(
        PriceHistory.origin == origin,
        PriceHistory.destination == destination,
        PriceHistory.travel_date >= travel_date - window,
        PriceHistory.travel_date <= travel_date + window,
        PriceHistory.recorded_at >= now - timedelta(days=HISTORY_MAX_AGE_DAYS),
    ).one()

    if count < MIN_HISTORY_SAMPLES or average is None:
        return None

    return float(average)


def matches_alert_criteria(flight: Flight, alert: FlightAlert) -> bool:
    if alert.destination_code and flight.destination != alert.destination_code:
        return False

    if alert.max_price and flight.price > float(alert.max_price):
        return False

    if alert.departure_after and flight.departure_date < alert.departure_after:
        return False

    if alert.departure_before and flight.departure_date > alert.departure_before:
        return False

    return True


def evaluate_flight(
    flight: Flight,
    alert: FlightAlert,
    average_price: Optional[float],
) -> DealResult:
    max_price = float(alert.max_price) if alert.max_price else None

    discount_percent = 0
    price_rating = "average"

    if average_price and average_price > 0:
        discount_percent = calculate_discount(average_price, flight.price)
        price_rating = rate_discount(discount_percent)
    elif max_price and flight.price <= max_price * NO_HISTORY_BUDGET_RATIO:
        price_rating = "good"
        discount_percent = NO_HISTORY_ESTIMATED_DISCOUNT

    is_good_deal = discount_percent >= MIN_DEAL_THRESHOLD or bool(
        max_price and flight.price <= max_price * BUDGET_DEAL_RATIO
    )

    return DealResult(
        flight=flight,
        average_price=average_price or flight.price,
        discount_percent=discount_percent,
        is_good_deal=is_good_deal,
        price_rating=price_rating,
        has_history=bool(average_price),
    )


def detect_deals(
    db: Session,
    flights: List[Flight],
    alert: FlightAlert,
    now: Optional[datetime] = None,
) -> List[DealResult]:
    """Rate every flight that fits the alert, best discount first."""
    deals = []

    for flight in flights:
        if not matches_alert_criteria(flight, alert):
            continue

        average_price = get_average_price(
            db,
            flight.origin,
            flight.destination,
            flight.departure_date,
            now=now,
        )
        deals.append(evaluate_flight(flight, alert, average_price))

    # sorted() is stable, so equal discounts keep their input order
    return sorted(deals, key=lambda d: d.discount_percent, reverse=True)


def filter_good_deals(deals: List[DealResult]) -> List[DealResult]:
    return [d for d in deals if d.is_good_deal]


def _price_row(flight: Flight, recorded_at: datetime) -> PriceHistory:
    return PriceHistory(
        origin=flight.origin,
        destination=flight.destination,
        travel_date=flight.departure_date,
        price=Decimal(str(round(flight.price, 2))),
        airline=flight.airline,
        recorded_at=recorded_at,
    )


def record_prices(db: Session, flights: List[Flight], recorded_at: Optional[datetime] = None) -> int:
    """
    Store observed prices for future averaging. Duplicate observations are
    skipped. Returns the number of rows written.
    """
    if not flights:
        return 0

    recorded_at = recorded_at or datetime.utcnow()

    unique_flights = []
    seen = set()
    for flight in flights:
        key = (
            flight.origin,
            flight.destination,
            flight.departure_date,
            round(flight.price, 2),
            flight.airline,
        )
        if key in seen:
            logger.debug(f"Skipping duplicate price {key}")
            continue
        seen.add(key)
        unique_flights.append(flight)

    try:
        db.add_all([_price_row(f, recorded_at) for f in unique_flights])
        db.commit()
        return len(unique_flights)
    except IntegrityError:
        db.rollback()

    # Some rows already exist; insert one at a time and skip the conflicts
    written = 0
    for flight in unique_flights:
        db.add(_price_row(flight, recorded_at))
        try:
            db.commit()
            written += 1
        except IntegrityError:
            db.rollback()
            logger.debug(f"Skipping duplicate price for {flight.origin}-{flight.destination}")
    return written
