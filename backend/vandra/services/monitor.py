"""
Alert monitoring: turns each active FlightAlert into provider searches,
records what was seen, and reports the deals worth surfacing.

Everything runs sequentially. A failing destination is skipped inside the
search service and a failing alert is reported in its own result, so one bad
unit of work never stops a batch.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Awaitable, Callable, List, Optional

from sqlalchemy.orm import Session

from vandra.config import get_settings
from vandra.models.flight_alert import FlightAlert, AlertStatus
from vandra.models.flight_notification import FlightNotification, NotificationChannel
from vandra.services.deals import DealResult, detect_deals, filter_good_deals, record_prices
from vandra.services.destinations import get_destinations_for_alert
from vandra.services.flight_search import Flight, FlightSearchService

logger = logging.getLogger(__name__)

MAX_SEARCH_DATES = 5
SEARCH_DATE_STEP_WEEKS = 2
DEFAULT_WINDOW_WEEKS = (2, 8)

# Single-alert batches use a shorter pause than the full sweep
ALERT_BATCH_DELAY_SECONDS = 2.0


@dataclass
class MonitoringResult:
    alert_id: int
    searched_routes: int = 0
    flights_found: int = 0
    deals_found: int = 0
    good_deals: List[DealResult] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "alert_id": self.alert_id,
            "searched_routes": self.searched_routes,
            "flights_found": self.flights_found,
            "deals_found": self.deals_found,
            "good_deals": [d.to_dict() for d in self.good_deals],
            "error": self.error,
        }


@dataclass
class BatchSummary:
    processed: int = 0
    total_deals: int = 0
    errors: int = 0
    results: List[MonitoringResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "processed": self.processed,
            "total_deals": self.total_deals,
            "errors": self.errors,
        }


def _weeks_until(target: date, today: date) -> int:
    return math.ceil((target - today).days / 7)


def _season_window(
    today: date,
    season_start_month: int,
    window_weeks: int,
) -> Optional[tuple[int, int]]:
    """Window starting at the season's first day, if the season is still ahead this year."""
    if today.month >= season_start_month:
        return None
    start = max(2, _weeks_until(date(today.year, season_start_month, 1), today))
    return start, start + window_weeks


def get_search_window(alert: FlightAlert, today: Optional[date] = None) -> tuple[int, int]:
    """
    Work out how many weeks out to start and stop searching.

    Keywords in the alert's timing text shift the default 2-8 week window;
    explicit departure bounds on the alert override the heuristic.
    """
    today = today or date.today()
    timing = (alert.timing_text or "").lower()

    start_weeks, end_weeks = DEFAULT_WINDOW_WEEKS

    if "soon" in timing or "next month" in timing:
        start_weeks, end_weeks = 1, 6
    elif "summer" in timing:
        if today.month < 6:
            start_weeks, end_weeks = _season_window(today, 6, 12)
        elif today.month <= 8:
            start_weeks, end_weeks = 2, 10
    elif "spring" in timing:
        window = _season_window(today, 3, 12)
        if window:
            start_weeks, end_weeks = window
    elif "fall" in timing or "autumn" in timing:
        window = _season_window(today, 9, 12)
        if window:
            start_weeks, end_weeks = window
    elif "winter" in timing or "holiday" in timing:
        window = _season_window(today, 12, 8)
        if window:
            start_weeks, end_weeks = window
    elif "flexible" in timing or "anytime" in timing:
        start_weeks, end_weeks = 2, 12

    if alert.departure_after:
        start_weeks = max(1, _weeks_until(alert.departure_after.date(), today))

    if alert.departure_before:
        end_weeks = min(end_weeks, _weeks_until(alert.departure_before.date(), today))

    return start_weeks, end_weeks


def get_search_dates(alert: FlightAlert, today: Optional[date] = None) -> List[date]:
    """One departure date every two weeks across the search window, at most five."""
    today = today or date.today()
    start_weeks, end_weeks = get_search_window(alert, today)

    dates = [
        today + timedelta(weeks=week)
        for week in range(start_weeks, end_weeks + 1, SEARCH_DATE_STEP_WEEKS)
    ]
    return dates[:MAX_SEARCH_DATES]


class AlertMonitor:
    """
    Processes flight alerts against the flight-offer provider.

    The search service and the pause between alerts are injected so callers
    (and tests) control provider pacing.
    """

    def __init__(
        self,
        db: Session,
        search_service: Optional[FlightSearchService] = None,
        alert_delay_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.db = db
        self.search_service = search_service or FlightSearchService()
        if alert_delay_seconds is None:
            alert_delay_seconds = get_settings().alert_batch_delay_seconds
        self.alert_delay_seconds = alert_delay_seconds
        self._sleep = sleep

    async def process_alert(self, alert_id: int, today: Optional[date] = None) -> MonitoringResult:
        result = MonitoringResult(alert_id=alert_id)

        try:
            alert = self.db.query(FlightAlert).filter(FlightAlert.id == alert_id).first()

            if not alert or alert.status != AlertStatus.ACTIVE.value:
                result.error = "Alert not found or not active"
                return result

            destinations = get_destinations_for_alert(alert)
            result.searched_routes = len(destinations)

            search_dates = get_search_dates(alert, today)
            max_price = float(alert.max_price) if alert.max_price else None

            all_flights: List[Flight] = []
            for departure_date in search_dates:
                flights = await self.search_service.search_multiple_destinations(
                    alert.origin_code,
                    destinations,
                    departure_date,
                    max_price,
                )
                all_flights.extend(flights)

            result.flights_found = len(all_flights)

            if not all_flights:
                logger.info(f"Alert {alert_id}: no flights found across {len(search_dates)} dates")
                return result

            # Best effort: a failed history write must not cost us the deals
            try:
                record_prices(self.db, all_flights)
            except Exception as e:
                self.db.rollback()
                logger.error(f"Alert {alert_id}: failed to record price history: {e}")

            deals = detect_deals(self.db, all_flights, alert)
            result.deals_found = len(deals)

            result.good_deals = filter_good_deals(deals)

            logger.info(
                f"Alert {alert_id}: Found {len(result.good_deals)} good deals "
                f"out of {len(all_flights)} flights"
            )
            return result

        except Exception as e:
            logger.error(f"Error processing alert {alert_id}: {e}")
            self.db.rollback()
            result.error = str(e) or e.__class__.__name__
            return result

    async def process_alert_batch(self, alert_ids: List[int]) -> List[MonitoringResult]:
        results = []
        for alert_id in alert_ids:
            results.append(await self.process_alert(alert_id))
            await self._sleep(ALERT_BATCH_DELAY_SECONDS)
        return results

    async def process_all_active_alerts(self) -> BatchSummary:
        active_ids = [
            row.id
            for row in self.db.query(FlightAlert.id)
            .filter(FlightAlert.status == AlertStatus.ACTIVE.value)
            .order_by(FlightAlert.created_at.asc(), FlightAlert.id.asc())
            .all()
        ]

        summary = BatchSummary(processed=len(active_ids))
        logger.info(f"Processing {len(active_ids)} active alerts")

        for alert_id in active_ids:
            result = await self.process_alert(alert_id)
            summary.results.append(result)

            if result.error:
                summary.errors += 1
            else:
                summary.total_deals += len(result.good_deals)

            # Respect provider rate limits between alerts
            await self._sleep(self.alert_delay_seconds)

        logger.info(
            f"Processed {summary.processed} alerts, found {summary.total_deals} deals, "
            f"{summary.errors} errors"
        )
        return summary


def recordable_deals(alert: FlightAlert, deals: List[DealResult]) -> List[DealResult]:
    """Good deals that also meet the alert's own minimum discount, when it has one."""
    if alert.min_discount is None:
        return list(deals)
    return [d for d in deals if d.discount_percent >= alert.min_discount]


def record_deal_notification(
    db: Session,
    alert_id: int,
    deal: DealResult,
    channel: str,
    status: str = "pending",
) -> FlightNotification:
    """Store a notification row for a deal. Delivery is not attempted here."""
    flight = deal.flight
    notification = FlightNotification(
        alert_id=alert_id,
        flight_data={
            "id": flight.id,
            "price": flight.price,
            "currency": flight.currency,
            "origin": flight.origin,
            "destination": flight.destination,
            "departure_date": flight.departure_date.isoformat(),
            "airline": flight.airline,
            "airline_name": flight.airline_name,
            "stops": flight.stops,
            "duration": flight.duration_minutes,
            "booking_url": flight.booking_url,
            "discount_percent": deal.discount_percent,
            "average_price": deal.average_price,
            "price_rating": deal.price_rating,
        },
        channel=NotificationChannel(channel).value,
        status=status,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def record_batch_notifications(
    db: Session,
    results: List[MonitoringResult],
    channel: Optional[str] = None,
) -> int:
    """Record a pending notification for every qualifying deal in a batch. Returns the count."""
    channel = channel or get_settings().default_notification_channel
    recorded = 0

    for result in results:
        if result.error or not result.good_deals:
            continue
        alert = db.query(FlightAlert).filter(FlightAlert.id == result.alert_id).first()
        if not alert:
            continue
        for deal in recordable_deals(alert, result.good_deals):
            record_deal_notification(db, alert.id, deal, channel)
            recorded += 1

    if recorded:
        logger.info(f"Recorded {recorded} deal notifications")
    return recorded


async def run_monitoring_cycle(db: Session, monitor: Optional[AlertMonitor] = None) -> BatchSummary:
    """Process every active alert, then record notifications when enabled."""
    monitor = monitor or AlertMonitor(db)
    summary = await monitor.process_all_active_alerts()

    if get_settings().record_deal_notifications:
        record_batch_notifications(db, summary.results)

    return summary
