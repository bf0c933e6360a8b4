"""Tests for alert processing, batches and notification recording."""
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import patch

from conftest import make_flight
from vandra.models import FlightNotification, PriceHistory
from vandra.services.deals import DealResult
from vandra.services.monitor import (
    AlertMonitor,
    record_batch_notifications,
    record_deal_notification,
    recordable_deals,
    run_monitoring_cycle,
)

TODAY = date(2026, 1, 5)


class FakeSearchService:
    def __init__(self, flights=None, error=None):
        self.flights = flights or []
        self.error = error
        self.calls = []

    async def search_multiple_destinations(self, origin, destinations, departure_date, max_price=None):
        self.calls.append((origin, tuple(destinations), departure_date, max_price))
        if self.error:
            raise self.error
        return list(self.flights)


class Sleeper:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def _monitor(db, search, delay=3.0):
    sleeper = Sleeper()
    return AlertMonitor(db, search_service=search, alert_delay_seconds=delay, sleep=sleeper), sleeper


class TestProcessAlert:
    async def test_japan_alert_finds_great_deal(self, db_session, make_alert):
        alert = make_alert(destination_text="japan", max_price=Decimal("700"), timing_text="spring")
        for i, price in enumerate([600, 650, 700, 640, 660]):
            db_session.add(PriceHistory(
                origin="SLC", destination="NRT", travel_date=datetime(2026, 3, 2 + i),
                price=Decimal(price), airline="JL", recorded_at=datetime.utcnow(),
            ))
        db_session.commit()

        search = FakeSearchService([make_flight(420, departure_date=datetime(2026, 3, 2, 10, 0))])
        monitor, _ = _monitor(db_session, search)

        result = await monitor.process_alert(alert.id, today=TODAY)

        assert result.error is None
        assert result.searched_routes == 3
        # spring from early January: weeks 8..20 every two weeks, capped at five
        assert len(search.calls) == 5
        assert search.calls[0][:2] == ("SLC", ("NRT", "HND", "KIX"))
        assert search.calls[0][3] == 700.0
        assert result.flights_found == 5
        assert result.deals_found == 5
        # the 420 observation itself is recorded first: (3250 + 420) / 6
        assert result.good_deals[0].discount_percent == 31
        assert result.good_deals[0].price_rating == "great"

    async def test_records_observed_prices(self, db_session, make_alert):
        alert = make_alert(destination_code="NRT")
        search = FakeSearchService([make_flight(420), make_flight(450)])
        monitor, _ = _monitor(db_session, search)

        await monitor.process_alert(alert.id, today=TODAY)

        assert db_session.query(PriceHistory).count() == 2

    async def test_no_flights_returns_early(self, db_session, make_alert):
        alert = make_alert(destination_code="NRT")
        monitor, _ = _monitor(db_session, FakeSearchService([]))

        result = await monitor.process_alert(alert.id, today=TODAY)

        assert result.error is None
        assert result.flights_found == 0
        assert result.good_deals == []
        assert db_session.query(PriceHistory).count() == 0

    async def test_inactive_alert(self, db_session, make_alert):
        alert = make_alert(status="paused")
        monitor, _ = _monitor(db_session, FakeSearchService())

        result = await monitor.process_alert(alert.id)

        assert result.error == "Alert not found or not active"

    async def test_missing_alert(self, db_session):
        monitor, _ = _monitor(db_session, FakeSearchService())
        result = await monitor.process_alert(9999)
        assert result.error == "Alert not found or not active"

    async def test_unexpected_failure_is_reported_not_raised(self, db_session, make_alert):
        alert = make_alert(destination_code="NRT")
        monitor, _ = _monitor(db_session, FakeSearchService(error=RuntimeError("boom")))

        result = await monitor.process_alert(alert.id, today=TODAY)

        assert result.error == "boom"

    async def test_history_write_failure_does_not_lose_deals(self, db_session, make_alert):
        alert = make_alert(destination_code="NRT", max_price=Decimal("700"))
        monitor, _ = _monitor(db_session, FakeSearchService([make_flight(400)]))

        with patch("vandra.services.monitor.record_prices", side_effect=RuntimeError("disk full")):
            result = await monitor.process_alert(alert.id, today=TODAY)

        assert result.error is None
        assert result.good_deals


class TestBatches:
    async def test_process_all_active_alerts(self, db_session, make_alert):
        make_alert(destination_code="NRT", max_price=Decimal("700"))
        make_alert(destination_code="NRT", status="paused")
        make_alert(destination_code="NRT", max_price=Decimal("700"))

        monitor, sleeper = _monitor(db_session, FakeSearchService([make_flight(400)]), delay=3.0)
        summary = await monitor.process_all_active_alerts()

        assert summary.processed == 2
        assert summary.errors == 0
        # four search dates per alert, one matching flight each
        assert summary.total_deals == 8
        assert sleeper.delays == [3.0, 3.0]

    async def test_one_failing_alert_does_not_stop_batch(self, db_session, make_alert):
        first = make_alert(destination_code="NRT")
        second = make_alert(destination_code="NRT", max_price=Decimal("700"))

        monitor, _ = _monitor(db_session, FakeSearchService([make_flight(400)]))
        original = monitor.process_alert

        async def flaky(alert_id, today=None):
            if alert_id == first.id:
                result = await original(alert_id, today)
                result.error = "provider down"
                return result
            return await original(alert_id, today)

        monitor.process_alert = flaky
        summary = await monitor.process_all_active_alerts()

        assert summary.processed == 2
        assert summary.errors == 1
        assert summary.total_deals == 4
        assert [r.alert_id for r in summary.results] == [first.id, second.id]

    async def test_process_alert_batch_pauses_two_seconds(self, db_session, make_alert):
        a = make_alert(destination_code="NRT")
        b = make_alert(destination_code="CUN")
        monitor, sleeper = _monitor(db_session, FakeSearchService([]))

        results = await monitor.process_alert_batch([a.id, b.id])

        assert [r.alert_id for r in results] == [a.id, b.id]
        assert sleeper.delays == [2.0, 2.0]


def _deal(discount, flight=None):
    flight = flight or make_flight(400)
    return DealResult(
        flight=flight,
        average_price=500.0,
        discount_percent=discount,
        is_good_deal=True,
        price_rating="good",
        has_history=True,
    )


class TestNotifications:
    def test_record_deal_notification(self, db_session, make_alert):
        alert = make_alert(destination_code="NRT")
        notification = record_deal_notification(db_session, alert.id, _deal(20), "email")

        assert notification.status == "pending"
        assert notification.flight_data["price"] == 400
        assert notification.flight_data["discount_percent"] == 20
        assert notification.flight_data["booking_url"].startswith("https://www.google.com/travel/flights/")

    def test_min_discount_threshold(self, make_alert):
        alert = make_alert(min_discount=25)
        kept = recordable_deals(alert, [_deal(30), _deal(20)])
        assert [d.discount_percent for d in kept] == [30]

    async def test_cycle_records_notifications(self, db_session, make_alert):
        alert = make_alert(destination_code="NRT", max_price=Decimal("700"))
        monitor, _ = _monitor(db_session, FakeSearchService([make_flight(400)]))

        summary = await run_monitoring_cycle(db_session, monitor)

        assert summary.total_deals == 4
        rows = db_session.query(FlightNotification).filter_by(alert_id=alert.id).all()
        assert len(rows) == 4
        assert rows[0].channel == "email"

    def test_errored_results_are_not_recorded(self, db_session, make_alert):
        from vandra.services.monitor import MonitoringResult

        alert = make_alert()
        result = MonitoringResult(alert_id=alert.id, good_deals=[_deal(30)], error="x")
        assert record_batch_notifications(db_session, [result]) == 0
