"""Tests for deal detection against recorded price history."""
from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from conftest import make_flight
from vandra.models import PriceHistory
from vandra.services.deals import (
    calculate_discount,
    detect_deals,
    evaluate_flight,
    filter_good_deals,
    get_average_price,
    matches_alert_criteria,
    rate_discount,
    record_prices,
)

NOW = datetime(2026, 2, 1, 12, 0)
TRAVEL = datetime(2026, 3, 15, 10, 0)


def _alert(max_price=None, destination_code=None, departure_after=None, departure_before=None, min_discount=None):
    return SimpleNamespace(
        max_price=Decimal(str(max_price)) if max_price is not None else None,
        destination_code=destination_code,
        departure_after=departure_after,
        departure_before=departure_before,
        min_discount=min_discount,
    )


def _history(db, prices, origin="SLC", destination="NRT", travel_date=TRAVEL, recorded_at=NOW - timedelta(days=2)):
    for i, price in enumerate(prices):
        db.add(PriceHistory(
            origin=origin,
            destination=destination,
            travel_date=travel_date + timedelta(days=i % 3),
            price=Decimal(str(price)),
            airline="DL",
            recorded_at=recorded_at - timedelta(minutes=i),
        ))
    db.commit()


class TestRating:
    @pytest.mark.parametrize("discount,rating", [
        (35, "great"),
        (30, "great"),
        (29, "good"),
        (20, "good"),
        (19, "average"),
        (0, "average"),
        (-1, "high"),
    ])
    def test_rate_discount(self, discount, rating):
        assert rate_discount(discount) == rating

    def test_discount_rounds_half_up(self):
        assert calculate_discount(650, 420) == 35
        assert calculate_discount(8, 7) == 13  # 12.5 rounds up
        assert calculate_discount(0, 100) == 0


class TestAveragePrice:
    def test_needs_three_samples(self, db_session):
        _history(db_session, [600, 700])
        assert get_average_price(db_session, "SLC", "NRT", TRAVEL, now=NOW) is None

    def test_average_of_window(self, db_session):
        _history(db_session, [600, 650, 700, 650, 650])
        assert get_average_price(db_session, "SLC", "NRT", TRAVEL, now=NOW) == pytest.approx(650)

    def test_ignores_stale_observations(self, db_session):
        _history(db_session, [600, 650, 700], recorded_at=NOW - timedelta(days=45))
        assert get_average_price(db_session, "SLC", "NRT", TRAVEL, now=NOW) is None

    def test_ignores_other_travel_dates(self, db_session):
        _history(db_session, [600, 650, 700], travel_date=TRAVEL + timedelta(days=20))
        assert get_average_price(db_session, "SLC", "NRT", TRAVEL, now=NOW) is None


class TestEvaluateFlight:
    def test_great_deal_against_history(self):
        deal = evaluate_flight(make_flight(420), _alert(max_price=700), 650.0)
        assert deal.discount_percent == 35
        assert deal.price_rating == "great"
        assert deal.is_good_deal
        assert deal.has_history
        assert deal.average_price == 650.0

    def test_no_history_under_budget_is_estimated_good(self):
        deal = evaluate_flight(make_flight(420), _alert(max_price=700), None)
        assert deal.price_rating == "good"
        assert deal.discount_percent == 20
        assert deal.is_good_deal
        assert not deal.has_history
        assert deal.average_price == 420

    def test_no_history_near_budget_is_average(self):
        deal = evaluate_flight(make_flight(650), _alert(max_price=700), None)
        assert deal.price_rating == "average"
        assert deal.discount_percent == 0
        assert not deal.is_good_deal

    def test_budget_rule_makes_good_deal_despite_small_discount(self):
        deal = evaluate_flight(make_flight(580), _alert(max_price=700), 600.0)
        assert deal.discount_percent == 3
        assert deal.is_good_deal

    def test_price_above_average_is_high(self):
        deal = evaluate_flight(make_flight(700), _alert(), 600.0)
        assert deal.price_rating == "high"
        assert not deal.is_good_deal


class TestCriteria:
    def test_max_price(self):
        assert matches_alert_criteria(make_flight(700), _alert(max_price=700))
        assert not matches_alert_criteria(make_flight(701), _alert(max_price=700))

    def test_destination_code(self):
        assert not matches_alert_criteria(make_flight(400, destination="HND"), _alert(destination_code="NRT"))

    def test_departure_bounds(self):
        alert = _alert(departure_after=datetime(2026, 3, 20), departure_before=datetime(2026, 4, 1))
        assert not matches_alert_criteria(make_flight(400), alert)
        assert matches_alert_criteria(make_flight(400, departure_date=datetime(2026, 3, 25)), alert)


class TestDetectDeals:
    def test_sorted_by_discount_and_filtered(self, db_session):
        _history(db_session, [650, 650, 650, 650, 650])
        flights = [
            make_flight(600, flight_id="a"),
            make_flight(420, flight_id="b"),
            make_flight(800, flight_id="c"),  # over budget
            make_flight(500, flight_id="d"),
        ]
        deals = detect_deals(db_session, flights, _alert(max_price=700), now=NOW)

        assert [d.flight.id for d in deals] == ["b", "d", "a"]
        assert [d.discount_percent for d in deals] == [35, 23, 8]

        good = filter_good_deals(deals)
        assert [d.flight.id for d in good] == ["b", "d"]

    def test_ties_keep_input_order(self, db_session):
        flights = [make_flight(300, flight_id="x"), make_flight(310, flight_id="y")]
        deals = detect_deals(db_session, flights, _alert(max_price=1000), now=NOW)
        assert [d.flight.id for d in deals] == ["x", "y"]


class TestRecordPrices:
    def test_skips_duplicates_in_batch(self, db_session):
        flights = [make_flight(420), make_flight(420), make_flight(450)]
        written = record_prices(db_session, flights, recorded_at=NOW)
        assert written == 2
        assert db_session.query(PriceHistory).count() == 2

    def test_existing_rows_are_skipped_not_fatal(self, db_session):
        record_prices(db_session, [make_flight(420)], recorded_at=NOW)
        written = record_prices(db_session, [make_flight(420), make_flight(430)], recorded_at=NOW)
        assert written == 1
        assert db_session.query(PriceHistory).count() == 2

    def test_empty(self, db_session):
        assert record_prices(db_session, []) == 0
