"""Tests for the timing-text search window heuristic."""
from datetime import date, datetime, timedelta
from types import SimpleNamespace

from vandra.services.monitor import get_search_dates, get_search_window


def _alert(timing_text=None, departure_after=None, departure_before=None):
    return SimpleNamespace(
        timing_text=timing_text,
        departure_after=departure_after,
        departure_before=departure_before,
    )


TODAY = date(2026, 1, 5)


class TestSearchWindow:
    def test_default_window(self):
        assert get_search_window(_alert(), TODAY) == (2, 8)

    def test_soon(self):
        assert get_search_window(_alert("as soon as possible"), TODAY) == (1, 6)
        assert get_search_window(_alert("next month"), TODAY) == (1, 6)

    def test_spring_before_march(self):
        # 2026-01-05 -> 2026-03-01 is 55 days, 8 weeks rounded up
        assert get_search_window(_alert("spring"), TODAY) == (8, 20)

    def test_spring_after_march_keeps_default(self):
        assert get_search_window(_alert("spring"), date(2026, 4, 1)) == (2, 8)

    def test_summer_before_june(self):
        start, end = get_search_window(_alert("summer"), TODAY)
        assert end - start == 12
        assert start == 21

    def test_during_summer(self):
        assert get_search_window(_alert("summer"), date(2026, 7, 1)) == (2, 10)

    def test_late_season_start_has_minimum_of_two_weeks(self):
        assert get_search_window(_alert("fall"), date(2026, 8, 28)) == (2, 14)

    def test_winter(self):
        start, end = get_search_window(_alert("holiday trip"), date(2026, 10, 1))
        assert end - start == 8

    def test_flexible(self):
        assert get_search_window(_alert("totally flexible"), TODAY) == (2, 12)

    def test_departure_after_overrides_start(self):
        alert = _alert(departure_after=datetime(2026, 2, 16))
        assert get_search_window(alert, TODAY)[0] == 6

    def test_departure_after_in_past_starts_at_one_week(self):
        alert = _alert(departure_after=datetime(2025, 12, 1))
        assert get_search_window(alert, TODAY)[0] == 1

    def test_departure_before_caps_end(self):
        alert = _alert(departure_before=datetime(2026, 2, 2))
        assert get_search_window(alert, TODAY) == (2, 4)


class TestSearchDates:
    def test_default_dates_every_two_weeks(self):
        dates = get_search_dates(_alert(), TODAY)
        assert dates == [TODAY + timedelta(weeks=w) for w in (2, 4, 6, 8)]

    def test_capped_at_five_dates(self):
        dates = get_search_dates(_alert("spring"), TODAY)
        assert len(dates) == 5
        assert dates[0] == TODAY + timedelta(weeks=8)

    def test_empty_window_gives_no_dates(self):
        alert = _alert(departure_before=datetime(2026, 1, 12))
        assert get_search_dates(alert, TODAY) == []
