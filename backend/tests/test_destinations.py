"""Tests for destination selection and free-text matching."""
from types import SimpleNamespace

from vandra.services.destinations import (
    ANYWHERE_DESTINATIONS,
    DEFAULT_DESTINATIONS,
    find_region,
    get_destinations_for_alert,
    matches_destination_text,
)


def _alert(destination_code=None, destination_text=None):
    return SimpleNamespace(destination_code=destination_code, destination_text=destination_text)


class TestGetDestinationsForAlert:
    def test_structured_code_wins(self):
        assert get_destinations_for_alert(_alert("lis", "Japan")) == ["LIS"]

    def test_japan(self):
        assert get_destinations_for_alert(_alert(destination_text="Japan in cherry blossom season")) == [
            "NRT", "HND", "KIX",
        ]

    def test_europe(self):
        assert get_destinations_for_alert(_alert(destination_text="somewhere in Europe")) == [
            "LHR", "CDG", "FCO", "BCN", "AMS", "DUB", "LIS",
        ]

    def test_beach(self):
        assert get_destinations_for_alert(_alert(destination_text="beach destinations")) == [
            "CUN", "SJU", "MBJ", "HNL", "PVR",
        ]

    def test_empty_text_searches_anywhere_list(self):
        assert get_destinations_for_alert(_alert()) == ANYWHERE_DESTINATIONS

    def test_flexible_text_searches_anywhere_list(self):
        assert get_destinations_for_alert(_alert(destination_text="anywhere warm")) == ANYWHERE_DESTINATIONS

    def test_unknown_text_falls_back_to_default(self):
        assert get_destinations_for_alert(_alert(destination_text="the moon")) == DEFAULT_DESTINATIONS

    def test_returns_a_copy(self):
        result = get_destinations_for_alert(_alert())
        result.append("XXX")
        assert "XXX" not in ANYWHERE_DESTINATIONS


class TestMatchesDestinationText:
    def test_region_membership(self):
        assert matches_destination_text("FCO", "Europe")
        assert not matches_destination_text("NRT", "Europe")

    def test_broad_match_set_beyond_search_list(self):
        assert matches_destination_text("FUK", "japan")

    def test_flexible_matches_everything(self):
        assert matches_destination_text("SYD", "I'm flexible")

    def test_warm_means_beach(self):
        assert matches_destination_text("CUN", "somewhere warm")
        assert not matches_destination_text("KEF", "somewhere warm")

    def test_tropical_matches_beach_set_only(self):
        assert matches_destination_text("MBJ", "tropical")
        assert not matches_destination_text("BKK", "tropical")


class TestFindRegion:
    def test_first_listed_region_wins(self):
        assert find_region("asia or europe").name == "Europe"

    def test_no_region(self):
        assert find_region("paris") is None
        assert find_region(None) is None
