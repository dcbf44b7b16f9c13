"""
Tests for tour time arithmetic against the configured window.
"""
from datetime import datetime, time

from matchplanner.services.schedule_window import (
    fits_within_window,
    format_display_time,
    is_event_exhausted,
    max_possible_tours,
    next_tour_timing,
)
from tests.helpers import EVENT_DAY_MORNING, make_config, make_roster

NOW = EVENT_DAY_MORNING


def _config(**kwargs):
    return make_config(make_roster(8), **kwargs)


class TestNextTourTiming:
    def test_first_tour_starts_at_event_start_today(self):
        timing = next_tour_timing(None, _config(), NOW)
        assert timing.start == datetime(2026, 6, 1, 18, 0)
        assert timing.end == datetime(2026, 6, 1, 18, 10)
        assert timing.start_display == "18:00"
        assert timing.end_display == "18:10"

    def test_follows_previous_actual_end_plus_break(self):
        config = _config(break_duration_minutes=5)
        timing = next_tour_timing(datetime(2026, 6, 1, 18, 12), config, NOW)
        assert timing.start == datetime(2026, 6, 1, 18, 17)
        assert timing.end == datetime(2026, 6, 1, 18, 27)


class TestFitsWithinWindow:
    def test_ending_exactly_at_close_fits(self):
        assert fits_within_window(datetime(2026, 6, 1, 18, 30), _config(), NOW)

    def test_ending_after_close_does_not_fit(self):
        assert not fits_within_window(datetime(2026, 6, 1, 18, 40), _config(), NOW)


class TestMaxPossibleTours:
    def test_match_only(self):
        assert max_possible_tours(_config(), NOW) == 3

    def test_match_plus_break(self):
        assert max_possible_tours(_config(break_duration_minutes=5), NOW) == 2

    def test_inverted_window(self):
        assert max_possible_tours(_config(start=time(19, 0), end=time(18, 0)), NOW) == 0


class TestIsEventExhausted:
    def test_open_window_with_tours_left(self):
        assert not is_event_exhausted(NOW, _config(), 0)
        assert not is_event_exhausted(NOW, _config(), 2)

    def test_cursor_reached_capacity(self):
        assert is_event_exhausted(NOW, _config(), 3)

    def test_past_the_end_time(self):
        assert is_event_exhausted(datetime(2026, 6, 1, 18, 31), _config(), 0)


def test_display_time_is_24h():
    assert format_display_time(datetime(2026, 6, 1, 21, 5)) == "21:05"
