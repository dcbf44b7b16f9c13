"""
Tests for building one tour from the rotation pool.
"""
import random
from datetime import datetime

from matchplanner.services.player_pool import PlayerPool
from matchplanner.services.tour_generator import generate_tour, next_pool_after
from tests.helpers import EVENT_DAY_MORNING, make_config, make_roster

NOW = EVENT_DAY_MORNING


def _generate(pool_players, roster, config, previous_end=None, seed=0):
    return generate_tour(
        PlayerPool(tuple(pool_players)), roster, config, previous_end, now=NOW, rng=random.Random(seed)
    )


class TestSingleTour:
    def test_forms_one_match_per_court_in_pool_order(self):
        roster = make_roster(8)
        tour, remaining = _generate(roster, roster, make_config(roster))

        assert len(tour.matches) == 1
        match = tour.matches[0]
        assert match.court == 1
        assert match.team_a == ("P1", "P2")
        assert match.team_b == ("P3", "P4")
        assert match.score_a is None and match.score_b is None
        assert [p.name for p in remaining] == ["P5", "P6", "P7", "P8"]

    def test_conservation(self):
        roster = make_roster(11)
        config = make_config(roster, num_courts=2)
        pool = PlayerPool(tuple(roster))
        for number in range(1, 8):
            tour, remaining = generate_tour(pool, roster, config, None, tour_number=number, now=NOW)
            assert len(tour.players_played) + len(tour.remaining_pool) == len(roster)
            assert len(remaining) == len(tour.remaining_pool)
            pool = next_pool_after(tour)

    def test_stamps_timing_from_previous_end(self):
        roster = make_roster(8)
        config = make_config(roster, break_duration_minutes=5)
        tour, _ = _generate(roster, roster, config, previous_end=datetime(2026, 6, 1, 18, 10))
        assert tour.actual_start == datetime(2026, 6, 1, 18, 15)
        assert tour.actual_end == datetime(2026, 6, 1, 18, 25)
        assert (tour.start_time, tour.end_time) == ("18:15", "18:25")

    def test_match_ids_are_unique(self):
        roster = make_roster(16)
        tour, _ = _generate(roster, roster, make_config(roster, num_courts=4))
        ids = [m.id for m in tour.matches]
        assert len(set(ids)) == 4
        assert [m.court for m in tour.matches] == [1, 2, 3, 4]


class TestDegenerateTours:
    def test_short_roster_leaves_courts_empty(self):
        roster = make_roster(6)
        tour, remaining = _generate(roster, roster, make_config(roster, num_courts=2))
        assert len(tour.matches) == 1
        assert len(tour.players_played) == 4
        assert len(remaining) == 2

    def test_too_few_players_for_any_match_gives_empty_tour(self):
        roster = make_roster(3)
        tour, remaining = _generate(roster, roster, make_config(roster))
        assert tour.matches == ()
        assert tour.players_played == ()
        assert len(remaining) == 3


class TestReshuffle:
    def test_three_left_with_match_size_four_reshuffles_full_roster(self):
        roster = make_roster(8)
        config = make_config(roster)
        tour, remaining = _generate(roster[:3], roster, config, seed=11)

        assert len(tour.matches) == 1
        assert len(tour.players_played) == 4
        assert len(remaining) == 4
        everyone = {p.id for p in tour.players_played} | {p.id for p in remaining}
        assert everyone == {p.id for p in roster}


class TestRotation:
    def test_benched_players_play_next(self):
        roster = make_roster(10)
        config = make_config(roster, num_courts=2)
        first, _ = _generate(roster, roster, config)
        benched = {p.id for p in first.remaining_pool}
        assert len(benched) == 2

        second, _ = generate_tour(next_pool_after(first), roster, config, first.actual_end, tour_number=2, now=NOW)
        assert benched <= {p.id for p in second.players_played}

    def test_balanced_matches_have_full_teams(self):
        levels = [1, 9, 3, 7, 5, 5, 2, 8, 4, 6, 10, 1]
        roster = make_roster(12, levels)
        config = make_config(roster, num_courts=2, players_per_team=3, balance_by_level=True)
        tour, _ = _generate(roster, roster, config)
        for match in tour.matches:
            assert len(match.team_a) == 3
            assert len(match.team_b) == 3
