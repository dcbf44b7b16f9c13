"""
Tests for the round clock: global countdown vs per-match timers.
"""
from matchplanner.services.round_clock import MODE_GLOBAL, MODE_INDIVIDUAL, MatchTimer, RoundClock


def _tick(clock, seconds):
    expired = False
    for _ in range(seconds):
        clock, expired = clock.tick()
    return clock, expired


class TestGlobalCountdown:
    def test_for_round_is_full_and_paused(self):
        clock = RoundClock.for_round(12)
        assert clock.mode == MODE_GLOBAL
        assert clock.time_left == 720
        assert not clock.is_running
        assert clock.match_timers == {}

    def test_toggle_pauses_and_resumes(self):
        clock = RoundClock.for_round(1).toggle()
        assert clock.is_running
        clock, _ = _tick(clock, 10)
        paused = clock.toggle()
        assert not paused.is_running
        assert _tick(paused, 5)[0].time_left == 50

    def test_reaching_zero_expires_and_stops(self):
        clock = RoundClock.for_round(1).toggle()
        clock, expired = _tick(clock, 59)
        assert not expired
        clock, expired = clock.tick()
        assert expired
        assert clock.time_left == 0
        assert not clock.is_running

    def test_start_global_refills_an_expired_clock(self):
        clock = RoundClock.stopped().start_global(5)
        assert clock.time_left == 300
        assert clock.is_running


class TestIndividualTimers:
    def test_switching_modes_clears_the_other(self):
        clock = RoundClock.for_round(10).toggle().manage_individually(["m1", "m2"], 10)
        assert clock.mode == MODE_INDIVIDUAL
        assert not clock.is_running
        assert clock.match_timers == {"m1": MatchTimer(600), "m2": MatchTimer(600)}

        back = clock.start_global(10)
        assert back.mode == MODE_GLOBAL
        assert back.match_timers == {}

    def test_global_toggle_is_ignored_in_individual_mode(self):
        clock = RoundClock.for_round(10).manage_individually(["m1"], 10)
        assert clock.toggle() == clock

    def test_only_running_timers_count_down(self):
        clock = RoundClock.for_round(1).manage_individually(["m1", "m2"], 1).toggle_match("m1", 1)
        clock, _ = _tick(clock, 20)
        assert clock.match_timers["m1"].time_left == 40
        assert clock.match_timers["m2"].time_left == 60

    def test_match_timer_stops_at_zero_without_expiry(self):
        clock = RoundClock.for_round(1).manage_individually(["m1"], 1).toggle_match("m1", 1)
        clock, expired = _tick(clock, 75)
        assert not expired
        assert clock.match_timers["m1"] == MatchTimer(time_left=0, is_running=False)

    def test_restarting_a_finished_timer_refills_it(self):
        clock = RoundClock.for_round(1).manage_individually(["m1"], 1).toggle_match("m1", 1)
        clock, _ = _tick(clock, 60)
        restarted = clock.toggle_match("m1", 1)
        assert restarted.match_timers["m1"] == MatchTimer(time_left=60, is_running=True)

    def test_reset_match(self):
        clock = RoundClock.for_round(1).manage_individually(["m1"], 1).toggle_match("m1", 1)
        clock, _ = _tick(clock, 30)
        assert clock.reset_match("m1", 1).match_timers["m1"] == MatchTimer(time_left=60, is_running=False)

    def test_unknown_match_toggle_is_ignored(self):
        clock = RoundClock.for_round(1).manage_individually(["m1"], 1)
        assert clock.toggle_match("nope", 1) == clock


def test_from_dict_restores_timers():
    clock = RoundClock.for_round(3).manage_individually(["a"], 3).toggle_match("a", 3)
    assert RoundClock.from_dict(clock.to_dict()) == clock
