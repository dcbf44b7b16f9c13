"""
Schedule Controller - pre-generation, advancing and termination of tours.

State machine:
    EMPTY -> PRE_GENERATED   generate_schedule (up to MAX_PREGENERATED_TOURS)
    PRE_GENERATED/ACTIVE -> ACTIVE | EXHAUSTED   advance
    EXHAUSTED -> ACTIVE      step_back

Advance (timer expiry or explicit confirmation):
1. Finalize the current tour (null scores -> 0, completed) and push its scores
2. Take the current tour's actual end (optionally the real finish instant)
3. Next pre-generated tour exists: re-time it from that actual end; if it no
   longer fits the window the schedule is exhausted and the cursor stays.
   Later tours that would now overlap are pushed back; the first one pushed
   past the window end is dropped with everything after it
4. Otherwise: if a further tour fits, generate one from the recycled pool and
   append it (even with zero matches); else the schedule is exhausted

Every transition resets the round clock. Each operation computes a new
Schedule and then commits it through the store in one step, so a caller
never observes a half-built tour.

The store is the persistence collaborator (see ScheduleStore).
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from matchplanner.services.player_pool import PlayerPool
from matchplanner.services.round_clock import RoundClock
from matchplanner.services.schedule_types import (
    TEAMS,
    Player,
    Schedule,
    ScheduleState,
    Tour,
    TournamentConfig,
)
from matchplanner.services.schedule_window import (
    TourTiming,
    fits_within_window,
    format_display_time,
    is_event_exhausted,
    next_tour_timing,
)
from matchplanner.services.tour_generator import generate_tour, next_pool_after

logger = logging.getLogger(__name__)

MAX_PREGENERATED_TOURS = 50

NEXT_ACTION_NEXT_TOUR = "next_tour"
NEXT_ACTION_GENERATE = "generate_next_tour"
NEXT_ACTION_FINISHED = "finished"


class ScheduleStore(Protocol):
    """Persistence collaborator used by the controller."""

    def list_selected_players(self, player_ids: Sequence[int]) -> List[Player]: ...

    def persist_score(self, tournament_id: Optional[int], match_id: str, team: str, score: Optional[int]) -> None: ...

    def persist_schedule(self, schedule: Schedule) -> None: ...

    def read_schedule(self, tournament_id: Optional[int]) -> Optional[Schedule]: ...


@dataclass(frozen=True)
class AdvanceResult:
    schedule: Schedule
    terminal: bool


def needs_regeneration(schedule: Optional[Schedule], config: TournamentConfig) -> bool:
    """A schedule is stale when missing, empty, or generated against different settings."""
    if schedule is None or not schedule.tours:
        return True
    return not schedule.config.same_as(config)


def resume_index(tours: Sequence[Tour]) -> int:
    """Index of the first tour not yet completed, len(tours) when all are."""
    for index, tour in enumerate(tours):
        if not tour.is_completed:
            return index
    return len(tours)


def find_match(schedule: Schedule, match_id: str) -> Optional[Tuple[int, int]]:
    """(tour_index, match_index) of a match id, or None."""
    for tour_index, tour in enumerate(schedule.tours):
        for match_index, match in enumerate(tour.matches):
            if match.id == match_id:
                return tour_index, match_index
    return None


def bench_players(schedule: Schedule, roster: Sequence[Player]) -> List[Player]:
    """Selected players who are not on a court in the current tour, in roster order."""
    tour = schedule.current_tour
    playing = set(tour.player_names()) if tour else set()
    return [p for p in roster if p.name not in playing]


def _retimed(tour: Tour, timing: TourTiming) -> Tour:
    return replace(
        tour,
        actual_start=timing.start,
        actual_end=timing.end,
        start_time=timing.start_display,
        end_time=timing.end_display,
    )


class ScheduleController:
    def __init__(
        self,
        store: ScheduleStore,
        now: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self._now = now or datetime.now
        self.rng = rng or random.Random()

    def now(self) -> datetime:
        return self._now()

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate_schedule(self, config: TournamentConfig) -> Schedule:
        """Pre-generate every tour that fits the window (capped), then persist."""
        now = self.now()
        roster = self.store.list_selected_players(config.selected_player_ids)
        if len(roster) < config.match_size:
            logger.info(
                "Tournament %s: %d selected players cannot fill a %d-player match; tours will be empty",
                config.tournament_id,
                len(roster),
                config.match_size,
            )
        elif len(roster) < config.players_needed_for_full_tour:
            logger.info(
                "Tournament %s: %d selected players for %d courts (%d needed); some courts will stay empty",
                config.tournament_id,
                len(roster),
                config.num_courts,
                config.players_needed_for_full_tour,
            )

        pool = PlayerPool.shuffled(roster, self.rng)
        tours: List[Tour] = []
        previous_end: Optional[datetime] = None

        while True:
            timing = next_tour_timing(previous_end, config, now)
            if not fits_within_window(timing.end, config, now):
                logger.debug("Tour %d would end at %s, past the event end", len(tours) + 1, timing.end_display)
                break

            tour, _remaining = generate_tour(
                pool, roster, config, previous_end, tour_number=len(tours) + 1, now=now, rng=self.rng, timing=timing
            )
            tours.append(tour)
            previous_end = tour.actual_end
            pool = next_pool_after(tour)

            if len(tours) >= MAX_PREGENERATED_TOURS:
                logger.warning(
                    "Tournament %s: reached the pre-generation limit of %d tours; stopping",
                    config.tournament_id,
                    MAX_PREGENERATED_TOURS,
                )
                break

        if tours:
            schedule = Schedule(
                tournament_id=config.tournament_id,
                config=config,
                tours=tuple(tours),
                current_index=0,
                state=ScheduleState.PRE_GENERATED,
                clock=RoundClock.for_round(config.match_duration_minutes),
            )
        else:
            logger.info("Tournament %s: no tour fits the window, schedule is empty", config.tournament_id)
            schedule = Schedule(tournament_id=config.tournament_id, config=config, state=ScheduleState.EMPTY)

        self.store.persist_schedule(schedule)
        logger.info("Tournament %s: generated %d tours", config.tournament_id, len(tours))
        return schedule

    def ensure_schedule(self, config: TournamentConfig) -> Schedule:
        """Stored schedule, regenerated when missing or stale against `config`."""
        schedule = self.store.read_schedule(config.tournament_id)
        if needs_regeneration(schedule, config):
            if schedule is not None and schedule.tours:
                logger.info("Tournament %s: settings changed since generation; regenerating", config.tournament_id)
            return self.generate_schedule(config)
        return schedule

    # ------------------------------------------------------------------
    # Runtime transitions
    # ------------------------------------------------------------------

    def advance(
        self, schedule: Schedule, config: TournamentConfig, finished_at: Optional[datetime] = None
    ) -> AdvanceResult:
        if schedule.state == ScheduleState.EXHAUSTED or not schedule.tours:
            return AdvanceResult(schedule=schedule, terminal=True)

        now = self.now()
        index = min(schedule.current_index, len(schedule.tours) - 1)
        updated = schedule

        # 1. finalize current tour
        current = updated.tours[index]
        if schedule.current_index < len(schedule.tours):
            current = self._finalize(current, finished_at)
            updated = updated.with_tour(index, current)
            for match in current.matches:
                for team in TEAMS:
                    self.store.persist_score(schedule.tournament_id, match.id, team, match.score_for(team))

        # 2. actual end of the tour just played
        actual_end = current.actual_end

        # 3. next pre-generated tour: re-time from the actual end
        if index + 1 < len(updated.tours):
            timing = next_tour_timing(actual_end, config, now)
            if not fits_within_window(timing.end, config, now):
                logger.info(
                    "Tournament %s: re-timed tour %d would end at %s, past the event end; finished",
                    schedule.tournament_id,
                    index + 2,
                    timing.end_display,
                )
                return self._commit_exhausted(updated, index)

            updated = updated.with_tour(index + 1, _retimed(updated.tours[index + 1], timing))
            updated = self._push_back_later_tours(updated, index + 1, config, now)
            return self._commit_active(updated, index + 1, config)

        # 4. end of the pre-generated schedule: synthesize one more tour
        timing = next_tour_timing(actual_end, config, now)
        if not fits_within_window(timing.end, config, now):
            logger.info(
                "Tournament %s: a new tour would end at %s, past the event end; finished",
                schedule.tournament_id,
                timing.end_display,
            )
            return self._commit_exhausted(updated, index)

        roster = self.store.list_selected_players(config.selected_player_ids)
        new_tour, _remaining = generate_tour(
            next_pool_after(current),
            roster,
            config,
            actual_end,
            tour_number=len(updated.tours) + 1,
            now=now,
            rng=self.rng,
            timing=timing,
        )
        if not new_tour.matches:
            logger.info("Tournament %s: tour %d has no matches; kept as an empty slot", schedule.tournament_id, new_tour.number)
        updated = replace(updated, tours=updated.tours + (new_tour,))
        return self._commit_active(updated, len(updated.tours) - 1, config)

    def step_back(self, schedule: Schedule, config: TournamentConfig) -> Schedule:
        """Move the cursor to the previous tour and re-arm the round clock."""
        if schedule.current_index <= 0 or not schedule.tours:
            return schedule
        index = min(schedule.current_index, len(schedule.tours)) - 1
        updated = replace(
            schedule,
            current_index=index,
            state=ScheduleState.ACTIVE,
            clock=RoundClock.for_round(config.match_duration_minutes),
        )
        self.store.persist_schedule(updated)
        return updated

    def tick(self, schedule: Schedule, config: TournamentConfig, seconds: int = 1) -> AdvanceResult:
        """Apply clock ticks; global expiry advances to the next tour."""
        if schedule.state == ScheduleState.EXHAUSTED or not schedule.tours:
            return AdvanceResult(schedule=schedule, terminal=True)
        clock = schedule.clock
        for _ in range(max(seconds, 0)):
            clock, expired = clock.tick()
            if expired:
                return self.advance(replace(schedule, clock=clock), config)
        updated = replace(schedule, clock=clock)
        self.store.persist_schedule(updated)
        return AdvanceResult(schedule=updated, terminal=False)

    def update_clock(self, schedule: Schedule, clock: RoundClock) -> Schedule:
        updated = replace(schedule, clock=clock)
        self.store.persist_schedule(updated)
        return updated

    # ------------------------------------------------------------------
    # Queries and score entry
    # ------------------------------------------------------------------

    def is_exhausted(self, schedule: Optional[Schedule], config: TournamentConfig, now: Optional[datetime] = None) -> bool:
        if schedule is None or not schedule.tours:
            return True
        if schedule.state == ScheduleState.EXHAUSTED:
            return True
        return is_event_exhausted(now or self.now(), config, schedule.current_index)

    def next_action(self, schedule: Optional[Schedule], config: TournamentConfig, now: Optional[datetime] = None) -> str:
        if self.is_exhausted(schedule, config, now):
            return NEXT_ACTION_FINISHED
        if schedule.current_index >= len(schedule.tours) - 1:
            return NEXT_ACTION_GENERATE
        return NEXT_ACTION_NEXT_TOUR

    def update_score(
        self, schedule: Schedule, tour_index: int, match_index: int, team: str, value: Optional[int]
    ) -> Schedule:
        if not 0 <= tour_index < len(schedule.tours):
            raise IndexError(f"Tour index {tour_index} out of range")
        tour = schedule.tours[tour_index]
        if not 0 <= match_index < len(tour.matches):
            raise IndexError(f"Match index {match_index} out of range for tour {tour.number}")

        match = tour.matches[match_index].with_score(team, value)
        matches = list(tour.matches)
        matches[match_index] = match
        updated = schedule.with_tour(tour_index, replace(tour, matches=tuple(matches)))

        self.store.persist_score(schedule.tournament_id, match.id, team, value)
        self.store.persist_schedule(updated)
        return updated

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _finalize(self, tour: Tour, finished_at: Optional[datetime]) -> Tour:
        finalized = replace(tour, matches=tuple(m.finalized() for m in tour.matches), is_completed=True)
        if finished_at is not None:
            actual_end = max(finished_at, tour.actual_start)
            finalized = replace(finalized, actual_end=actual_end, end_time=format_display_time(actual_end))
        return finalized

    def _push_back_later_tours(
        self, schedule: Schedule, index: int, config: TournamentConfig, now: datetime
    ) -> Schedule:
        """
        Keep the tours after `index` from overlapping it.

        A tour starting before the previous actual end plus the break is pushed
        back to that instant. The first one that no longer fits the window is
        dropped together with every tour after it.
        """
        tours = list(schedule.tours[: index + 1])
        for position, tour in enumerate(schedule.tours[index + 1 :], start=index + 1):
            if tour.is_completed:
                # played tours (reached again after stepping back) keep their times
                tours.extend(schedule.tours[position:])
                break
            timing = next_tour_timing(tours[-1].actual_end, config, now)
            if tour.actual_start >= timing.start:
                tours.append(tour)
                continue
            if not fits_within_window(timing.end, config, now):
                logger.info(
                    "Tournament %s: tour %d pushed to %s no longer fits; dropping %d pre-generated tours",
                    schedule.tournament_id,
                    tour.number,
                    timing.end_display,
                    len(schedule.tours) - len(tours),
                )
                break
            tours.append(_retimed(tour, timing))
        return replace(schedule, tours=tuple(tours))

    def _commit_active(self, schedule: Schedule, index: int, config: TournamentConfig) -> AdvanceResult:
        updated = replace(
            schedule,
            current_index=index,
            state=ScheduleState.ACTIVE,
            clock=RoundClock.for_round(config.match_duration_minutes),
        )
        self.store.persist_schedule(updated)
        return AdvanceResult(schedule=updated, terminal=False)

    def _commit_exhausted(self, schedule: Schedule, index: int) -> AdvanceResult:
        updated = replace(schedule, current_index=index, state=ScheduleState.EXHAUSTED, clock=RoundClock.stopped())
        self.store.persist_schedule(updated)
        return AdvanceResult(schedule=updated, terminal=True)
