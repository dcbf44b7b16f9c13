"""
Schedule window - time arithmetic for tours.

Time-of-day settings (HH:MM) are anchored to the calendar date of `now`.
A tour starts at the configured event start (first tour) or at the previous
tour's actual end plus the break, and lasts match_duration_minutes.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from matchplanner.services.schedule_types import TIME_OF_DAY_FORMAT, TournamentConfig


@dataclass(frozen=True)
class TourTiming:
    start: datetime
    end: datetime

    @property
    def start_display(self) -> str:
        return format_display_time(self.start)

    @property
    def end_display(self) -> str:
        return format_display_time(self.end)


def format_display_time(value: datetime) -> str:
    return value.strftime(TIME_OF_DAY_FORMAT)


def event_start_at(config: TournamentConfig, now: datetime) -> datetime:
    return datetime.combine(now.date(), config.start_time)


def event_end_at(config: TournamentConfig, now: datetime) -> datetime:
    return datetime.combine(now.date(), config.end_time)


def next_tour_timing(
    previous_actual_end: Optional[datetime], config: TournamentConfig, now: Optional[datetime] = None
) -> TourTiming:
    """Start/end of the next tour, from the previous tour's actual end if there is one."""
    now = now or datetime.now()
    if previous_actual_end is None:
        start = event_start_at(config, now)
    else:
        start = previous_actual_end + timedelta(minutes=config.break_duration_minutes)
    end = start + timedelta(minutes=config.match_duration_minutes)
    return TourTiming(start=start, end=end)


def fits_within_window(tour_end: datetime, config: TournamentConfig, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now()
    return tour_end <= event_end_at(config, now)


def max_possible_tours(config: TournamentConfig, now: Optional[datetime] = None) -> int:
    """How many match+break periods fit between the event start and end."""
    now = now or datetime.now()
    window = event_end_at(config, now) - event_start_at(config, now)
    if window <= timedelta(0):
        return 0
    per_tour = timedelta(minutes=config.match_duration_minutes + config.break_duration_minutes)
    return int(window // per_tour)


def is_event_exhausted(now: datetime, config: TournamentConfig, current_tour_index: int) -> bool:
    """
    True once no further tour can be played today.

    Depends on the wall clock, so callers re-evaluate it on every tick.
    """
    if now > event_end_at(config, now):
        return True
    return max_possible_tours(config, now) <= current_tour_index
