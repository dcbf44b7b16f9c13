"""
Value types shared by the tour engine.

All types are immutable snapshots. Operations take a snapshot in and return
a new one (pool-in -> pool-out, schedule-in -> schedule-out), so no list is
ever mutated in place behind a caller's back.

Every type round-trips through to_dict()/from_dict() for JSON persistence.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, time
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from matchplanner.services.round_clock import RoundClock

TEAM_A = "team_a"
TEAM_B = "team_b"
TEAMS = (TEAM_A, TEAM_B)

MATCH_UPCOMING = "upcoming"
MATCH_COMPLETED = "completed"

TIME_OF_DAY_FORMAT = "%H:%M"


class ScheduleState(str, Enum):
    EMPTY = "empty"
    PRE_GENERATED = "pre_generated"
    ACTIVE = "active"
    EXHAUSTED = "exhausted"


def parse_time_of_day(value: Any) -> time:
    """Parse an HH:MM wall-clock string. Raises ValueError on bad input."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if not isinstance(value, str) or not value.strip():
        raise ValueError("time of day is required (HH:MM)")
    try:
        return datetime.strptime(value.strip(), TIME_OF_DAY_FORMAT).time()
    except ValueError:
        raise ValueError(f"invalid time of day '{value}', expected HH:MM")


def format_time_of_day(value: time) -> str:
    return value.strftime(TIME_OF_DAY_FORMAT)


def validate_tournament_settings(
    num_courts: int,
    players_per_team: int,
    match_duration_minutes: int,
    break_duration_minutes: int,
    start_time: Any,
    end_time: Any,
    selected_count: int,
) -> None:
    """
    Reject configurations the engine must never receive.

    Raises ValueError with a user-facing message on the first problem found.
    """
    if num_courts is None or num_courts < 1:
        raise ValueError("num_courts must be >= 1")
    if players_per_team is None or players_per_team < 1:
        raise ValueError("players_per_team must be >= 1")
    if match_duration_minutes is None or match_duration_minutes < 1:
        raise ValueError("match_duration_minutes must be >= 1")
    if break_duration_minutes is None or break_duration_minutes < 0:
        raise ValueError("break_duration_minutes must be >= 0")
    if selected_count < 1:
        raise ValueError("at least one player must be selected")

    required = players_per_team * 2 * num_courts
    if required > selected_count:
        raise ValueError(
            f"Not enough players ({selected_count}) for a full tour with {players_per_team} "
            f"players per team on {num_courts} courts ({required} required)"
        )

    start = parse_time_of_day(start_time)
    end = parse_time_of_day(end_time)
    if end <= start:
        raise ValueError("end_time must be after start_time")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _from_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass(frozen=True)
class Player:
    id: int
    name: str
    level: int = 5
    group_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "level": self.level, "group_id": self.group_id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        return cls(
            id=data["id"],
            name=data["name"],
            level=int(data.get("level", 5)),
            group_id=data.get("group_id"),
        )


@dataclass(frozen=True)
class TournamentConfig:
    """Snapshot of the settings a schedule is generated against."""

    num_courts: int
    players_per_team: int
    match_duration_minutes: int
    break_duration_minutes: int
    start_time: time
    end_time: time
    balance_by_level: bool = False
    selected_player_ids: Tuple[int, ...] = ()
    tournament_id: Optional[int] = None
    name: str = ""

    @property
    def match_size(self) -> int:
        return self.players_per_team * 2

    @property
    def players_needed_for_full_tour(self) -> int:
        return self.match_size * self.num_courts

    def same_as(self, other: Optional["TournamentConfig"]) -> bool:
        """Value comparison; the selected players compare as a set."""
        if other is None:
            return False
        return (
            self.name == other.name
            and self.num_courts == other.num_courts
            and self.players_per_team == other.players_per_team
            and self.match_duration_minutes == other.match_duration_minutes
            and self.break_duration_minutes == other.break_duration_minutes
            and self.start_time == other.start_time
            and self.end_time == other.end_time
            and self.balance_by_level == other.balance_by_level
            and len(self.selected_player_ids) == len(other.selected_player_ids)
            and set(self.selected_player_ids) == set(other.selected_player_ids)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tournament_id": self.tournament_id,
            "name": self.name,
            "num_courts": self.num_courts,
            "players_per_team": self.players_per_team,
            "match_duration_minutes": self.match_duration_minutes,
            "break_duration_minutes": self.break_duration_minutes,
            "start_time": format_time_of_day(self.start_time),
            "end_time": format_time_of_day(self.end_time),
            "balance_by_level": self.balance_by_level,
            "selected_player_ids": list(self.selected_player_ids),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TournamentConfig":
        return cls(
            tournament_id=data.get("tournament_id"),
            name=data.get("name", ""),
            num_courts=int(data["num_courts"]),
            players_per_team=int(data["players_per_team"]),
            match_duration_minutes=int(data["match_duration_minutes"]),
            break_duration_minutes=int(data["break_duration_minutes"]),
            start_time=parse_time_of_day(data["start_time"]),
            end_time=parse_time_of_day(data["end_time"]),
            balance_by_level=bool(data.get("balance_by_level", False)),
            selected_player_ids=tuple(data.get("selected_player_ids") or ()),
        )


@dataclass(frozen=True)
class TourMatch:
    id: str
    court: int
    team_a: Tuple[str, ...]
    team_b: Tuple[str, ...]
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    status: str = MATCH_UPCOMING

    def score_for(self, team: str) -> Optional[int]:
        if team == TEAM_A:
            return self.score_a
        if team == TEAM_B:
            return self.score_b
        raise ValueError(f"Unknown team '{team}'")

    def with_score(self, team: str, value: Optional[int]) -> "TourMatch":
        if team == TEAM_A:
            return replace(self, score_a=value)
        if team == TEAM_B:
            return replace(self, score_b=value)
        raise ValueError(f"Unknown team '{team}'")

    def finalized(self) -> "TourMatch":
        return replace(
            self,
            score_a=self.score_a if self.score_a is not None else 0,
            score_b=self.score_b if self.score_b is not None else 0,
            status=MATCH_COMPLETED,
        )

    def player_names(self) -> Tuple[str, ...]:
        return self.team_a + self.team_b

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "court": self.court,
            "team_a": list(self.team_a),
            "team_b": list(self.team_b),
            "score_a": self.score_a,
            "score_b": self.score_b,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TourMatch":
        return cls(
            id=data["id"],
            court=int(data["court"]),
            team_a=tuple(data.get("team_a") or ()),
            team_b=tuple(data.get("team_b") or ()),
            score_a=data.get("score_a"),
            score_b=data.get("score_b"),
            status=data.get("status", MATCH_UPCOMING),
        )


@dataclass(frozen=True)
class Tour:
    number: int
    matches: Tuple[TourMatch, ...]
    start_time: str
    end_time: str
    actual_start: datetime
    actual_end: datetime
    players_played: Tuple[Player, ...] = ()
    remaining_pool: Tuple[Player, ...] = ()
    is_completed: bool = False

    def player_names(self) -> List[str]:
        names: List[str] = []
        for match in self.matches:
            names.extend(match.player_names())
        return names

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "matches": [m.to_dict() for m in self.matches],
            "start_time": self.start_time,
            "end_time": self.end_time,
            "actual_start": _iso(self.actual_start),
            "actual_end": _iso(self.actual_end),
            "players_played": [p.to_dict() for p in self.players_played],
            "remaining_pool": [p.to_dict() for p in self.remaining_pool],
            "is_completed": self.is_completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tour":
        return cls(
            number=int(data["number"]),
            matches=tuple(TourMatch.from_dict(m) for m in data.get("matches") or ()),
            start_time=data.get("start_time", ""),
            end_time=data.get("end_time", ""),
            actual_start=_from_iso(data["actual_start"]),
            actual_end=_from_iso(data["actual_end"]),
            players_played=tuple(Player.from_dict(p) for p in data.get("players_played") or ()),
            remaining_pool=tuple(Player.from_dict(p) for p in data.get("remaining_pool") or ()),
            is_completed=bool(data.get("is_completed", False)),
        )


@dataclass(frozen=True)
class Schedule:
    tournament_id: Optional[int]
    config: TournamentConfig
    tours: Tuple[Tour, ...] = ()
    current_index: int = 0
    state: ScheduleState = ScheduleState.EMPTY
    clock: RoundClock = field(default_factory=RoundClock)

    @property
    def current_tour(self) -> Optional[Tour]:
        if 0 <= self.current_index < len(self.tours):
            return self.tours[self.current_index]
        return None

    def with_tour(self, index: int, tour: Tour) -> "Schedule":
        tours = list(self.tours)
        tours[index] = tour
        return replace(self, tours=tuple(tours))

    def all_matches(self) -> Iterable[Tuple[Tour, TourMatch]]:
        for tour in self.tours:
            for match in tour.matches:
                yield tour, match

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tournament_id": self.tournament_id,
            "config": self.config.to_dict(),
            "tours": [t.to_dict() for t in self.tours],
            "current_index": self.current_index,
            "state": self.state.value,
            "clock": self.clock.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Schedule":
        return cls(
            tournament_id=data.get("tournament_id"),
            config=TournamentConfig.from_dict(data["config"]),
            tours=tuple(Tour.from_dict(t) for t in data.get("tours") or ()),
            current_index=int(data.get("current_index", 0)),
            state=ScheduleState(data.get("state", ScheduleState.EMPTY.value)),
            clock=RoundClock.from_dict(data.get("clock") or {}),
        )
