"""Shared builders for engine tests."""
from datetime import datetime, time
from typing import List, Optional

from matchplanner.services.schedule_types import Player, Schedule, TournamentConfig

EVENT_DAY_MORNING = datetime(2026, 6, 1, 8, 0)


def make_roster(n: int, levels: Optional[List[int]] = None) -> List[Player]:
    levels = levels or [5] * n
    return [Player(id=i, name=f"P{i}", level=levels[i - 1]) for i in range(1, n + 1)]


def make_config(
    roster: List[Player],
    num_courts: int = 1,
    players_per_team: int = 2,
    match_duration_minutes: int = 10,
    break_duration_minutes: int = 0,
    start: time = time(18, 0),
    end: time = time(18, 30),
    balance_by_level: bool = False,
    tournament_id: int = 1,
) -> TournamentConfig:
    return TournamentConfig(
        tournament_id=tournament_id,
        name="Club night",
        num_courts=num_courts,
        players_per_team=players_per_team,
        match_duration_minutes=match_duration_minutes,
        break_duration_minutes=break_duration_minutes,
        start_time=start,
        end_time=end,
        balance_by_level=balance_by_level,
        selected_player_ids=tuple(p.id for p in roster),
    )


class InMemoryScheduleStore:
    """Store double: keeps the last persisted schedule and records score writes."""

    def __init__(self, roster: List[Player]):
        self.players = {p.id: p for p in roster}
        self.schedules = {}
        self.score_writes = []
        self.schedule_writes = 0

    def list_selected_players(self, player_ids):
        return [self.players[pid] for pid in player_ids if pid in self.players]

    def persist_score(self, tournament_id, match_id, team, score):
        self.score_writes.append((tournament_id, match_id, team, score))

    def persist_schedule(self, schedule: Schedule):
        self.schedule_writes += 1
        self.schedules[schedule.tournament_id] = schedule

    def read_schedule(self, tournament_id):
        return self.schedules.get(tournament_id)
