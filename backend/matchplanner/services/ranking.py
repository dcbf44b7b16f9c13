"""
Player ranking and match history from scored matches.

Only matches with both scores entered count. Each player on a team is
credited with the team's points; a draw counts as neither win nor loss.
Ranking order: wins desc, score difference desc, points for desc.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple


class ScoredMatch(Protocol):
    tour_number: int
    court: int
    team_a: Sequence[str]
    team_b: Sequence[str]
    score_a: Optional[int]
    score_b: Optional[int]


@dataclass
class PlayerStanding:
    name: str
    wins: int = 0
    losses: int = 0
    points_for: int = 0
    points_against: int = 0

    @property
    def score_difference(self) -> int:
        return self.points_for - self.points_against

    def record(self, scored: int, conceded: int) -> None:
        self.points_for += scored
        self.points_against += conceded
        if scored > conceded:
            self.wins += 1
        elif scored < conceded:
            self.losses += 1

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "wins": self.wins,
            "losses": self.losses,
            "points_for": self.points_for,
            "points_against": self.points_against,
            "score_difference": self.score_difference,
        }


def is_scored(match: ScoredMatch) -> bool:
    return match.score_a is not None and match.score_b is not None


def calculate_ranking(matches: Iterable[ScoredMatch]) -> List[PlayerStanding]:
    standings: Dict[str, PlayerStanding] = {}

    def standing(name: str) -> PlayerStanding:
        if name not in standings:
            standings[name] = PlayerStanding(name=name)
        return standings[name]

    for match in matches:
        if not is_scored(match):
            continue
        score_a = int(match.score_a)
        score_b = int(match.score_b)
        for name in match.team_a:
            standing(name).record(score_a, score_b)
        for name in match.team_b:
            standing(name).record(score_b, score_a)

    return sorted(
        standings.values(),
        key=lambda s: (-s.wins, -s.score_difference, -s.points_for),
    )


def split_history(matches: Iterable[ScoredMatch]) -> Tuple[list, list]:
    """(past, upcoming) - past means both scores entered. Each sorted by tour then court."""
    ordered = sorted(matches, key=lambda m: (m.tour_number, m.court))
    past = [m for m in ordered if is_scored(m)]
    upcoming = [m for m in ordered if not is_scored(m)]
    return past, upcoming
