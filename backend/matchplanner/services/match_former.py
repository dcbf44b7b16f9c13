"""
Team formation for a single match.

Unbalanced: first half of the input order is team A, second half team B.
Fairness there comes from the pool's earlier shuffle.

Balanced by level: sort ascending by level and deal players alternately
(even index -> A, odd index -> B). If one side ends up oversized, move its
last (highest-level) players across until both sides are players_per_team.
This is a greedy heuristic, not an optimal level-sum split.
"""

from typing import List, Sequence, Tuple

from matchplanner.services.schedule_types import Player


def form_teams(
    players: Sequence[Player], players_per_team: int, balance_by_level: bool = False
) -> Tuple[List[Player], List[Player]]:
    """Split exactly 2 * players_per_team players into two teams."""
    if players_per_team < 1:
        raise ValueError(f"players_per_team must be >= 1, got {players_per_team}")
    if len(players) != players_per_team * 2:
        raise ValueError(f"Expected {players_per_team * 2} players, got {len(players)}")

    if not balance_by_level:
        return list(players[:players_per_team]), list(players[players_per_team:])

    ordered = sorted(players, key=lambda p: int(p.level))
    team_a: List[Player] = []
    team_b: List[Player] = []
    for i, player in enumerate(ordered):
        if i % 2 == 0:
            team_a.append(player)
        else:
            team_b.append(player)

    while len(team_a) > players_per_team:
        team_b.append(team_a.pop())
    while len(team_b) > players_per_team:
        team_a.append(team_b.pop())

    return team_a, team_b


def level_sum(team: Sequence[Player]) -> int:
    return sum(int(p.level) for p in team)
