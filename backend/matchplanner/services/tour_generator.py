"""
Tour generator - builds one tour (up to one match per court) from the pool.

Steps:
1. Reshuffle the full roster into a new pool if the pool cannot fill one match
2. Reserve up to courts * match_size players from the front of the pool
3. Court by court, form a match from the next match_size reserved players;
   stop as soon as fewer than match_size remain (remaining courts stay empty)
4. Stamp the tour with its timing
5. Players who played -> players_played; leftover reserve + untouched pool
   -> remaining_pool, handed back for recycling

A tour with fewer matches than courts, or none at all, is a valid tour.
"""

from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from matchplanner.services.match_former import form_teams, level_sum
from matchplanner.services.player_pool import PlayerPool
from matchplanner.services.schedule_types import Player, Tour, TourMatch, TournamentConfig
from matchplanner.services.schedule_window import TourTiming, next_tour_timing

logger = logging.getLogger(__name__)


def generate_tour(
    pool: PlayerPool,
    roster: Sequence[Player],
    config: TournamentConfig,
    previous_actual_end: Optional[datetime],
    tour_number: int = 1,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
    timing: Optional[TourTiming] = None,
) -> Tuple[Tour, PlayerPool]:
    """
    Generate one tour.

    Args:
        pool: Rotation queue to draw players from
        roster: Full selected roster, used when the pool must be reshuffled
        config: Tournament settings
        previous_actual_end: Actual end of the previous tour, None for the first
        tour_number: 1-based ordinal stamped on the tour
        now: Wall-clock anchor for time-of-day settings
        rng: Random source for reshuffles
        timing: Precomputed timing; computed from previous_actual_end when omitted

    Returns:
        (tour, remaining pool) - the remaining pool does not yet include the
        players who just played; use PlayerPool.recycle for the next tour.
    """
    match_size = config.match_size
    working_pool = pool.ensure_match_capacity(match_size, roster, rng)

    reserved, untouched = working_pool.take(config.num_courts * match_size)
    buffer = PlayerPool(reserved)

    matches: List[TourMatch] = []
    played: List[Player] = []
    for court in range(1, config.num_courts + 1):
        if len(buffer) < match_size:
            logger.debug(
                "Tour %d: %d players left, not enough for court %d; leaving remaining courts empty",
                tour_number,
                len(buffer),
                court,
            )
            break

        match_players, buffer = buffer.take(match_size)
        team_a, team_b = form_teams(match_players, config.players_per_team, config.balance_by_level)
        logger.debug(
            "Tour %d court %d: %s (%d) vs %s (%d)",
            tour_number,
            court,
            ", ".join(p.name for p in team_a),
            level_sum(team_a),
            ", ".join(p.name for p in team_b),
            level_sum(team_b),
        )
        matches.append(
            TourMatch(
                id=str(uuid.uuid4()),
                court=court,
                team_a=tuple(p.name for p in team_a),
                team_b=tuple(p.name for p in team_b),
            )
        )
        played.extend(match_players)

    if timing is None:
        timing = next_tour_timing(previous_actual_end, config, now)

    remaining = PlayerPool(buffer.players + untouched.players)
    tour = Tour(
        number=tour_number,
        matches=tuple(matches),
        start_time=timing.start_display,
        end_time=timing.end_display,
        actual_start=timing.start,
        actual_end=timing.end,
        players_played=tuple(played),
        remaining_pool=remaining.players,
    )
    return tour, remaining


def next_pool_after(tour: Tour) -> PlayerPool:
    """Pool for the tour following `tour`: bench first, then the players who just played."""
    return PlayerPool.recycle(tour.players_played, tour.remaining_pool)
