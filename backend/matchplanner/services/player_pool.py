"""
Player pool - FIFO rotation queue of players waiting for a court.

Rotation discipline: players who just played go to the back, behind every
player who sat out, so absent a reshuffle nobody plays twice before every
other selected player has played once.

Reshuffle policy: a pool too small for one match is thrown away and replaced
by a fresh random permutation of the whole selected roster. This resets the
fairness ordering from scratch.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from matchplanner.services.schedule_types import Player

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerPool:
    players: Tuple[Player, ...] = ()

    def __len__(self) -> int:
        return len(self.players)

    def __iter__(self):
        return iter(self.players)

    def take(self, n: int) -> Tuple[Tuple[Player, ...], "PlayerPool"]:
        """Remove up to n players from the front, preserving order."""
        n = max(n, 0)
        return self.players[:n], PlayerPool(self.players[n:])

    @staticmethod
    def recycle(played: Iterable[Player], remaining: Iterable[Player]) -> "PlayerPool":
        """Next pool: everyone still waiting, then the players who just played."""
        return PlayerPool(tuple(remaining) + tuple(played))

    @classmethod
    def shuffled(cls, roster: Sequence[Player], rng: Optional[random.Random] = None) -> "PlayerPool":
        players = list(roster)
        (rng or random).shuffle(players)
        return cls(tuple(players))

    def ensure_match_capacity(
        self, match_size: int, roster: Sequence[Player], rng: Optional[random.Random] = None
    ) -> "PlayerPool":
        """Return self, or a reshuffled full roster if fewer than match_size players are waiting."""
        if len(self.players) >= match_size:
            return self
        logger.info(
            "Pool holds %d players, %d needed for a match; reshuffling %d selected players",
            len(self.players),
            match_size,
            len(roster),
        )
        return PlayerPool.shuffled(roster, rng)
