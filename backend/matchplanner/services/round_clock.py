"""
Round clock - countdown state for the tour in play.

Two mutually exclusive modes:
- global: one countdown for the whole tour; expiry advances to the next tour
- individual: one countdown per match; expiry only stops that match's timer

Switching modes clears the other mode's counters. The clock is driven by one
tick per second from a single cooperative source, so it carries no locks.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Tuple

MODE_GLOBAL = "global"
MODE_INDIVIDUAL = "individual"


@dataclass(frozen=True)
class MatchTimer:
    time_left: int
    is_running: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"time_left": self.time_left, "is_running": self.is_running}


@dataclass(frozen=True)
class RoundClock:
    mode: str = MODE_GLOBAL
    time_left: int = 0
    is_running: bool = False
    match_timers: Dict[str, MatchTimer] = field(default_factory=dict)

    @classmethod
    def for_round(cls, match_duration_minutes: int) -> "RoundClock":
        return cls(mode=MODE_GLOBAL, time_left=match_duration_minutes * 60, is_running=False)

    @classmethod
    def stopped(cls) -> "RoundClock":
        return cls(mode=MODE_GLOBAL, time_left=0, is_running=False)

    def toggle(self) -> "RoundClock":
        """Start/pause the global countdown. Individual mode is left untouched."""
        if self.mode != MODE_GLOBAL:
            return self
        return replace(self, is_running=not self.is_running)

    def start_global(self, match_duration_minutes: int) -> "RoundClock":
        time_left = self.time_left if self.time_left > 0 else match_duration_minutes * 60
        return RoundClock(mode=MODE_GLOBAL, time_left=time_left, is_running=True)

    def manage_individually(self, match_ids: Iterable[str], match_duration_minutes: int) -> "RoundClock":
        timers = {match_id: MatchTimer(time_left=match_duration_minutes * 60) for match_id in match_ids}
        return RoundClock(mode=MODE_INDIVIDUAL, time_left=self.time_left, is_running=False, match_timers=timers)

    def toggle_match(self, match_id: str, match_duration_minutes: int) -> "RoundClock":
        timer = self.match_timers.get(match_id)
        if timer is None:
            return self
        running = not timer.is_running
        time_left = timer.time_left
        if running and time_left <= 0:
            time_left = match_duration_minutes * 60
        timers = dict(self.match_timers)
        timers[match_id] = MatchTimer(time_left=time_left, is_running=running)
        return replace(self, match_timers=timers)

    def reset_match(self, match_id: str, match_duration_minutes: int) -> "RoundClock":
        timers = dict(self.match_timers)
        timers[match_id] = MatchTimer(time_left=match_duration_minutes * 60, is_running=False)
        return replace(self, match_timers=timers)

    def tick(self) -> Tuple["RoundClock", bool]:
        """Advance one second. Returns (clock, expired); only the global countdown expires."""
        if self.mode == MODE_GLOBAL:
            if not self.is_running:
                return self, False
            time_left = max(self.time_left - 1, 0)
            if time_left == 0:
                return replace(self, time_left=0, is_running=False), True
            return replace(self, time_left=time_left), False

        timers: Dict[str, MatchTimer] = {}
        for match_id, timer in self.match_timers.items():
            if not timer.is_running:
                timers[match_id] = timer
            elif timer.time_left > 1:
                timers[match_id] = MatchTimer(time_left=timer.time_left - 1, is_running=True)
            else:
                timers[match_id] = MatchTimer(time_left=0, is_running=False)
        return replace(self, match_timers=timers), False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "time_left": self.time_left,
            "is_running": self.is_running,
            "match_timers": {match_id: t.to_dict() for match_id, t in self.match_timers.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoundClock":
        timers = {
            match_id: MatchTimer(time_left=int(t.get("time_left", 0)), is_running=bool(t.get("is_running", False)))
            for match_id, t in (data.get("match_timers") or {}).items()
        }
        return cls(
            mode=data.get("mode", MODE_GLOBAL),
            time_left=int(data.get("time_left", 0)),
            is_running=bool(data.get("is_running", False)),
            match_timers=timers,
        )
