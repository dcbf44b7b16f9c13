"""
Round clock: the global countdown for the tour in play, or one countdown per match.

The client drives tick once per second. Expiry of the global countdown
advances the schedule exactly like an explicit advance; per-match timers
only stop when they reach zero.
"""
import random
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from matchplanner.database import get_session
from matchplanner.routes.schedule import (
    AdvanceResponse,
    ClockResponse,
    advance_response,
    load_schedule,
    require_tours,
)
from matchplanner.services.round_clock import RoundClock
from matchplanner.utils.clock import get_now, get_rng

router = APIRouter()


def _clock_response(clock: RoundClock) -> ClockResponse:
    return ClockResponse.model_validate(clock.to_dict())


@router.get("/tournaments/{tournament_id}/clock", response_model=ClockResponse)
def get_clock(
    tournament_id: int,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    rng: random.Random = Depends(get_rng),
):
    _controller, _config, schedule = load_schedule(session, tournament_id, now, rng)
    return _clock_response(schedule.clock)


@router.post("/tournaments/{tournament_id}/clock/toggle", response_model=ClockResponse)
def toggle_clock(
    tournament_id: int,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    rng: random.Random = Depends(get_rng),
):
    """Start or pause the global countdown."""
    controller, _config, schedule = load_schedule(session, tournament_id, now, rng)
    require_tours(schedule)
    updated = controller.update_clock(schedule, schedule.clock.toggle())
    return _clock_response(updated.clock)


@router.post("/tournaments/{tournament_id}/clock/start", response_model=ClockResponse)
def start_global_clock(
    tournament_id: int,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    rng: random.Random = Depends(get_rng),
):
    """Switch to (or resume) the global countdown; per-match timers are dropped."""
    controller, config, schedule = load_schedule(session, tournament_id, now, rng)
    require_tours(schedule)
    updated = controller.update_clock(schedule, schedule.clock.start_global(config.match_duration_minutes))
    return _clock_response(updated.clock)


@router.post("/tournaments/{tournament_id}/clock/reset", response_model=ClockResponse)
def reset_clock(
    tournament_id: int,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    rng: random.Random = Depends(get_rng),
):
    controller, config, schedule = load_schedule(session, tournament_id, now, rng)
    require_tours(schedule)
    updated = controller.update_clock(schedule, RoundClock.for_round(config.match_duration_minutes))
    return _clock_response(updated.clock)


@router.post("/tournaments/{tournament_id}/clock/individual", response_model=ClockResponse)
def manage_matches_individually(
    tournament_id: int,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    rng: random.Random = Depends(get_rng),
):
    """Stop the global countdown and give each match of the current tour its own timer."""
    controller, config, schedule = load_schedule(session, tournament_id, now, rng)
    require_tours(schedule)
    tour = schedule.current_tour
    match_ids = [m.id for m in tour.matches] if tour else []
    updated = controller.update_clock(
        schedule, schedule.clock.manage_individually(match_ids, config.match_duration_minutes)
    )
    return _clock_response(updated.clock)


@router.post("/tournaments/{tournament_id}/clock/matches/{match_id}/toggle", response_model=ClockResponse)
def toggle_match_clock(
    tournament_id: int,
    match_id: str,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    rng: random.Random = Depends(get_rng),
):
    controller, config, schedule = load_schedule(session, tournament_id, now, rng)
    require_tours(schedule)
    if match_id not in schedule.clock.match_timers:
        raise HTTPException(status_code=404, detail="Match timer not found")
    updated = controller.update_clock(
        schedule, schedule.clock.toggle_match(match_id, config.match_duration_minutes)
    )
    return _clock_response(updated.clock)


@router.post("/tournaments/{tournament_id}/clock/matches/{match_id}/reset", response_model=ClockResponse)
def reset_match_clock(
    tournament_id: int,
    match_id: str,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    rng: random.Random = Depends(get_rng),
):
    controller, config, schedule = load_schedule(session, tournament_id, now, rng)
    require_tours(schedule)
    if match_id not in schedule.clock.match_timers:
        raise HTTPException(status_code=404, detail="Match timer not found")
    updated = controller.update_clock(
        schedule, schedule.clock.reset_match(match_id, config.match_duration_minutes)
    )
    return _clock_response(updated.clock)


@router.post("/tournaments/{tournament_id}/clock/tick", response_model=AdvanceResponse)
def tick_clock(
    tournament_id: int,
    seconds: int = Query(default=1, ge=1, le=3600),
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    rng: random.Random = Depends(get_rng),
):
    """Apply elapsed seconds; global expiry advances to the next tour."""
    controller, config, schedule = load_schedule(session, tournament_id, now, rng)
    require_tours(schedule)
    return advance_response(controller.tick(schedule, config, seconds=seconds))
