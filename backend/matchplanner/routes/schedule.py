"""
Tour schedule: generation, advancing, stepping back and score entry.

The schedule is generated lazily on first read and regenerated whenever the
tournament settings no longer match the snapshot it was built from.
"""
import random
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session

from matchplanner.database import get_session
from matchplanner.models.tournament import Tournament
from matchplanner.services.schedule_controller import (
    AdvanceResult,
    ScheduleController,
    bench_players,
    resume_index,
)
from matchplanner.services.schedule_store import SqlScheduleStore, config_from_tournament
from matchplanner.services.schedule_types import Schedule, TournamentConfig
from matchplanner.services.schedule_window import max_possible_tours
from matchplanner.utils.clock import get_now, get_rng

router = APIRouter()


# ============================================================================
# Response models
# ============================================================================


class PlayerRef(BaseModel):
    id: int
    name: str
    level: int
    group_id: Optional[int] = None


class TourMatchResponse(BaseModel):
    id: str
    court: int
    team_a: List[str]
    team_b: List[str]
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    status: str


class TourResponse(BaseModel):
    number: int
    matches: List[TourMatchResponse]
    start_time: str
    end_time: str
    actual_start: datetime
    actual_end: datetime
    players_played: List[PlayerRef]
    remaining_pool: List[PlayerRef]
    is_completed: bool


class MatchTimerResponse(BaseModel):
    time_left: int
    is_running: bool


class ClockResponse(BaseModel):
    mode: str
    time_left: int
    is_running: bool
    match_timers: Dict[str, MatchTimerResponse] = {}


class ScheduleResponse(BaseModel):
    tournament_id: Optional[int] = None
    config: Dict[str, Any]
    tours: List[TourResponse]
    current_index: int
    state: str
    clock: ClockResponse


class AdvanceResponse(BaseModel):
    schedule: ScheduleResponse
    terminal: bool


class ScheduleStatusResponse(BaseModel):
    state: str
    current_index: int
    resume_index: int
    tour_count: int
    exhausted: bool
    next_action: str
    max_tours: int
    bench: List[PlayerRef]


# ============================================================================
# Request models
# ============================================================================


class AdvanceRequest(BaseModel):
    finished_at: Optional[datetime] = None

    @field_validator("finished_at")
    @classmethod
    def to_local_naive(cls, v):
        # Tour timestamps are naive local wall-clock times
        if v is not None and v.tzinfo is not None:
            return v.astimezone().replace(tzinfo=None)
        return v


class ScoreUpdate(BaseModel):
    team: Literal["team_a", "team_b"]
    score: Optional[int] = Field(default=None, ge=0)


# ============================================================================
# Helpers
# ============================================================================


def schedule_response(schedule: Schedule) -> ScheduleResponse:
    return ScheduleResponse.model_validate(schedule.to_dict())


def advance_response(result: AdvanceResult) -> AdvanceResponse:
    return AdvanceResponse(schedule=schedule_response(result.schedule), terminal=result.terminal)


def get_tournament_or_404(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


def build_controller(session: Session, now: datetime, rng: random.Random) -> ScheduleController:
    # One request sees one wall-clock instant
    return ScheduleController(SqlScheduleStore(session), now=lambda: now, rng=rng)


def load_schedule(
    session: Session, tournament_id: int, now: datetime, rng: random.Random
) -> tuple[ScheduleController, TournamentConfig, Schedule]:
    """Controller, live config and current (possibly regenerated) schedule of a tournament."""
    tournament = get_tournament_or_404(session, tournament_id)
    config = config_from_tournament(tournament)
    controller = build_controller(session, now, rng)
    schedule = controller.ensure_schedule(config)
    return controller, config, schedule


def require_tours(schedule: Schedule) -> None:
    if not schedule.tours:
        raise HTTPException(
            status_code=409,
            detail="No tour fits the tournament window; nothing is scheduled",
        )


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/tournaments/{tournament_id}/schedule", response_model=ScheduleResponse)
def get_schedule(
    tournament_id: int,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    rng: random.Random = Depends(get_rng),
):
    """Current schedule; generated on first access and after settings changes."""
    _controller, _config, schedule = load_schedule(session, tournament_id, now, rng)
    return schedule_response(schedule)


@router.post("/tournaments/{tournament_id}/schedule/generate", response_model=ScheduleResponse)
def generate_schedule(
    tournament_id: int,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    rng: random.Random = Depends(get_rng),
):
    """Discard the stored schedule and pre-generate a fresh one from now."""
    tournament = get_tournament_or_404(session, tournament_id)
    controller = build_controller(session, now, rng)
    schedule = controller.generate_schedule(config_from_tournament(tournament))
    require_tours(schedule)
    return schedule_response(schedule)


@router.post("/tournaments/{tournament_id}/schedule/advance", response_model=AdvanceResponse)
def advance_schedule(
    tournament_id: int,
    payload: Optional[AdvanceRequest] = None,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    rng: random.Random = Depends(get_rng),
):
    """Finish the current tour and move to the next one (terminal when the window is used up)."""
    controller, config, schedule = load_schedule(session, tournament_id, now, rng)
    require_tours(schedule)
    finished_at = payload.finished_at if payload else None
    return advance_response(controller.advance(schedule, config, finished_at=finished_at))


@router.post("/tournaments/{tournament_id}/schedule/previous", response_model=ScheduleResponse)
def previous_tour(
    tournament_id: int,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    rng: random.Random = Depends(get_rng),
):
    controller, config, schedule = load_schedule(session, tournament_id, now, rng)
    require_tours(schedule)
    return schedule_response(controller.step_back(schedule, config))


@router.patch(
    "/tournaments/{tournament_id}/schedule/tours/{tour_index}/matches/{match_index}/score",
    response_model=ScheduleResponse,
)
def update_tour_score(
    tournament_id: int,
    tour_index: int,
    match_index: int,
    payload: ScoreUpdate,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    rng: random.Random = Depends(get_rng),
):
    """Set or clear (score=null) one team's score by tour and court position."""
    controller, _config, schedule = load_schedule(session, tournament_id, now, rng)
    require_tours(schedule)
    try:
        updated = controller.update_score(schedule, tour_index, match_index, payload.team, payload.score)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return schedule_response(updated)


@router.get("/tournaments/{tournament_id}/schedule/status", response_model=ScheduleStatusResponse)
def get_schedule_status(
    tournament_id: int,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
    rng: random.Random = Depends(get_rng),
):
    """Where the event stands: cursor, exhaustion, the next operator action and who sits out."""
    controller, config, schedule = load_schedule(session, tournament_id, now, rng)
    roster = controller.store.list_selected_players(config.selected_player_ids)
    return ScheduleStatusResponse(
        state=schedule.state.value,
        current_index=schedule.current_index,
        resume_index=resume_index(schedule.tours),
        tour_count=len(schedule.tours),
        exhausted=controller.is_exhausted(schedule, config),
        next_action=controller.next_action(schedule, config),
        max_tours=max_possible_tours(config, now),
        bench=[PlayerRef(**p.to_dict()) for p in bench_players(schedule, roster)],
    )
