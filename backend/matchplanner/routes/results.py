"""
Match history and player ranking, read from the persisted Match rows.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session, select

from matchplanner.database import get_session
from matchplanner.models.match import Match
from matchplanner.routes.schedule import ScoreUpdate, get_tournament_or_404
from matchplanner.services.ranking import calculate_ranking, split_history
from matchplanner.services.schedule_controller import ScheduleController, find_match
from matchplanner.services.schedule_store import SqlScheduleStore

router = APIRouter()


class MatchResponse(BaseModel):
    id: str
    tournament_id: int
    tour_number: int
    court: int
    team_a: List[str]
    team_b: List[str]
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    status: str
    start_time: str
    end_time: str
    actual_start: Optional[datetime] = None
    actual_end: Optional[datetime] = None

    class Config:
        from_attributes = True


class StandingResponse(BaseModel):
    name: str
    wins: int
    losses: int
    points_for: int
    points_against: int
    score_difference: int


def _tournament_matches(session: Session, tournament_id: int) -> List[Match]:
    return session.exec(select(Match).where(Match.tournament_id == tournament_id)).all()


@router.get("/tournaments/{tournament_id}/matches", response_model=List[MatchResponse])
def list_matches(
    tournament_id: int,
    status: Optional[str] = Query(default=None, pattern="^(past|upcoming)$"),
    session: Session = Depends(get_session),
):
    """
    Matches of a tournament ordered by tour then court.

    status=past returns matches with both scores entered, status=upcoming the rest.
    """
    get_tournament_or_404(session, tournament_id)
    past, upcoming = split_history(_tournament_matches(session, tournament_id))
    if status == "past":
        return past
    if status == "upcoming":
        return upcoming
    return sorted(past + upcoming, key=lambda m: (m.tour_number, m.court))


@router.patch("/tournaments/{tournament_id}/matches/{match_id}/score", response_model=MatchResponse)
def update_match_score(
    tournament_id: int,
    match_id: str,
    payload: ScoreUpdate,
    session: Session = Depends(get_session),
):
    """Correct one team's score on a match, scheduled or already played."""
    get_tournament_or_404(session, tournament_id)
    match = session.get(Match, match_id)
    if not match or match.tournament_id != tournament_id:
        raise HTTPException(status_code=404, detail="Match not found")

    store = SqlScheduleStore(session)
    schedule = store.read_schedule(tournament_id)
    position = find_match(schedule, match_id) if schedule else None
    if position is not None:
        # Keep the stored schedule in step so the next schedule write does not undo the edit
        tour_index, match_index = position
        ScheduleController(store).update_score(schedule, tour_index, match_index, payload.team, payload.score)
    else:
        store.persist_score(tournament_id, match_id, payload.team, payload.score)

    session.refresh(match)
    return match


@router.get("/tournaments/{tournament_id}/ranking", response_model=List[StandingResponse])
def get_ranking(tournament_id: int, session: Session = Depends(get_session)):
    """Player standings over every scored match: wins, then score difference, then points for."""
    get_tournament_or_404(session, tournament_id)
    return [s.to_dict() for s in calculate_ranking(_tournament_matches(session, tournament_id))]
