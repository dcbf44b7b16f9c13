from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlmodel import Session, select, text

from matchplanner.database import get_session
from matchplanner.models.player import Player, PlayerGroup
from matchplanner.models.tournament import Tournament
from matchplanner.services.schedule_types import parse_time_of_day, validate_tournament_settings

router = APIRouter()


class TournamentCreate(BaseModel):
    name: str
    num_courts: int = Field(ge=1)
    players_per_team: int = Field(default=2, ge=1)
    match_duration_minutes: int = Field(ge=1)
    break_duration_minutes: int = Field(default=0, ge=0)
    start_time: str
    end_time: str
    balance_by_level: bool = False
    selected_group_id: Optional[int] = None
    selected_player_ids: List[int]

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_of_day(cls, v):
        parse_time_of_day(v)
        return v.strip()

    @field_validator("selected_player_ids")
    @classmethod
    def dedupe_selection(cls, v):
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def validate_settings(self):
        validate_tournament_settings(
            num_courts=self.num_courts,
            players_per_team=self.players_per_team,
            match_duration_minutes=self.match_duration_minutes,
            break_duration_minutes=self.break_duration_minutes,
            start_time=self.start_time,
            end_time=self.end_time,
            selected_count=len(self.selected_player_ids),
        )
        return self


class TournamentUpdate(BaseModel):
    name: Optional[str] = None
    num_courts: Optional[int] = Field(default=None, ge=1)
    players_per_team: Optional[int] = Field(default=None, ge=1)
    match_duration_minutes: Optional[int] = Field(default=None, ge=1)
    break_duration_minutes: Optional[int] = Field(default=None, ge=0)
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    balance_by_level: Optional[bool] = None
    selected_group_id: Optional[int] = None
    selected_player_ids: Optional[List[int]] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_of_day(cls, v):
        if v is None:
            return v
        parse_time_of_day(v)
        return v.strip()

    @field_validator("selected_player_ids")
    @classmethod
    def dedupe_selection(cls, v):
        return list(dict.fromkeys(v)) if v is not None else v


class TournamentResponse(BaseModel):
    id: int
    name: str
    num_courts: int
    players_per_team: int
    match_duration_minutes: int
    break_duration_minutes: int
    start_time: str
    end_time: str
    balance_by_level: bool
    selected_group_id: Optional[int] = None
    selected_player_ids: List[int]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


def _check_references(session: Session, selected_player_ids: List[int], selected_group_id: Optional[int]) -> None:
    if selected_group_id is not None and not session.get(PlayerGroup, selected_group_id):
        raise HTTPException(status_code=422, detail=f"Unknown group id {selected_group_id}")
    if selected_player_ids:
        known = set(session.exec(select(Player.id).where(Player.id.in_(selected_player_ids))).all())
        unknown = [pid for pid in selected_player_ids if pid not in known]
        if unknown:
            raise HTTPException(status_code=422, detail=f"Unknown player ids: {unknown}")


def get_tournament_or_404(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(session: Session = Depends(get_session)):
    """List all tournaments"""
    return session.exec(select(Tournament).order_by(Tournament.id)).all()


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(tournament_data: TournamentCreate, session: Session = Depends(get_session)):
    """Create a tournament. The schedule is generated on first access."""
    _check_references(session, tournament_data.selected_player_ids, tournament_data.selected_group_id)

    tournament = Tournament(**tournament_data.model_dump())
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Get a tournament by ID"""
    return get_tournament_or_404(session, tournament_id)


@router.put("/tournaments/{tournament_id}", response_model=TournamentResponse)
def update_tournament(tournament_id: int, tournament_data: TournamentUpdate, session: Session = Depends(get_session)):
    """Update settings. A schedule generated against the old settings is regenerated on next access."""
    tournament = get_tournament_or_404(session, tournament_id)

    update_data = tournament_data.model_dump(exclude_unset=True)
    if "name" in update_data:
        if not update_data["name"] or not update_data["name"].strip():
            raise HTTPException(status_code=422, detail="name cannot be empty")
        update_data["name"] = update_data["name"].strip()
    merged = {
        field: update_data.get(field, getattr(tournament, field))
        for field in (
            "num_courts",
            "players_per_team",
            "match_duration_minutes",
            "break_duration_minutes",
            "start_time",
            "end_time",
            "selected_player_ids",
            "selected_group_id",
        )
    }
    try:
        validate_tournament_settings(
            num_courts=merged["num_courts"],
            players_per_team=merged["players_per_team"],
            match_duration_minutes=merged["match_duration_minutes"],
            break_duration_minutes=merged["break_duration_minutes"],
            start_time=merged["start_time"],
            end_time=merged["end_time"],
            selected_count=len(merged["selected_player_ids"] or []),
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    _check_references(session, merged["selected_player_ids"] or [], merged["selected_group_id"])

    for field, value in update_data.items():
        setattr(tournament, field, value)

    tournament.updated_at = datetime.utcnow()
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.delete("/tournaments/{tournament_id}", status_code=204)
def delete_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Delete a tournament with its matches and generated schedule"""
    try:
        get_tournament_or_404(session, tournament_id)

        # Children before parent
        session.execute(
            text("DELETE FROM match WHERE tournament_id = :tournament_id"), {"tournament_id": tournament_id}
        )
        session.execute(
            text("DELETE FROM generatedschedule WHERE tournament_id = :tournament_id"),
            {"tournament_id": tournament_id},
        )
        session.execute(text("DELETE FROM tournament WHERE id = :tournament_id"), {"tournament_id": tournament_id})

        session.commit()
        return Response(status_code=204)
    except HTTPException:
        raise
    except Exception as e:
        session.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to delete tournament: {str(e)}")
