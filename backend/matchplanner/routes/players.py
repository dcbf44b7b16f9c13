from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session, select

from matchplanner.database import get_session
from matchplanner.models.player import Player, PlayerGroup
from matchplanner.models.tournament import Tournament

router = APIRouter()


class PlayerCreate(BaseModel):
    name: str
    level: int = Field(default=5, ge=1, le=10)
    group_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()


class PlayerUpdate(BaseModel):
    name: Optional[str] = None
    level: Optional[int] = Field(default=None, ge=1, le=10)
    group_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip() if v else v


class PlayerResponse(BaseModel):
    id: int
    name: str
    level: int
    group_id: Optional[int] = None

    class Config:
        from_attributes = True


class GroupCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()


class GroupResponse(BaseModel):
    id: int
    name: str
    player_ids: List[int] = []


def _group_response(session: Session, group: PlayerGroup) -> GroupResponse:
    members = session.exec(select(Player).where(Player.group_id == group.id).order_by(Player.id)).all()
    return GroupResponse(id=group.id, name=group.name, player_ids=[p.id for p in members])


def _require_group(session: Session, group_id: Optional[int]) -> None:
    if group_id is not None and not session.get(PlayerGroup, group_id):
        raise HTTPException(status_code=404, detail="Group not found")


@router.get("/players", response_model=List[PlayerResponse])
def list_players(group_id: Optional[int] = None, session: Session = Depends(get_session)):
    """List players, optionally restricted to one group"""
    query = select(Player).order_by(Player.id)
    if group_id is not None:
        query = query.where(Player.group_id == group_id)
    return session.exec(query).all()


@router.post("/players", response_model=PlayerResponse, status_code=201)
def create_player(player_data: PlayerCreate, session: Session = Depends(get_session)):
    _require_group(session, player_data.group_id)
    player = Player(**player_data.model_dump())
    session.add(player)
    session.commit()
    session.refresh(player)
    return player


@router.put("/players/{player_id}", response_model=PlayerResponse)
def update_player(player_id: int, player_data: PlayerUpdate, session: Session = Depends(get_session)):
    player = session.get(Player, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")

    update_data = player_data.model_dump(exclude_unset=True)
    if "group_id" in update_data:
        _require_group(session, update_data["group_id"])
    for field, value in update_data.items():
        setattr(player, field, value)

    session.add(player)
    session.commit()
    session.refresh(player)
    return player


@router.delete("/players/{player_id}", status_code=204)
def delete_player(player_id: int, session: Session = Depends(get_session)):
    """Delete a player. Tournaments keep the id in their selection; it is skipped at scheduling time."""
    player = session.get(Player, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")
    session.delete(player)
    session.commit()
    return Response(status_code=204)


@router.delete("/players/{player_id}/group", response_model=PlayerResponse)
def remove_player_from_group(player_id: int, session: Session = Depends(get_session)):
    player = session.get(Player, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")
    player.group_id = None
    session.add(player)
    session.commit()
    session.refresh(player)
    return player


@router.get("/groups", response_model=List[GroupResponse])
def list_groups(session: Session = Depends(get_session)):
    groups = session.exec(select(PlayerGroup).order_by(PlayerGroup.id)).all()
    return [_group_response(session, g) for g in groups]


@router.post("/groups", response_model=GroupResponse, status_code=201)
def create_group(group_data: GroupCreate, session: Session = Depends(get_session)):
    group = PlayerGroup(name=group_data.name)
    session.add(group)
    session.commit()
    session.refresh(group)
    return _group_response(session, group)


@router.delete("/groups/{group_id}", status_code=204)
def delete_group(group_id: int, session: Session = Depends(get_session)):
    """Delete a group; its players stay in the roster without a group"""
    group = session.get(PlayerGroup, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")

    for player in session.exec(select(Player).where(Player.group_id == group_id)).all():
        player.group_id = None
        session.add(player)
    for tournament in session.exec(select(Tournament).where(Tournament.selected_group_id == group_id)).all():
        tournament.selected_group_id = None
        session.add(tournament)
    session.delete(group)
    session.commit()
    return Response(status_code=204)


@router.post("/groups/{group_id}/players/{player_id}", response_model=GroupResponse)
def add_player_to_group(group_id: int, player_id: int, session: Session = Depends(get_session)):
    group = session.get(PlayerGroup, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")
    player = session.get(Player, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")

    player.group_id = group_id
    session.add(player)
    session.commit()
    return _group_response(session, group)
