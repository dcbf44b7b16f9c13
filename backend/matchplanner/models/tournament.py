from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from matchplanner.models.generated_schedule import GeneratedSchedule
    from matchplanner.models.match import Match


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    num_courts: int = Field(default=1)
    players_per_team: int = Field(default=2)
    match_duration_minutes: int = Field(default=10)
    break_duration_minutes: int = Field(default=0)
    start_time: str  # "HH:MM" wall-clock
    end_time: str  # "HH:MM" wall-clock
    balance_by_level: bool = Field(default=False)
    selected_group_id: Optional[int] = Field(default=None, foreign_key="playergroup.id")
    selected_player_ids: List[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    matches: List["Match"] = Relationship(back_populates="tournament")
    schedule: Optional["GeneratedSchedule"] = Relationship(
        back_populates="tournament", sa_relationship_kwargs={"uselist": False}
    )
