from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from matchplanner.models.tournament import Tournament


class Match(SQLModel, table=True):
    """One scheduled match; the history and ranking pages read these rows."""

    id: str = Field(primary_key=True)  # uuid4, assigned by the tour generator
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    tour_number: int
    court: int
    team_a: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    team_b: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    score_a: Optional[int] = Field(default=None)
    score_b: Optional[int] = Field(default=None)
    status: str = Field(default="upcoming")  # "upcoming" | "completed"

    # Tour timing: display strings plus timestamps for drift-correct recomputation
    start_time: str = Field(default="")
    end_time: str = Field(default="")
    actual_start: Optional[datetime] = Field(default=None)
    actual_end: Optional[datetime] = Field(default=None)

    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="matches")
