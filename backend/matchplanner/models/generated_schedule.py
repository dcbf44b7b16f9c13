from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from matchplanner.models.tournament import Tournament


class GeneratedSchedule(SQLModel, table=True):
    """Tours generated for a tournament, the cursor, and the settings snapshot they were built from."""

    __table_args__ = (SAUniqueConstraint("tournament_id", name="uq_generated_schedule_tournament"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id")
    tours_json: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    current_tour_index: int = Field(default=0)
    state: str = Field(default="empty")  # "empty" | "pre_generated" | "active" | "exhausted"
    config_json: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    clock_json: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="schedule")
