from datetime import datetime
from typing import List, Optional

from sqlmodel import Field, Relationship, SQLModel


class PlayerGroup(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    players: List["Player"] = Relationship(back_populates="group")


class Player(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    level: int = Field(default=5)  # 1..10
    group_id: Optional[int] = Field(default=None, foreign_key="playergroup.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    group: Optional[PlayerGroup] = Relationship(back_populates="players")
