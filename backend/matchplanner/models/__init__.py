from matchplanner.models.generated_schedule import GeneratedSchedule
from matchplanner.models.match import Match
from matchplanner.models.player import Player, PlayerGroup
from matchplanner.models.tournament import Tournament

__all__ = [
    "Player",
    "PlayerGroup",
    "Tournament",
    "Match",
    "GeneratedSchedule",
]
