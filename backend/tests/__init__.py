# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from matchplanner.models.generated_schedule import GeneratedSchedule  # noqa: F401
from matchplanner.models.match import Match  # noqa: F401
from matchplanner.models.player import Player, PlayerGroup  # noqa: F401
from matchplanner.models.tournament import Tournament  # noqa: F401
