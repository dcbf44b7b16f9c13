"""
SQL-backed persistence collaborator for the schedule controller.

Writes commit immediately; the engine does not wait on or inspect them.
"""

from datetime import datetime
from typing import List, Optional, Sequence

from sqlmodel import Session, select

from matchplanner.models.generated_schedule import GeneratedSchedule
from matchplanner.models.match import Match
from matchplanner.models.player import Player as PlayerModel
from matchplanner.models.tournament import Tournament
from matchplanner.services.round_clock import RoundClock
from matchplanner.services.schedule_types import (
    TEAM_A,
    TEAM_B,
    Player,
    Schedule,
    ScheduleState,
    Tour,
    TournamentConfig,
    parse_time_of_day,
)


def config_from_tournament(tournament: Tournament) -> TournamentConfig:
    """Live settings of a tournament row as an engine snapshot."""
    return TournamentConfig(
        tournament_id=tournament.id,
        name=tournament.name,
        num_courts=tournament.num_courts,
        players_per_team=tournament.players_per_team,
        match_duration_minutes=tournament.match_duration_minutes,
        break_duration_minutes=tournament.break_duration_minutes,
        start_time=parse_time_of_day(tournament.start_time),
        end_time=parse_time_of_day(tournament.end_time),
        balance_by_level=bool(tournament.balance_by_level),
        selected_player_ids=tuple(tournament.selected_player_ids or ()),
    )


def to_engine_player(row: PlayerModel) -> Player:
    return Player(id=row.id, name=row.name, level=row.level, group_id=row.group_id)


class SqlScheduleStore:
    def __init__(self, session: Session):
        self.session = session

    def list_selected_players(self, player_ids: Sequence[int]) -> List[Player]:
        """Players in the requested order; unknown ids are skipped."""
        if not player_ids:
            return []
        rows = self.session.exec(select(PlayerModel).where(PlayerModel.id.in_(list(player_ids)))).all()
        by_id = {row.id: row for row in rows}
        return [to_engine_player(by_id[pid]) for pid in player_ids if pid in by_id]

    def persist_score(self, tournament_id: Optional[int], match_id: str, team: str, score: Optional[int]) -> None:
        match = self.session.get(Match, match_id)
        if match is None or match.tournament_id != tournament_id:
            return
        if team == TEAM_A:
            match.score_a = score
        elif team == TEAM_B:
            match.score_b = score
        else:
            raise ValueError(f"Unknown team '{team}'")
        match.updated_at = datetime.utcnow()
        self.session.add(match)
        self.session.commit()

    def persist_schedule(self, schedule: Schedule) -> None:
        if schedule.tournament_id is None:
            return

        row = self.session.exec(
            select(GeneratedSchedule).where(GeneratedSchedule.tournament_id == schedule.tournament_id)
        ).first()
        if row is None:
            row = GeneratedSchedule(tournament_id=schedule.tournament_id)

        row.tours_json = [t.to_dict() for t in schedule.tours]
        row.current_tour_index = schedule.current_index
        row.state = schedule.state.value
        row.config_json = schedule.config.to_dict()
        row.clock_json = schedule.clock.to_dict()
        row.updated_at = datetime.utcnow()
        self.session.add(row)

        self._sync_matches(schedule)
        self.session.commit()

    def read_schedule(self, tournament_id: Optional[int]) -> Optional[Schedule]:
        if tournament_id is None:
            return None
        row = self.session.exec(
            select(GeneratedSchedule).where(GeneratedSchedule.tournament_id == tournament_id)
        ).first()
        if row is None or not row.config_json:
            return None
        return Schedule(
            tournament_id=tournament_id,
            config=TournamentConfig.from_dict(row.config_json),
            tours=tuple(Tour.from_dict(t) for t in row.tours_json or ()),
            current_index=row.current_tour_index,
            state=ScheduleState(row.state),
            clock=RoundClock.from_dict(row.clock_json or {}),
        )

    def _sync_matches(self, schedule: Schedule) -> None:
        """One Match row per scheduled match; rows from a superseded schedule are removed."""
        existing = {
            m.id: m for m in self.session.exec(select(Match).where(Match.tournament_id == schedule.tournament_id)).all()
        }
        keep = set()
        now = datetime.utcnow()
        for tour, tour_match in schedule.all_matches():
            keep.add(tour_match.id)
            row = existing.get(tour_match.id)
            if row is None:
                row = Match(
                    id=tour_match.id,
                    tournament_id=schedule.tournament_id,
                    tour_number=tour.number,
                    court=tour_match.court,
                    team_a=list(tour_match.team_a),
                    team_b=list(tour_match.team_b),
                )
            row.score_a = tour_match.score_a
            row.score_b = tour_match.score_b
            row.status = tour_match.status
            row.start_time = tour.start_time
            row.end_time = tour.end_time
            row.actual_start = tour.actual_start
            row.actual_end = tour.actual_end
            row.updated_at = now
            self.session.add(row)

        for match_id, row in existing.items():
            if match_id not in keep:
                self.session.delete(row)
