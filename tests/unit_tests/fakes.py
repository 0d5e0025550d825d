from collections.abc import Sequence

from heliclockter import datetime_utc

from dartleague.models.db.league import (
    LeaderboardEntryInsertable,
    League,
    LeagueTournamentResultInsertable,
    LeagueTournamentResultWithTimestamp,
)
from dartleague.models.db.tournament import (
    GroupStanding,
    GroupWithStandings,
    PlayerRef,
    Tournament,
    TournamentData,
    TournamentFormat,
    TournamentStatus,
)
from dartleague.models.scoring import ScoringRules
from dartleague.utils.id_types import LeagueId, PlayerId, TournamentId


class InMemoryLeagueStore:
    """Stands in for the league and tournament tables of the database."""

    def __init__(self) -> None:
        self.leagues: dict[LeagueId, League] = {}
        self.tournaments: dict[TournamentId, TournamentData] = {}
        self.results: dict[tuple[LeagueId, TournamentId, PlayerId], LeagueTournamentResultInsertable] = {}
        self.leaderboard: dict[tuple[LeagueId, PlayerId], LeaderboardEntryInsertable] = {}
        self.upsert_calls = 0

    def add_league(self, league_id: str, rules: ScoringRules | None = None) -> League:
        league = League(
            id=LeagueId(league_id),
            name=f"League {league_id}",
            scoring_rules=rules or ScoringRules.standard(),
            created=datetime_utc.now(),
        )
        self.leagues[league.id] = league
        return league

    def add_tournament(self, tournament: TournamentData) -> None:
        self.tournaments[tournament.id] = tournament

    def _update_tournament(self, tournament_id: TournamentId, **values: object) -> None:
        self.tournaments[tournament_id] = self.tournaments[tournament_id].model_copy(update=values)

    async def get_league(self, league_id: LeagueId) -> League | None:
        return self.leagues.get(league_id)

    async def get_league_scoring_rules(self, league_id: LeagueId) -> ScoringRules | None:
        league = self.leagues.get(league_id)
        return league.scoring_rules if league is not None else None

    async def get_tournament(self, tournament_id: TournamentId) -> Tournament | None:
        return self.tournaments.get(tournament_id)

    async def get_tournament_data(self, tournament_id: TournamentId) -> TournamentData | None:
        return self.tournaments.get(tournament_id)

    async def get_completed_tournaments_for_league(self, league_id: LeagueId) -> list[Tournament]:
        return [
            tournament
            for tournament in self.tournaments.values()
            if tournament.league_id == league_id and tournament.status is TournamentStatus.COMPLETED
        ]

    async def mark_tournament_calculated(self, tournament_id: TournamentId, calculated: bool) -> None:
        self._update_tournament(tournament_id, league_points_calculated=calculated)

    async def link_tournament(self, tournament_id: TournamentId, league_id: LeagueId) -> bool:
        if self.tournaments[tournament_id].league_id is not None:
            return False
        self._update_tournament(tournament_id, league_id=league_id, league_points_calculated=False)
        return True

    async def unlink_tournament(self, tournament_id: TournamentId, league_id: LeagueId) -> bool:
        tournament = self.tournaments.get(tournament_id)
        if tournament is None or tournament.league_id != league_id:
            return False
        self._update_tournament(tournament_id, league_id=None, league_points_calculated=False)
        return True

    async def update_tournament_status(
        self, tournament_id: TournamentId, status: TournamentStatus
    ) -> Tournament | None:
        if tournament_id not in self.tournaments:
            return None
        self._update_tournament(tournament_id, status=status, league_points_calculated=False)
        return self.tournaments[tournament_id]

    async def upsert_result_rows(self, rows: Sequence[LeagueTournamentResultInsertable]) -> None:
        self.upsert_calls += 1
        for row in rows:
            self.results[(row.league_id, row.tournament_id, row.player_id)] = row

    async def delete_result_rows(self, league_id: LeagueId, tournament_id: TournamentId) -> None:
        for key in [key for key in self.results if key[:2] == (league_id, tournament_id)]:
            del self.results[key]

    async def get_result_rows(self, league_id: LeagueId) -> list[LeagueTournamentResultWithTimestamp]:
        return [
            LeagueTournamentResultWithTimestamp(
                **row.model_dump(),
                tournament_created=self.tournaments[row.tournament_id].created,
            )
            for row in self.results.values()
            if row.league_id == league_id
        ]

    async def upsert_leaderboard_rows(self, entries: Sequence[LeaderboardEntryInsertable]) -> None:
        for entry in entries:
            self.leaderboard[(entry.league_id, entry.player_id)] = entry

    async def reset_leaderboard_rows_without_results(
        self, league_id: LeagueId, player_ids_with_results: Sequence[PlayerId]
    ) -> None:
        for league_id_, player_id in list(self.leaderboard):
            if league_id_ == league_id and player_id not in player_ids_with_results:
                self.leaderboard[(league_id, player_id)] = LeaderboardEntryInsertable(
                    league_id=league_id, player_id=player_id
                )

    async def patch_leaderboard_points(
        self, league_id: LeagueId, player_id: PlayerId, total_points: int
    ) -> bool:
        entry = self.leaderboard.get((league_id, player_id))
        if entry is None:
            return False
        self.leaderboard[(league_id, player_id)] = entry.model_copy(
            update={"total_points": total_points}
        )
        return True

    def result_rows_for(self, tournament_id: str) -> list[tuple[str, int, int]]:
        return sorted(
            (row.player_id, row.placement, row.points_awarded)
            for row in self.results.values()
            if row.tournament_id == tournament_id
        )


class TournamentFactory:
    def __init__(self) -> None:
        self.created = datetime_utc.now()

    def __call__(
        self,
        tournament_id: str,
        ranking: list[str],
        *,
        league_id: str | None = None,
        status: TournamentStatus = TournamentStatus.COMPLETED,
        calculated: bool = False,
    ) -> TournamentData:
        """Group-only tournament whose standings finish in the order of ``ranking``."""
        standings = [
            GroupStanding(player=PlayerRef(id=PlayerId(player_id)), points=len(ranking) - index)
            for index, player_id in enumerate(ranking)
        ]
        return TournamentData(
            id=TournamentId(tournament_id),
            name=f"Tournament {tournament_id}",
            status=status,
            format=TournamentFormat.GROUPS_ONLY,
            league_id=LeagueId(league_id) if league_id is not None else None,
            league_points_calculated=calculated,
            created=self.created,
            groups=[GroupWithStandings(name="A", standings=standings)],
        )


