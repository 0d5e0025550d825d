from dartleague.exceptions import AlreadyCalculated, NotFoundError
from dartleague.logic.ranking.placements import extract_placements
from dartleague.logic.ranking.scoring import resolve_points
from dartleague.models.db.league import LeagueTournamentResultInsertable, PlacementRecord
from dartleague.models.db.tournament import TournamentData
from dartleague.models.scoring import ScoringRules
from dartleague.sql.league import sql_get_league_scoring_rules, sql_upsert_result_rows
from dartleague.sql.tournaments import sql_get_tournament_data, sql_mark_tournament_calculated
from dartleague.utils.id_types import LeagueId, TournamentId
from dartleague.utils.logging import logger


def build_result_rows(
    league_id: LeagueId,
    tournament_id: TournamentId,
    placements: list[PlacementRecord],
    rules: ScoringRules,
) -> list[LeagueTournamentResultInsertable]:
    return [
        LeagueTournamentResultInsertable(
            league_id=league_id,
            tournament_id=tournament_id,
            player_id=placement.player_id,
            placement=placement.placement,
            points_awarded=resolve_points(rules, placement),
        )
        for placement in placements
    ]


async def record_tournament_results(
    league_id: LeagueId,
    tournament_id: TournamentId,
    tournament: TournamentData | None = None,
    *,
    force: bool = False,
) -> list[LeagueTournamentResultInsertable]:
    """
    Rank a tournament's participants, award league points and upsert one result row per player.

    Rows are keyed by (league, tournament, player), so recording the same tournament twice
    rewrites the same rows. Afterwards the tournament is flagged as calculated; unless ``force``
    is set, a flagged tournament raises ``AlreadyCalculated`` without writing anything.
    """
    if tournament is None:
        tournament = await sql_get_tournament_data(tournament_id)
    if tournament is None or tournament.league_id != league_id:
        raise NotFoundError(
            "Tournament",
            tournament_id,
            detail=f"Tournament {tournament_id} not found or not part of league {league_id}",
        )

    if tournament.league_points_calculated and not force:
        raise AlreadyCalculated(tournament_id)

    rules = await sql_get_league_scoring_rules(league_id)
    if rules is None:
        raise NotFoundError("League", league_id)

    placements = extract_placements(tournament)
    rows = build_result_rows(league_id, tournament_id, placements, rules)
    if len(rows) > 0:
        await sql_upsert_result_rows(rows)
    else:
        logger.info("No placements found for tournament_id=%s", tournament_id)

    await sql_mark_tournament_calculated(tournament_id, True)
    logger.info(
        "Recorded %s result rows for tournament_id=%s league_id=%s",
        len(rows),
        tournament_id,
        league_id,
    )
    return rows
