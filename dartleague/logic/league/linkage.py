from dartleague.exceptions import AlreadyCalculated, AlreadyLinked, NotFoundError
from dartleague.logic.league.leaderboard import update_leaderboard_cache
from dartleague.logic.league.results import record_tournament_results
from dartleague.models.db.tournament import Tournament, TournamentStatus
from dartleague.models.league import TournamentLinkView
from dartleague.sql.league import sql_delete_result_rows, sql_get_league
from dartleague.sql.tournaments import (
    sql_get_tournament,
    sql_link_tournament_to_league,
    sql_unlink_tournament_from_league,
    sql_update_tournament_status,
)
from dartleague.utils.id_types import LeagueId, TournamentId
from dartleague.utils.logging import logger


async def link_tournament_to_league(
    league_id: LeagueId, tournament_id: TournamentId
) -> TournamentLinkView:
    if await sql_get_league(league_id) is None:
        raise NotFoundError("League", league_id)
    tournament = await sql_get_tournament(tournament_id)
    if tournament is None:
        raise NotFoundError("Tournament", tournament_id)
    if tournament.league_id is not None:
        raise AlreadyLinked(tournament_id)

    if not await sql_link_tournament_to_league(tournament_id, league_id):
        raise AlreadyLinked(tournament_id)

    linked = tournament.model_copy(
        update={"league_id": league_id, "league_points_calculated": False}
    )
    logger.info("Linked tournament_id=%s to league_id=%s", tournament_id, league_id)
    if linked.status is not TournamentStatus.COMPLETED:
        return TournamentLinkView(tournament=linked)

    results = await record_tournament_results(league_id, tournament_id, force=True)
    entries = await update_leaderboard_cache(league_id)
    return TournamentLinkView(
        tournament=linked.model_copy(update={"league_points_calculated": True}),
        results=results,
        leaderboard_entries=len(entries),
    )


async def unlink_tournament_from_league(league_id: LeagueId, tournament_id: TournamentId) -> None:
    if not await sql_unlink_tournament_from_league(tournament_id, league_id):
        raise NotFoundError(
            "Tournament",
            tournament_id,
            detail=f"Tournament {tournament_id} is not linked to league {league_id}",
        )

    await sql_delete_result_rows(league_id, tournament_id)
    await update_leaderboard_cache(league_id)
    logger.info("Unlinked tournament_id=%s from league_id=%s", tournament_id, league_id)


async def handle_tournament_status_change(
    tournament_id: TournamentId, status: TournamentStatus
) -> Tournament:
    """
    Persist a new tournament status. This clears the calculated flag, since the results the
    league points were based on may have changed. Completing a tournament that belongs to a
    league records its results and rebuilds the leaderboard right away.
    """
    tournament = await sql_update_tournament_status(tournament_id, status)
    if tournament is None:
        raise NotFoundError("Tournament", tournament_id)

    if tournament.status is not TournamentStatus.COMPLETED or tournament.league_id is None:
        return tournament

    try:
        await record_tournament_results(tournament.league_id, tournament_id)
    except AlreadyCalculated:
        return tournament
    await update_leaderboard_cache(tournament.league_id)
    return tournament.model_copy(update={"league_points_calculated": True})
