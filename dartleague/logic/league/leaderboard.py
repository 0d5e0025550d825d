import time
from collections.abc import Iterable
from decimal import Decimal

from heliclockter import datetime_utc

from dartleague.config import config
from dartleague.exceptions import (
    AlreadyCalculated,
    DartLeagueError,
    ManualOverrideDisabled,
    NotFoundError,
)
from dartleague.logic.league.results import record_tournament_results
from dartleague.models.db.league import (
    LeaderboardEntryInsertable,
    LeagueTournamentResultWithTimestamp,
)
from dartleague.models.league import LeaderboardUpdateReport, TournamentRecalculationFailure
from dartleague.sql.league import (
    sql_get_league,
    sql_get_result_rows,
    sql_patch_leaderboard_points,
    sql_reset_leaderboard_rows_without_results,
    sql_upsert_leaderboard_rows,
)
from dartleague.sql.tournaments import sql_get_completed_tournaments_for_league
from dartleague.utils.id_types import LeagueId, PlayerId
from dartleague.utils.logging import logger


def _leaderboard_sort_key(entry: LeaderboardEntryInsertable) -> tuple[int, Decimal, str]:
    avg_placement = entry.avg_placement if entry.avg_placement is not None else Decimal("Infinity")
    return -entry.total_points, avg_placement, entry.player_id


def compute_leaderboard_entries(
    league_id: LeagueId, rows: Iterable[LeagueTournamentResultWithTimestamp]
) -> list[LeaderboardEntryInsertable]:
    points: dict[PlayerId, int] = {}
    placements: dict[PlayerId, list[int]] = {}
    last_tournament_at: dict[PlayerId, datetime_utc | None] = {}

    for row in rows:
        points[row.player_id] = points.get(row.player_id, 0) + row.points_awarded
        placements.setdefault(row.player_id, []).append(row.placement)

        previous = last_tournament_at.get(row.player_id)
        if row.tournament_created is not None and (
            previous is None or row.tournament_created > previous
        ):
            last_tournament_at[row.player_id] = row.tournament_created
        else:
            last_tournament_at.setdefault(row.player_id, previous)

    entries = [
        LeaderboardEntryInsertable(
            league_id=league_id,
            player_id=player_id,
            total_points=points[player_id],
            tournaments_played=len(player_placements),
            best_placement=min(player_placements),
            worst_placement=max(player_placements),
            avg_placement=Decimal(sum(player_placements)) / Decimal(len(player_placements)),
            last_tournament_at=last_tournament_at.get(player_id),
        )
        for player_id, player_placements in placements.items()
    ]
    return sorted(entries, key=_leaderboard_sort_key)


async def update_leaderboard_cache(league_id: LeagueId) -> list[LeaderboardEntryInsertable]:
    """
    Rebuild the cached leaderboard of a league from all of its result rows.

    Every entry is overwritten completely, which also discards manual point overrides. Players
    that no longer have any result rows keep their row, reset to zero.
    """
    rows = await sql_get_result_rows(league_id)
    entries = compute_leaderboard_entries(league_id, rows)
    await sql_upsert_leaderboard_rows(entries)
    await sql_reset_leaderboard_rows_without_results(
        league_id, [entry.player_id for entry in entries]
    )
    logger.info("Leaderboard cache of league_id=%s updated with %s entries", league_id, len(entries))
    return entries


async def update_leaderboard(league_id: LeagueId, *, force: bool = False) -> LeaderboardUpdateReport:
    """
    Record results of every completed tournament in the league, then rebuild the leaderboard.

    Tournaments that were calculated already are skipped unless ``force`` is set. A failure in
    one tournament is logged and reported, and the remaining tournaments are still processed.
    """
    started_at = time.monotonic()
    if await sql_get_league(league_id) is None:
        raise NotFoundError("League", league_id)

    tournaments = await sql_get_completed_tournaments_for_league(league_id)
    logger.info(
        "Found %s completed tournaments for league_id=%s", len(tournaments), league_id
    )
    report = LeaderboardUpdateReport(league_id=league_id, attempted=len(tournaments))

    for tournament in tournaments:
        if tournament.league_points_calculated and not force:
            report.skipped += 1
            continue
        try:
            await record_tournament_results(league_id, tournament.id, force=force)
            report.recalculated += 1
        except AlreadyCalculated:
            report.skipped += 1
        except (DartLeagueError, ValueError) as exc:
            logger.exception(
                "Calculating placements failed: tournament_id=%s league_id=%s",
                tournament.id,
                league_id,
            )
            report.failures.append(
                TournamentRecalculationFailure(tournament_id=tournament.id, error=str(exc))
            )

    entries = await update_leaderboard_cache(league_id)
    report.entries = len(entries)
    report.duration_ms = int((time.monotonic() - started_at) * 1000)
    if report.duration_ms >= config.leaderboard_recalc_warn_ms:
        logger.warning(
            "Leaderboard update was slow: league_id=%s duration_ms=%s",
            league_id,
            report.duration_ms,
        )
    return report


async def set_player_points(league_id: LeagueId, player_id: PlayerId, total_points: int) -> None:
    """
    Overwrite the cached total points of one player.

    This patches the leaderboard cache only: no result row is written and the placement
    statistics stay as they are. It exists to correct totals that have no matching tournament
    result, such as imported legacy standings, and the next full leaderboard rebuild replaces
    the value with the total derived from result rows.
    """
    league = await sql_get_league(league_id)
    if league is None:
        raise NotFoundError("League", league_id)
    if not league.scoring_rules.allow_manual_override:
        raise ManualOverrideDisabled(league_id)

    if not await sql_patch_leaderboard_points(league_id, player_id, total_points):
        raise NotFoundError(
            "Leaderboard entry",
            player_id,
            detail=f"Player {player_id} has no leaderboard entry in league {league_id}",
        )
    logger.info(
        "Manually set total points: league_id=%s player_id=%s total_points=%s",
        league_id,
        player_id,
        total_points,
    )
