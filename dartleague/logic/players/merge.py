"""
Merging duplicate player records.

All references to the source player are moved to the target player, one table column at a time
in the fixed order of ``MERGE_STEPS``. A failing step is recorded and the remaining steps still
run; the source player is only deleted once every step succeeded, so a partial merge can simply
be retried.
"""

from dartleague.exceptions import DartLeagueError, NotFoundError
from dartleague.models.players import (
    MergeReport,
    MergeStatus,
    MergeStep,
    MergeStepFailure,
    MergeStepOutcome,
    MergeStepSuccess,
    MergeStrategy,
)
from dartleague.sql.players import sql_delete_player, sql_get_player
from dartleague.sql.references import (
    delete_row,
    get_row_key,
    insert_row,
    list_referencing_rows,
    row_exists,
    update_column,
    update_references,
)
from dartleague.utils.id_types import PlayerId
from dartleague.utils.logging import logger

PLAYER_ROW_STEP = "players.id"

MERGE_STEPS: tuple[MergeStep, ...] = (
    MergeStep(
        table="tournament_players",
        strategy=MergeStrategy.UNIQUE_COMPOSITE,
        unique_columns=("tournament_id",),
        composite_primary_key=True,
    ),
    MergeStep(
        table="group_players",
        strategy=MergeStrategy.UNIQUE_COMPOSITE,
        unique_columns=("group_id",),
        composite_primary_key=True,
    ),
    MergeStep(table="matches", column="player1_id"),
    MergeStep(table="matches", column="player2_id"),
    MergeStep(table="matches", column="winner_id"),
    MergeStep(table="legs", column="player1_id"),
    MergeStep(table="legs", column="player2_id"),
    MergeStep(table="legs", column="winner_id"),
    MergeStep(table="dart_throws"),
    MergeStep(table="match_player_stats"),
    MergeStep(table="group_standings"),
    MergeStep(table="tournament_stats"),
    MergeStep(
        table="league_members",
        strategy=MergeStrategy.UNIQUE_COMPOSITE,
        unique_columns=("league_id",),
    ),
    MergeStep(
        table="league_tournament_results",
        strategy=MergeStrategy.UNIQUE_COMPOSITE,
        unique_columns=("league_id", "tournament_id"),
    ),
    MergeStep(
        table="league_leaderboard",
        strategy=MergeStrategy.UNIQUE_COMPOSITE,
        unique_columns=("league_id",),
    ),
)


async def _migrate_unique_composite(
    step: MergeStep, source_id: PlayerId, target_id: PlayerId
) -> int:
    source_rows = await list_referencing_rows(step.table, step.column, source_id)
    for row in source_rows:
        # Check for the target's conflicting row before touching this one.
        conflict_filter = {column: row[column] for column in step.unique_columns}
        target_has_row = await row_exists(step.table, {**conflict_filter, step.column: target_id})
        row_key = get_row_key(step.table, row)

        if target_has_row:
            await delete_row(step.table, row_key)
        elif step.composite_primary_key:
            # Target row first, so a failed write never leaves the player without a row.
            await insert_row(step.table, {**row, step.column: target_id})
            await delete_row(step.table, row_key)
        else:
            await update_column(step.table, row_key, step.column, target_id)
    return len(source_rows)


async def run_merge_step(
    step: MergeStep, source_id: PlayerId, target_id: PlayerId
) -> MergeStepOutcome:
    try:
        if step.strategy is MergeStrategy.UNIQUE_COMPOSITE:
            rows = await _migrate_unique_composite(step, source_id, target_id)
        else:
            rows = await update_references(step.table, step.column, source_id, target_id)
    except (DartLeagueError, ValueError) as exc:
        logger.warning(
            "Merging player references failed: step=%s source_player_id=%s target_player_id=%s error=%s",
            step.label,
            source_id,
            target_id,
            exc,
        )
        return MergeStepFailure(step=step.label, error=str(exc))
    return MergeStepSuccess(step=step.label, rows=rows)


async def merge_players(source_id: PlayerId, target_id: PlayerId) -> MergeReport:
    if source_id == target_id:
        raise ValueError("Cannot merge a player into itself")

    if await sql_get_player(target_id) is None:
        raise NotFoundError("Player", target_id)
    if await sql_get_player(source_id) is None:
        logger.info("Player %s was already merged, nothing to do", source_id)
        return MergeReport(
            source_player_id=source_id,
            target_player_id=target_id,
            status=MergeStatus.ALREADY_MERGED,
        )

    steps = [await run_merge_step(step, source_id, target_id) for step in MERGE_STEPS]
    report = MergeReport(
        source_player_id=source_id,
        target_player_id=target_id,
        status=MergeStatus.MERGED,
        steps=steps,
    )
    if len(report.failed_steps) > 0:
        report.status = MergeStatus.PARTIAL_FAILURE
        logger.warning(
            "Player %s was not deleted, %s merge steps failed",
            source_id,
            len(report.failed_steps),
        )
        return report

    try:
        await sql_delete_player(source_id)
    except DartLeagueError as exc:
        logger.warning("Could not delete source player %s: %s", source_id, exc)
        report.steps.append(MergeStepFailure(step=PLAYER_ROW_STEP, error=str(exc)))
        report.status = MergeStatus.PARTIAL_FAILURE
        return report

    report.source_deleted = True
    logger.info("Merged player %s into %s", source_id, target_id)
    return report


async def merge_many_players(
    source_ids: list[PlayerId], target_id: PlayerId
) -> list[MergeReport]:
    """
    Merge several duplicates into one target. A source that cannot be merged at all gets a
    failed report and the remaining sources are still merged.
    """
    reports = []
    for source_id in source_ids:
        try:
            reports.append(await merge_players(source_id, target_id))
        except (DartLeagueError, ValueError) as exc:
            logger.exception(
                "Merging player failed: source_player_id=%s target_player_id=%s",
                source_id,
                target_id,
            )
            reports.append(
                MergeReport(
                    source_player_id=source_id,
                    target_player_id=target_id,
                    status=MergeStatus.PARTIAL_FAILURE,
                    steps=[MergeStepFailure(step=PLAYER_ROW_STEP, error=str(exc))],
                )
            )
    return reports
