"""
Typed failures of the league scoring engine.

Single-unit operations raise these directly. Batch operations (full leaderboard update, player
merge) catch them per item and report them in an aggregate result instead.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import asyncpg

if TYPE_CHECKING:
    from dartleague.models.players import MergeReport


class DartLeagueError(Exception):
    pass


class NotFoundError(DartLeagueError):
    def __init__(self, entity: str, entity_id: str | None = None, detail: str | None = None):
        self.entity = entity
        self.entity_id = entity_id
        message = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(detail or message)


class AlreadyCalculated(DartLeagueError):
    """League points for this tournament were computed already and no recompute was forced."""

    def __init__(self, tournament_id: str):
        self.tournament_id = tournament_id
        super().__init__(f"League points for tournament {tournament_id} are already calculated")


class AlreadyLinked(DartLeagueError):
    def __init__(self, tournament_id: str):
        self.tournament_id = tournament_id
        super().__init__(f"Tournament {tournament_id} is already linked to a league")


class ManualOverrideDisabled(DartLeagueError):
    def __init__(self, league_id: str):
        self.league_id = league_id
        super().__init__(f"Manual point overrides are disabled for league {league_id}")


class PartialMergeFailure(DartLeagueError):
    def __init__(self, reports: Sequence[MergeReport]):
        self.reports = list(reports)
        failed = "; ".join(
            f"{report.source_player_id}: {', '.join(step.label for step in report.failed_steps)}"
            for report in self.reports
            if len(report.failed_steps) > 0
        )
        super().__init__(f"Merging players failed for {failed}")


class StoreError(DartLeagueError):
    def __init__(
        self,
        operation: str,
        *,
        table: str | None = None,
        record_id: str | None = None,
        cause: BaseException | None = None,
    ):
        self.operation = operation
        self.table = table
        self.record_id = record_id
        context = ", ".join(
            f"{key}={value}"
            for key, value in (("table", table), ("id", record_id))
            if value is not None
        )
        message = f"Store error during {operation}"
        if context:
            message += f" ({context})"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


@asynccontextmanager
async def translate_store_errors(
    operation: str, *, table: str | None = None, record_id: str | None = None
) -> AsyncIterator[None]:
    try:
        yield
    except (asyncpg.PostgresError, OSError) as exc:
        raise StoreError(operation, table=table, record_id=record_id, cause=exc) from exc
