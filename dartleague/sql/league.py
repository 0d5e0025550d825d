import json
from collections.abc import Sequence
from typing import Any

from databases.interfaces import Record
from heliclockter import datetime_utc

from dartleague.database import database
from dartleague.exceptions import StoreError, translate_store_errors
from dartleague.models.db.league import (
    LeaderboardEntryInsertable,
    LeaderboardEntryWithPlayer,
    League,
    LeagueMemberInsertable,
    LeagueMemberRole,
    LeagueMemberWithPlayer,
    LeagueTournamentResultInsertable,
    LeagueWithCounts,
    LeagueTournamentResultWithTimestamp,
)
from dartleague.models.scoring import ScoringRules
from dartleague.utils.id_types import LeagueId, PlayerId, TournamentId
from dartleague.utils.types import generate_id


def _parse_scoring_rules(raw: Any) -> ScoringRules:
    if raw is None:
        return ScoringRules.standard()
    if isinstance(raw, (str, bytes)):
        raw = json.loads(raw)
    return ScoringRules.model_validate(raw)


def _league_values(row: Record) -> dict[str, Any]:
    league = dict(row._mapping)
    league["scoring_rules"] = _parse_scoring_rules(league["scoring_rules"])
    return league


async def sql_get_league(league_id: LeagueId) -> League | None:
    query = """
        SELECT id, name, description, status, scoring_rules, created
        FROM leagues
        WHERE id = :league_id
        AND deleted IS FALSE
        """
    async with translate_store_errors("read league", table="leagues", record_id=league_id):
        result = await database.fetch_one(query=query, values={"league_id": league_id})
    if result is None:
        return None

    return League.model_validate(_league_values(result))


async def sql_get_leagues() -> list[LeagueWithCounts]:
    query = """
        SELECT
            l.id,
            l.name,
            l.description,
            l.status,
            l.scoring_rules,
            l.created,
            (
                SELECT COUNT(*)
                FROM league_members lm
                WHERE lm.league_id = l.id
                AND lm.left_at IS NULL
            ) AS member_count,
            (
                SELECT COUNT(*)
                FROM tournaments t
                WHERE t.league_id = l.id
                AND t.deleted IS FALSE
            ) AS tournament_count
        FROM leagues l
        WHERE l.deleted IS FALSE
        ORDER BY l.created DESC
        """
    async with translate_store_errors("read leagues", table="leagues"):
        rows = await database.fetch_all(query=query)
    return [LeagueWithCounts.model_validate(_league_values(row)) for row in rows]


async def sql_create_league(
    name: str, description: str | None, status: str, rules: ScoringRules
) -> League:
    query = """
        INSERT INTO leagues (id, name, description, status, scoring_rules, created, updated)
        VALUES (
            :id,
            :name,
            :description,
            :status,
            CAST(:scoring_rules AS JSON),
            :created,
            :created
        )
        RETURNING id, name, description, status, scoring_rules, created
        """
    league_id = generate_id()
    async with translate_store_errors("create league", table="leagues", record_id=league_id):
        result = await database.fetch_one(
            query=query,
            values={
                "id": league_id,
                "name": name.strip(),
                "description": description,
                "status": status,
                "scoring_rules": json.dumps(rules.to_storage()),
                "created": datetime_utc.now(),
            },
        )
    if result is None:
        raise StoreError("create league", table="leagues", record_id=league_id)
    return League.model_validate(_league_values(result))


async def sql_update_league(
    league_id: LeagueId, name: str | None, description: str | None, status: str | None
) -> League | None:
    league = await sql_get_league(league_id)
    if league is None:
        return None

    query = """
        UPDATE leagues
        SET name = :name, description = :description, status = :status, updated = :updated
        WHERE id = :league_id
        """
    async with translate_store_errors("update league", table="leagues", record_id=league_id):
        await database.execute(
            query=query,
            values={
                "league_id": league_id,
                "name": league.name if name is None else name.strip(),
                "description": league.description if description is None else description,
                "status": league.status if status is None else status,
                "updated": datetime_utc.now(),
            },
        )
    return await sql_get_league(league_id)


async def sql_delete_league(league_id: LeagueId) -> bool:
    query = """
        UPDATE leagues
        SET deleted = TRUE, updated = :updated
        WHERE id = :league_id
        AND deleted IS FALSE
        RETURNING id
        """
    async with translate_store_errors("delete league", table="leagues", record_id=league_id):
        deleted_id = await database.fetch_val(
            query=query, values={"league_id": league_id, "updated": datetime_utc.now()}
        )
    return deleted_id is not None


async def sql_upsert_league_members(members: Sequence[LeagueMemberInsertable]) -> None:
    query = """
        INSERT INTO league_members (id, league_id, player_id, role, is_active, joined_at)
        VALUES (:id, :league_id, :player_id, :role, :is_active, :joined_at)
        ON CONFLICT (league_id, player_id)
        DO UPDATE
        SET
            role = EXCLUDED.role,
            is_active = EXCLUDED.is_active,
            left_at = NULL
        """
    if len(members) < 1:
        return

    joined_at = datetime_utc.now()
    async with translate_store_errors(
        "upsert league members", table="league_members", record_id=members[0].league_id
    ):
        async with database.transaction():
            for member in members:
                await database.execute(
                    query=query,
                    values={
                        "id": generate_id(),
                        "joined_at": joined_at,
                        **member.model_dump(exclude={"role"}),
                        "role": member.role.value,
                    },
                )


async def sql_get_league_members(league_id: LeagueId) -> list[LeagueMemberWithPlayer]:
    query = """
        SELECT lm.*, p.name AS player_name
        FROM league_members lm
        LEFT JOIN players p ON p.id = lm.player_id
        WHERE lm.league_id = :league_id
        AND lm.left_at IS NULL
        ORDER BY lm.joined_at ASC, p.name ASC
        """
    async with translate_store_errors("read league members", table="league_members", record_id=league_id):
        rows = await database.fetch_all(query=query, values={"league_id": league_id})
    return [LeagueMemberWithPlayer.model_validate(dict(row._mapping)) for row in rows]


async def sql_get_league_member(
    league_id: LeagueId, player_id: PlayerId
) -> LeagueMemberWithPlayer | None:
    query = """
        SELECT lm.*, p.name AS player_name
        FROM league_members lm
        LEFT JOIN players p ON p.id = lm.player_id
        WHERE lm.league_id = :league_id
        AND lm.player_id = :player_id
        """
    async with translate_store_errors("read league member", table="league_members", record_id=player_id):
        result = await database.fetch_one(
            query=query, values={"league_id": league_id, "player_id": player_id}
        )
    return LeagueMemberWithPlayer.model_validate(dict(result._mapping)) if result is not None else None


async def sql_update_league_member(
    league_id: LeagueId,
    player_id: PlayerId,
    is_active: bool | None,
    role: LeagueMemberRole | None,
    left: bool | None,
) -> LeagueMemberWithPlayer | None:
    member = await sql_get_league_member(league_id, player_id)
    if member is None:
        return None

    if left is None:
        left_at = member.left_at
    else:
        left_at = (member.left_at or datetime_utc.now()) if left else None

    query = """
        UPDATE league_members
        SET is_active = :is_active, role = :role, left_at = :left_at
        WHERE league_id = :league_id
        AND player_id = :player_id
        """
    async with translate_store_errors("update league member", table="league_members", record_id=player_id):
        await database.execute(
            query=query,
            values={
                "league_id": league_id,
                "player_id": player_id,
                "is_active": member.is_active if is_active is None else is_active,
                "role": (member.role if role is None else role).value,
                "left_at": left_at,
            },
        )
    return await sql_get_league_member(league_id, player_id)


async def sql_remove_league_member(league_id: LeagueId, player_id: PlayerId) -> bool:
    query = """
        UPDATE league_members
        SET left_at = :left_at, is_active = FALSE
        WHERE league_id = :league_id
        AND player_id = :player_id
        AND left_at IS NULL
        RETURNING id
        """
    async with translate_store_errors("remove league member", table="league_members", record_id=player_id):
        removed_id = await database.fetch_val(
            query=query,
            values={"league_id": league_id, "player_id": player_id, "left_at": datetime_utc.now()},
        )
    return removed_id is not None


async def sql_get_league_scoring_rules(league_id: LeagueId) -> ScoringRules | None:
    league = await sql_get_league(league_id)
    return league.scoring_rules if league is not None else None


async def sql_update_league_scoring_rules(league_id: LeagueId, rules: ScoringRules) -> None:
    query = """
        UPDATE leagues
        SET scoring_rules = CAST(:scoring_rules AS JSON), updated = :updated
        WHERE id = :league_id
        """
    async with translate_store_errors("update scoring rules", table="leagues", record_id=league_id):
        await database.execute(
            query=query,
            values={
                "league_id": league_id,
                "scoring_rules": json.dumps(rules.to_storage()),
                "updated": datetime_utc.now(),
            },
        )


async def sql_upsert_result_rows(rows: Sequence[LeagueTournamentResultInsertable]) -> None:
    query = """
        INSERT INTO league_tournament_results (
            id,
            league_id,
            tournament_id,
            player_id,
            placement,
            points_awarded,
            created
        )
        VALUES (
            :id,
            :league_id,
            :tournament_id,
            :player_id,
            :placement,
            :points_awarded,
            :created
        )
        ON CONFLICT (league_id, tournament_id, player_id)
        DO UPDATE
        SET
            placement = EXCLUDED.placement,
            points_awarded = EXCLUDED.points_awarded
        """
    if len(rows) < 1:
        return

    created = datetime_utc.now()
    async with translate_store_errors(
        "upsert result rows", table="league_tournament_results", record_id=rows[0].tournament_id
    ):
        async with database.transaction():
            for row in rows:
                await database.execute(
                    query=query,
                    values={"id": generate_id(), "created": created, **row.model_dump()},
                )


async def sql_delete_result_rows(league_id: LeagueId, tournament_id: TournamentId) -> None:
    query = """
        DELETE FROM league_tournament_results
        WHERE league_id = :league_id
        AND tournament_id = :tournament_id
        """
    async with translate_store_errors(
        "delete result rows", table="league_tournament_results", record_id=tournament_id
    ):
        await database.execute(
            query=query, values={"league_id": league_id, "tournament_id": tournament_id}
        )


async def sql_get_result_rows(league_id: LeagueId) -> list[LeagueTournamentResultWithTimestamp]:
    query = """
        SELECT
            ltr.league_id,
            ltr.tournament_id,
            ltr.player_id,
            ltr.placement,
            ltr.points_awarded,
            t.created AS tournament_created
        FROM league_tournament_results ltr
        LEFT JOIN tournaments t ON t.id = ltr.tournament_id
        WHERE ltr.league_id = :league_id
        ORDER BY t.created DESC NULLS LAST, ltr.tournament_id ASC, ltr.placement ASC
        """
    async with translate_store_errors("read result rows", table="league_tournament_results", record_id=league_id):
        rows = await database.fetch_all(query=query, values={"league_id": league_id})
    return [LeagueTournamentResultWithTimestamp.model_validate(dict(row._mapping)) for row in rows]


async def sql_upsert_leaderboard_rows(entries: Sequence[LeaderboardEntryInsertable]) -> None:
    query = """
        INSERT INTO league_leaderboard (
            id,
            league_id,
            player_id,
            total_points,
            tournaments_played,
            best_placement,
            worst_placement,
            avg_placement,
            last_tournament_at,
            updated
        )
        VALUES (
            :id,
            :league_id,
            :player_id,
            :total_points,
            :tournaments_played,
            :best_placement,
            :worst_placement,
            :avg_placement,
            :last_tournament_at,
            :updated
        )
        ON CONFLICT (league_id, player_id)
        DO UPDATE
        SET
            total_points = EXCLUDED.total_points,
            tournaments_played = EXCLUDED.tournaments_played,
            best_placement = EXCLUDED.best_placement,
            worst_placement = EXCLUDED.worst_placement,
            avg_placement = EXCLUDED.avg_placement,
            last_tournament_at = EXCLUDED.last_tournament_at,
            updated = EXCLUDED.updated
        """
    if len(entries) < 1:
        return

    updated = datetime_utc.now()
    async with translate_store_errors(
        "upsert leaderboard", table="league_leaderboard", record_id=entries[0].league_id
    ):
        async with database.transaction():
            for entry in entries:
                await database.execute(
                    query=query,
                    values={"id": generate_id(), "updated": updated, **entry.model_dump()},
                )


async def sql_reset_leaderboard_rows_without_results(
    league_id: LeagueId, player_ids_with_results: Sequence[PlayerId]
) -> None:
    query = """
        UPDATE league_leaderboard
        SET
            total_points = 0,
            tournaments_played = 0,
            best_placement = NULL,
            worst_placement = NULL,
            avg_placement = NULL,
            last_tournament_at = NULL,
            updated = :updated
        WHERE league_id = :league_id
        AND NOT (player_id = ANY(:player_ids))
        """
    async with translate_store_errors("reset leaderboard rows", table="league_leaderboard", record_id=league_id):
        await database.execute(
            query=query,
            values={
                "league_id": league_id,
                "player_ids": list(player_ids_with_results),
                "updated": datetime_utc.now(),
            },
        )


async def sql_patch_leaderboard_points(
    league_id: LeagueId, player_id: PlayerId, total_points: int
) -> bool:
    query = """
        UPDATE league_leaderboard
        SET total_points = :total_points, updated = :updated
        WHERE league_id = :league_id
        AND player_id = :player_id
        RETURNING id
        """
    async with translate_store_errors("patch leaderboard points", table="league_leaderboard", record_id=player_id):
        updated_id = await database.fetch_val(
            query=query,
            values={
                "league_id": league_id,
                "player_id": player_id,
                "total_points": total_points,
                "updated": datetime_utc.now(),
            },
        )
    return updated_id is not None


async def sql_get_leaderboard(league_id: LeagueId) -> list[LeaderboardEntryWithPlayer]:
    query = """
        SELECT ll.*, p.name AS player_name
        FROM league_leaderboard ll
        LEFT JOIN players p ON p.id = ll.player_id
        WHERE ll.league_id = :league_id
        ORDER BY ll.total_points DESC, ll.avg_placement ASC NULLS LAST, p.name ASC
        """
    async with translate_store_errors("read leaderboard", table="league_leaderboard", record_id=league_id):
        rows = await database.fetch_all(query=query, values={"league_id": league_id})
    return [LeaderboardEntryWithPlayer.model_validate(dict(row._mapping)) for row in rows]
