import json
from typing import Any

from databases.interfaces import Record
from heliclockter import datetime_utc

from dartleague.database import database
from dartleague.exceptions import translate_store_errors
from dartleague.models.db.tournament import (
    BracketMatch,
    GroupStanding,
    GroupWithStandings,
    MatchResult,
    PlayerRef,
    PlayoffBracket,
    Tournament,
    TournamentData,
    TournamentStatus,
)
from dartleague.utils.id_types import GroupId, LeagueId, TournamentId

_TOURNAMENT_COLUMNS = """
    t.id,
    t.name,
    t.status,
    t.format,
    t.league_id,
    t.league_points_calculated,
    t.created
"""


def _parse_playoffs(raw: Any) -> PlayoffBracket | None:
    if raw is None:
        return None
    if isinstance(raw, (str, bytes)):
        raw = json.loads(raw)
    return PlayoffBracket.model_validate(raw)


def _player_ref(player_id: str | None, player_name: str | None) -> PlayerRef | None:
    return PlayerRef(id=player_id, name=player_name) if player_id is not None else None


def _live_match_from_row(row: Record) -> BracketMatch:
    mapping = row._mapping
    winner_id = mapping["winner_id"]
    return BracketMatch(
        id=mapping["id"],
        status=mapping["status"],
        result=MatchResult(winner=winner_id) if winner_id is not None else None,
        player1=_player_ref(mapping["player1_id"], mapping["player1_name"]),
        player2=_player_ref(mapping["player2_id"], mapping["player2_name"]),
    )


async def sql_get_tournament(tournament_id: TournamentId) -> Tournament | None:
    query = f"""
        SELECT {_TOURNAMENT_COLUMNS}
        FROM tournaments t
        WHERE t.id = :tournament_id
        AND t.deleted IS FALSE
        """
    async with translate_store_errors("read tournament", table="tournaments", record_id=tournament_id):
        result = await database.fetch_one(query=query, values={"tournament_id": tournament_id})
    return Tournament.model_validate(dict(result._mapping)) if result is not None else None


async def sql_get_live_playoff_matches(tournament_id: TournamentId) -> list[BracketMatch]:
    query = """
        SELECT
            m.id,
            m.status,
            m.winner_id,
            m.player1_id,
            p1.name AS player1_name,
            m.player2_id,
            p2.name AS player2_name
        FROM matches m
        LEFT JOIN players p1 ON p1.id = m.player1_id
        LEFT JOIN players p2 ON p2.id = m.player2_id
        WHERE m.tournament_id = :tournament_id
        AND m.is_playoff IS TRUE
        ORDER BY m.created ASC, m.id ASC
        """
    async with translate_store_errors("read live matches", table="matches", record_id=tournament_id):
        rows = await database.fetch_all(query=query, values={"tournament_id": tournament_id})
    return [_live_match_from_row(row) for row in rows]


async def sql_get_groups_with_standings(tournament_id: TournamentId) -> list[GroupWithStandings]:
    query = """
        SELECT
            g.id AS group_id,
            g.name AS group_name,
            gs.player_id,
            p.name AS player_name,
            gs.points,
            gs.legs_won,
            gs.legs_lost,
            gs.average
        FROM groups g
        LEFT JOIN group_standings gs ON gs.group_id = g.id
        LEFT JOIN players p ON p.id = gs.player_id
        WHERE g.tournament_id = :tournament_id
        ORDER BY g.name ASC, g.id ASC, gs.position ASC
        """
    async with translate_store_errors("read group standings", table="group_standings", record_id=tournament_id):
        rows = await database.fetch_all(query=query, values={"tournament_id": tournament_id})

    groups: dict[GroupId, GroupWithStandings] = {}
    for row in rows:
        mapping = row._mapping
        group_id = GroupId(mapping["group_id"])
        group = groups.setdefault(
            group_id, GroupWithStandings(id=group_id, name=mapping["group_name"] or "")
        )
        if mapping["player_id"] is None:
            continue
        group.standings.append(
            GroupStanding(
                player=PlayerRef(id=mapping["player_id"], name=mapping["player_name"]),
                points=mapping["points"] or 0,
                legs_won=mapping["legs_won"] or 0,
                legs_lost=mapping["legs_lost"] or 0,
                average=mapping["average"] or 0.0,
            )
        )
    return list(groups.values())


async def sql_get_tournament_players(tournament_id: TournamentId) -> list[PlayerRef]:
    query = """
        SELECT p.id, p.name
        FROM tournament_players tp
        JOIN players p ON p.id = tp.player_id
        WHERE tp.tournament_id = :tournament_id
        ORDER BY p.name ASC, p.id ASC
        """
    async with translate_store_errors("read tournament players", table="tournament_players", record_id=tournament_id):
        rows = await database.fetch_all(query=query, values={"tournament_id": tournament_id})
    return [PlayerRef(id=row._mapping["id"], name=row._mapping["name"]) for row in rows]


async def sql_get_tournament_data(tournament_id: TournamentId) -> TournamentData | None:
    """
    Read a tournament with its groups, bracket snapshot and live playoff matches.

    The bracket snapshot and the live matches are read in separate queries without a shared
    transaction; the placement logic always prefers the live matches for match state.
    """
    query = f"""
        SELECT {_TOURNAMENT_COLUMNS}, t.playoffs
        FROM tournaments t
        WHERE t.id = :tournament_id
        AND t.deleted IS FALSE
        """
    async with translate_store_errors("read tournament", table="tournaments", record_id=tournament_id):
        result = await database.fetch_one(query=query, values={"tournament_id": tournament_id})
    if result is None:
        return None

    tournament = dict(result._mapping)
    playoffs = _parse_playoffs(tournament.pop("playoffs"))
    return TournamentData(
        **tournament,
        playoffs=playoffs,
        groups=await sql_get_groups_with_standings(tournament_id),
        playoff_matches=await sql_get_live_playoff_matches(tournament_id),
        players=await sql_get_tournament_players(tournament_id),
    )


async def sql_get_completed_tournaments_for_league(league_id: LeagueId) -> list[Tournament]:
    query = f"""
        SELECT {_TOURNAMENT_COLUMNS}
        FROM tournaments t
        WHERE t.league_id = :league_id
        AND t.status = 'completed'
        AND t.deleted IS FALSE
        ORDER BY t.created ASC
        """
    async with translate_store_errors("read league tournaments", table="tournaments", record_id=league_id):
        rows = await database.fetch_all(query=query, values={"league_id": league_id})
    return [Tournament.model_validate(dict(row._mapping)) for row in rows]


async def sql_get_league_tournaments(league_id: LeagueId) -> list[Tournament]:
    query = f"""
        SELECT {_TOURNAMENT_COLUMNS}
        FROM tournaments t
        WHERE t.league_id = :league_id
        AND t.deleted IS FALSE
        ORDER BY t.created DESC
        """
    async with translate_store_errors("read league tournaments", table="tournaments", record_id=league_id):
        rows = await database.fetch_all(query=query, values={"league_id": league_id})
    return [Tournament.model_validate(dict(row._mapping)) for row in rows]


async def sql_get_unlinked_tournaments() -> list[Tournament]:
    query = f"""
        SELECT {_TOURNAMENT_COLUMNS}
        FROM tournaments t
        WHERE t.league_id IS NULL
        AND t.deleted IS FALSE
        ORDER BY t.created DESC
        """
    async with translate_store_errors("read unlinked tournaments", table="tournaments"):
        rows = await database.fetch_all(query=query)
    return [Tournament.model_validate(dict(row._mapping)) for row in rows]


async def sql_mark_tournament_calculated(tournament_id: TournamentId, calculated: bool) -> None:
    query = """
        UPDATE tournaments
        SET league_points_calculated = :calculated, updated = :updated
        WHERE id = :tournament_id
        """
    async with translate_store_errors("mark tournament calculated", table="tournaments", record_id=tournament_id):
        await database.execute(
            query=query,
            values={
                "tournament_id": tournament_id,
                "calculated": calculated,
                "updated": datetime_utc.now(),
            },
        )


async def sql_link_tournament_to_league(tournament_id: TournamentId, league_id: LeagueId) -> bool:
    # Only links tournaments without a league, so a concurrent link cannot be overwritten.
    query = """
        UPDATE tournaments
        SET league_id = :league_id, league_points_calculated = FALSE, updated = :updated
        WHERE id = :tournament_id
        AND league_id IS NULL
        RETURNING id
        """
    async with translate_store_errors("link tournament", table="tournaments", record_id=tournament_id):
        linked_id = await database.fetch_val(
            query=query,
            values={
                "tournament_id": tournament_id,
                "league_id": league_id,
                "updated": datetime_utc.now(),
            },
        )
    return linked_id is not None


async def sql_unlink_tournament_from_league(
    tournament_id: TournamentId, league_id: LeagueId
) -> bool:
    query = """
        UPDATE tournaments
        SET league_id = NULL, league_points_calculated = FALSE, updated = :updated
        WHERE id = :tournament_id
        AND league_id = :league_id
        RETURNING id
        """
    async with translate_store_errors("unlink tournament", table="tournaments", record_id=tournament_id):
        unlinked_id = await database.fetch_val(
            query=query,
            values={
                "tournament_id": tournament_id,
                "league_id": league_id,
                "updated": datetime_utc.now(),
            },
        )
    return unlinked_id is not None


async def sql_update_tournament_status(
    tournament_id: TournamentId, status: TournamentStatus
) -> Tournament | None:
    # Any status change invalidates previously calculated league points.
    query = f"""
        UPDATE tournaments t
        SET
            status = CAST(:status AS tournament_status),
            league_points_calculated = FALSE,
            updated = :updated
        WHERE t.id = :tournament_id
        AND t.deleted IS FALSE
        RETURNING {_TOURNAMENT_COLUMNS}
        """
    async with translate_store_errors("update tournament status", table="tournaments", record_id=tournament_id):
        result = await database.fetch_one(
            query=query,
            values={
                "tournament_id": tournament_id,
                "status": status.value,
                "updated": datetime_utc.now(),
            },
        )
    return Tournament.model_validate(dict(result._mapping)) if result is not None else None
