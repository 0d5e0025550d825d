from collections.abc import Sequence

from dartleague.exceptions import NotFoundError
from dartleague.models.db.league import (
    League,
    LeagueMemberInsertable,
    LeagueMemberWithPlayer,
)
from dartleague.models.league import (
    LeagueCreateBody,
    LeagueDetail,
    LeagueMemberBody,
    LeagueMemberUpdateBody,
)
from dartleague.models.scoring import ScoringRules
from dartleague.sql.league import (
    sql_create_league,
    sql_get_leaderboard,
    sql_get_league,
    sql_get_league_members,
    sql_remove_league_member,
    sql_update_league_member,
    sql_upsert_league_members,
)
from dartleague.sql.players import sql_create_player, sql_get_player, sql_get_player_by_name
from dartleague.sql.tournaments import sql_get_league_tournaments
from dartleague.utils.id_types import LeagueId, PlayerId
from dartleague.utils.logging import logger


async def resolve_member_player(member: LeagueMemberBody) -> PlayerId:
    """
    Players are referenced by id, or by name. A name that matches no player creates one, so
    a league can be filled before its players have played anywhere.
    """
    if member.player_id is not None:
        if await sql_get_player(member.player_id) is None:
            raise NotFoundError("Player", member.player_id)
        return member.player_id

    name = (member.name or "").strip()
    existing = await sql_get_player_by_name(name)
    if existing is not None:
        return existing.id

    player = await sql_create_player(name)
    logger.info("Created player_id=%s for name=%s", player.id, name)
    return player.id


async def add_league_members(
    league_id: LeagueId, members: Sequence[LeagueMemberBody]
) -> list[LeagueMemberWithPlayer]:
    if await sql_get_league(league_id) is None:
        raise NotFoundError("League", league_id)

    insertables = [
        LeagueMemberInsertable(
            league_id=league_id,
            player_id=await resolve_member_player(member),
            role=member.role,
            is_active=member.is_active,
        )
        for member in members
    ]
    await sql_upsert_league_members(insertables)
    logger.info("Added %s member(s) to league_id=%s", len(insertables), league_id)

    added_ids = {insertable.player_id for insertable in insertables}
    return [
        member for member in await sql_get_league_members(league_id) if member.player_id in added_ids
    ]


async def create_league(body: LeagueCreateBody) -> League:
    rules = body.scoring_rules.to_scoring_rules() if body.scoring_rules else ScoringRules.standard()
    league = await sql_create_league(body.name, body.description, body.status, rules)
    logger.info("Created league_id=%s", league.id)

    if len(body.players) > 0:
        await add_league_members(league.id, body.players)
    return league


async def get_league_detail(league_id: LeagueId) -> LeagueDetail:
    league = await sql_get_league(league_id)
    if league is None:
        raise NotFoundError("League", league_id)

    members = await sql_get_league_members(league_id)
    tournaments = await sql_get_league_tournaments(league_id)
    return LeagueDetail.from_league(
        league,
        member_count=len(members),
        tournament_count=len(tournaments),
        members=members,
        tournaments=tournaments,
        leaderboard=await sql_get_leaderboard(league_id),
    )


async def update_league_member(
    league_id: LeagueId, player_id: PlayerId, body: LeagueMemberUpdateBody
) -> LeagueMemberWithPlayer:
    member = await sql_update_league_member(
        league_id, player_id, is_active=body.is_active, role=body.role, left=body.left
    )
    if member is None:
        raise NotFoundError(
            "League member",
            player_id,
            detail=f"Player {player_id} is not a member of league {league_id}",
        )
    return member


async def remove_league_member(league_id: LeagueId, player_id: PlayerId) -> None:
    if not await sql_remove_league_member(league_id, player_id):
        raise NotFoundError(
            "League member",
            player_id,
            detail=f"Player {player_id} is not a member of league {league_id}",
        )
    logger.info("Removed player_id=%s from league_id=%s", player_id, league_id)
