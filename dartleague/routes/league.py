from fastapi import APIRouter

from dartleague.config import config
from dartleague.exceptions import AlreadyCalculated, NotFoundError
from dartleague.logic.league.leaderboard import set_player_points, update_leaderboard
from dartleague.logic.league.linkage import (
    link_tournament_to_league,
    unlink_tournament_from_league,
)
from dartleague.logic.league.management import (
    add_league_members,
    create_league,
    get_league_detail,
    remove_league_member,
    update_league_member,
)
from dartleague.logic.league.results import record_tournament_results
from dartleague.models.league import (
    LeaderboardPointsBody,
    LeagueCreateBody,
    LeagueMembersBody,
    LeagueMemberUpdateBody,
    LeagueUpdateBody,
    LeagueView,
    ScoringRulesBody,
    TournamentResultsView,
)
from dartleague.routes.models import (
    LeaderboardResponse,
    LeaderboardUpdateResponse,
    LeagueDetailResponse,
    LeagueMemberResponse,
    LeagueMembersResponse,
    LeagueResponse,
    LeaguesResponse,
    SuccessResponse,
    TournamentLinkResponse,
    TournamentResultsResponse,
)
from dartleague.sql.league import (
    sql_delete_league,
    sql_get_leaderboard,
    sql_get_league,
    sql_get_league_members,
    sql_get_leagues,
    sql_update_league,
    sql_update_league_scoring_rules,
)
from dartleague.utils.id_types import LeagueId, PlayerId, TournamentId

router = APIRouter(prefix=config.api_prefix)


@router.get("/leagues", response_model=LeaguesResponse)
async def get_leagues() -> LeaguesResponse:
    return LeaguesResponse(data=[LeagueView.from_league(league) for league in await sql_get_leagues()])


@router.post("/leagues", response_model=LeagueResponse)
async def post_league(body: LeagueCreateBody) -> LeagueResponse:
    return LeagueResponse(data=LeagueView.from_league(await create_league(body)))


@router.get("/leagues/{league_id}", response_model=LeagueDetailResponse)
async def get_league(league_id: LeagueId) -> LeagueDetailResponse:
    return LeagueDetailResponse(data=await get_league_detail(league_id))


@router.put("/leagues/{league_id}", response_model=LeagueResponse)
async def put_league(league_id: LeagueId, body: LeagueUpdateBody) -> LeagueResponse:
    league = await sql_update_league(league_id, body.name, body.description, body.status)
    if league is None:
        raise NotFoundError("League", league_id)
    return LeagueResponse(data=LeagueView.from_league(league))


@router.delete("/leagues/{league_id}", response_model=SuccessResponse)
async def delete_league(league_id: LeagueId) -> SuccessResponse:
    if not await sql_delete_league(league_id):
        raise NotFoundError("League", league_id)
    return SuccessResponse()


@router.get("/leagues/{league_id}/members", response_model=LeagueMembersResponse)
async def get_league_members(league_id: LeagueId) -> LeagueMembersResponse:
    if await sql_get_league(league_id) is None:
        raise NotFoundError("League", league_id)
    return LeagueMembersResponse(data=await sql_get_league_members(league_id))


@router.post("/leagues/{league_id}/members", response_model=LeagueMembersResponse)
async def post_league_members(league_id: LeagueId, body: LeagueMembersBody) -> LeagueMembersResponse:
    return LeagueMembersResponse(data=await add_league_members(league_id, body.players))


@router.put("/leagues/{league_id}/members/{player_id}", response_model=LeagueMemberResponse)
async def put_league_member(
    league_id: LeagueId, player_id: PlayerId, body: LeagueMemberUpdateBody
) -> LeagueMemberResponse:
    return LeagueMemberResponse(data=await update_league_member(league_id, player_id, body))


@router.delete("/leagues/{league_id}/members/{player_id}", response_model=SuccessResponse)
async def delete_league_member(league_id: LeagueId, player_id: PlayerId) -> SuccessResponse:
    await remove_league_member(league_id, player_id)
    return SuccessResponse()


@router.get("/leagues/{league_id}/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(league_id: LeagueId) -> LeaderboardResponse:
    if await sql_get_league(league_id) is None:
        raise NotFoundError("League", league_id)
    return LeaderboardResponse(data=await sql_get_leaderboard(league_id))


@router.post(
    "/leagues/{league_id}/leaderboard/recalculate", response_model=LeaderboardUpdateResponse
)
async def post_recalculate_leaderboard(
    league_id: LeagueId, force: bool = False
) -> LeaderboardUpdateResponse:
    return LeaderboardUpdateResponse(data=await update_leaderboard(league_id, force=force))


@router.post(
    "/leagues/{league_id}/tournaments/{tournament_id}/results",
    response_model=TournamentResultsResponse,
)
async def post_record_tournament_results(
    league_id: LeagueId, tournament_id: TournamentId, force: bool = False
) -> TournamentResultsResponse:
    try:
        results = await record_tournament_results(league_id, tournament_id, force=force)
    except AlreadyCalculated:
        return TournamentResultsResponse(
            data=TournamentResultsView(tournament_id=tournament_id, skipped=True)
        )
    return TournamentResultsResponse(
        data=TournamentResultsView(tournament_id=tournament_id, results=results)
    )


@router.post(
    "/leagues/{league_id}/tournaments/{tournament_id}", response_model=TournamentLinkResponse
)
async def post_link_tournament(
    league_id: LeagueId, tournament_id: TournamentId
) -> TournamentLinkResponse:
    return TournamentLinkResponse(data=await link_tournament_to_league(league_id, tournament_id))


@router.delete("/leagues/{league_id}/tournaments/{tournament_id}", response_model=SuccessResponse)
async def delete_link_tournament(league_id: LeagueId, tournament_id: TournamentId) -> SuccessResponse:
    await unlink_tournament_from_league(league_id, tournament_id)
    return SuccessResponse()


@router.put("/leagues/{league_id}/leaderboard/{player_id}/points", response_model=SuccessResponse)
async def put_leaderboard_points(
    league_id: LeagueId, player_id: PlayerId, body: LeaderboardPointsBody
) -> SuccessResponse:
    await set_player_points(league_id, player_id, body.total_points)
    return SuccessResponse()


@router.put("/leagues/{league_id}/scoring_rules", response_model=SuccessResponse)
async def put_scoring_rules(league_id: LeagueId, body: ScoringRulesBody) -> SuccessResponse:
    if await sql_get_league(league_id) is None:
        raise NotFoundError("League", league_id)

    await sql_update_league_scoring_rules(league_id, body.to_scoring_rules())
    return SuccessResponse()
