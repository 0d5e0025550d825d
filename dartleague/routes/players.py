from fastapi import APIRouter, HTTPException
from starlette import status

from dartleague.config import config
from dartleague.exceptions import PartialMergeFailure
from dartleague.logic.players.merge import merge_many_players
from dartleague.models.players import MergePlayersBody, MergeStatus
from dartleague.routes.models import MergeReportsResponse, PlayersResponse
from dartleague.sql.players import sql_search_players

router = APIRouter(prefix=config.api_prefix)


@router.get("/players", response_model=PlayersResponse)
async def get_players(search: str | None = None) -> PlayersResponse:
    return PlayersResponse(data=await sql_search_players(search.strip() if search else None))


@router.post("/players/merge", response_model=MergeReportsResponse)
async def post_merge_players(body: MergePlayersBody) -> MergeReportsResponse:
    if body.target_player_id in body.source_player_ids:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Cannot merge a player into itself")

    reports = await merge_many_players(body.source_player_ids, body.target_player_id)
    if any(report.status is MergeStatus.PARTIAL_FAILURE for report in reports):
        raise PartialMergeFailure(reports)
    return MergeReportsResponse(data=reports)
