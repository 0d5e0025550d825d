from fastapi import APIRouter

from dartleague.config import config
from dartleague.logic.league.linkage import handle_tournament_status_change
from dartleague.models.league import TournamentStatusBody
from dartleague.routes.models import TournamentResponse, TournamentsResponse
from dartleague.sql.tournaments import sql_get_unlinked_tournaments
from dartleague.utils.id_types import TournamentId

router = APIRouter(prefix=config.api_prefix)


@router.get("/tournaments/unlinked", response_model=TournamentsResponse)
async def get_unlinked_tournaments() -> TournamentsResponse:
    return TournamentsResponse(data=await sql_get_unlinked_tournaments())


@router.put("/tournaments/{tournament_id}/status", response_model=TournamentResponse)
async def put_tournament_status(
    tournament_id: TournamentId, body: TournamentStatusBody
) -> TournamentResponse:
    return TournamentResponse(
        data=await handle_tournament_status_change(tournament_id, body.status)
    )
