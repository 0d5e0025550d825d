from typing import Generic, TypeVar

from pydantic import BaseModel

from dartleague.models.db.league import LeaderboardEntryWithPlayer, LeagueMemberWithPlayer
from dartleague.models.db.player import Player
from dartleague.models.db.tournament import Tournament
from dartleague.models.league import (
    LeaderboardUpdateReport,
    LeagueDetail,
    LeagueView,
    TournamentLinkView,
    TournamentResultsView,
)
from dartleague.models.players import MergeReport


class SuccessResponse(BaseModel):
    success: bool = True


DataT = TypeVar("DataT")


class DataResponse(BaseModel, Generic[DataT]):
    data: DataT


class LeaguesResponse(DataResponse[list[LeagueView]]):
    pass


class LeagueResponse(DataResponse[LeagueView]):
    pass


class LeagueDetailResponse(DataResponse[LeagueDetail]):
    pass


class LeagueMembersResponse(DataResponse[list[LeagueMemberWithPlayer]]):
    pass


class LeagueMemberResponse(DataResponse[LeagueMemberWithPlayer]):
    pass


class LeaderboardResponse(DataResponse[list[LeaderboardEntryWithPlayer]]):
    pass


class LeaderboardUpdateResponse(DataResponse[LeaderboardUpdateReport]):
    pass


class TournamentResultsResponse(DataResponse[TournamentResultsView]):
    pass


class TournamentLinkResponse(DataResponse[TournamentLinkView]):
    pass


class TournamentResponse(DataResponse[Tournament]):
    pass


class TournamentsResponse(DataResponse[list[Tournament]]):
    pass


class PlayersResponse(DataResponse[list[Player]]):
    pass


class MergeReportsResponse(DataResponse[list[MergeReport]]):
    pass
