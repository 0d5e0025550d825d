from enum import auto

from heliclockter import datetime_utc
from pydantic import BaseModel, ConfigDict, Field

from dartleague.models.db.shared import BaseModelORM
from dartleague.utils.id_types import GroupId, LeagueId, MatchId, PlayerId, TournamentId
from dartleague.utils.types import EnumAutoStr


class TournamentStatus(EnumAutoStr):
    SETUP = auto()
    IN_PROGRESS = auto()
    COMPLETED = auto()


class TournamentFormat(EnumAutoStr):
    GROUPS_ONLY = auto()
    GROUPS_WITH_PLAYOFFS = auto()
    PLAYOFFS_ONLY = auto()


class MatchStatus(EnumAutoStr):
    PENDING = auto()
    IN_PROGRESS = auto()
    COMPLETED = auto()


class PlayerRef(BaseModel):
    id: PlayerId
    name: str | None = None


class MatchResult(BaseModel):
    winner: PlayerId | None = None


class BracketMatch(BaseModel):
    """
    A playoff match as it appears either in the bracket snapshot stored on the tournament or in
    the live match table. Only the snapshot knows whether a match is the third-place match.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: MatchId
    player1: PlayerRef | None = None
    player2: PlayerRef | None = None
    status: MatchStatus = MatchStatus.PENDING
    result: MatchResult | None = None
    is_third_place_match: bool = Field(default=False, alias="isThirdPlaceMatch")

    @property
    def is_decided(self) -> bool:
        return (
            self.status is MatchStatus.COMPLETED
            and self.result is not None
            and self.result.winner is not None
        )

    def player_ids(self) -> list[PlayerId]:
        return [player.id for player in (self.player1, self.player2) if player is not None]

    def get_winner_id(self) -> PlayerId | None:
        return self.result.winner if self.is_decided and self.result is not None else None

    def get_loser_id(self) -> PlayerId | None:
        winner_id = self.get_winner_id()
        if winner_id is None:
            return None
        if self.player1 is not None and winner_id == self.player1.id:
            return self.player2.id if self.player2 is not None else None
        return self.player1.id if self.player1 is not None else None


class BracketRound(BaseModel):
    name: str | None = None
    matches: list[BracketMatch] = Field(default_factory=list)


class PlayoffBracket(BaseModel):
    rounds: list[BracketRound] = Field(default_factory=list)


class GroupStanding(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    player: PlayerRef | None = None
    points: int = 0
    legs_won: int = Field(default=0, alias="legsWon")
    legs_lost: int = Field(default=0, alias="legsLost")
    average: float = 0.0

    @property
    def leg_difference(self) -> int:
        return self.legs_won - self.legs_lost


class GroupWithStandings(BaseModel):
    id: GroupId | None = None
    name: str = ""
    standings: list[GroupStanding] = Field(default_factory=list)


class Tournament(BaseModelORM):
    id: TournamentId
    name: str
    status: TournamentStatus
    format: TournamentFormat
    league_id: LeagueId | None = None
    league_points_calculated: bool = False
    created: datetime_utc


class TournamentData(Tournament):
    """Everything needed to rank the participants of a tournament."""

    groups: list[GroupWithStandings] = Field(default_factory=list)
    playoffs: PlayoffBracket | None = None
    playoff_matches: list[BracketMatch] = Field(default_factory=list)
    players: list[PlayerRef] = Field(default_factory=list)

    @property
    def playoff_rounds(self) -> list[BracketRound]:
        if self.format is TournamentFormat.GROUPS_ONLY or self.playoffs is None:
            return []
        return self.playoffs.rounds
