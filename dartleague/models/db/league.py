from decimal import Decimal
from enum import auto

from heliclockter import datetime_utc
from pydantic import BaseModel, Field

from dartleague.models.db.shared import BaseModelORM
from dartleague.models.scoring import ScoringRules
from dartleague.utils.id_types import (
    LeaderboardEntryId,
    LeagueId,
    LeagueMemberId,
    PlayerId,
    TournamentId,
)
from dartleague.utils.types import EnumAutoStr


class LeagueMemberRole(EnumAutoStr):
    PLAYER = auto()
    MANAGER = auto()


class League(BaseModelORM):
    id: LeagueId
    name: str
    description: str | None = None
    status: str = "active"
    scoring_rules: ScoringRules = Field(default_factory=lambda: ScoringRules.standard())
    created: datetime_utc


class LeagueWithCounts(League):
    member_count: int = 0
    tournament_count: int = 0


class LeagueMemberInsertable(BaseModelORM):
    league_id: LeagueId
    player_id: PlayerId
    role: LeagueMemberRole = LeagueMemberRole.PLAYER
    is_active: bool = True


class LeagueMember(LeagueMemberInsertable):
    id: LeagueMemberId
    joined_at: datetime_utc
    left_at: datetime_utc | None = None


class LeagueMemberWithPlayer(LeagueMember):
    player_name: str | None = None


class PlacementRecord(BaseModel):
    player_id: PlayerId
    placement: int
    in_playoff: bool


class LeagueTournamentResultInsertable(BaseModelORM):
    league_id: LeagueId
    tournament_id: TournamentId
    player_id: PlayerId
    placement: int
    points_awarded: int


class LeagueTournamentResultWithTimestamp(LeagueTournamentResultInsertable):
    tournament_created: datetime_utc | None = None


class LeaderboardEntryInsertable(BaseModelORM):
    league_id: LeagueId
    player_id: PlayerId
    total_points: int = 0
    tournaments_played: int = 0
    best_placement: int | None = None
    worst_placement: int | None = None
    avg_placement: Decimal | None = None
    last_tournament_at: datetime_utc | None = None


class LeaderboardEntry(LeaderboardEntryInsertable):
    id: LeaderboardEntryId


class LeaderboardEntryWithPlayer(LeaderboardEntry):
    player_name: str | None = None
