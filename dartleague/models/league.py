from typing import Any, Self

from heliclockter import datetime_utc
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from dartleague.models.db.league import (
    LeaderboardEntryWithPlayer,
    League,
    LeagueMemberRole,
    LeagueMemberWithPlayer,
    LeagueTournamentResultInsertable,
)
from dartleague.models.db.tournament import Tournament, TournamentStatus
from dartleague.models.scoring import ScoringRules
from dartleague.utils.id_types import LeagueId, PlayerId, TournamentId


class TournamentRecalculationFailure(BaseModel):
    tournament_id: TournamentId
    error: str


class LeaderboardUpdateReport(BaseModel):
    league_id: LeagueId
    attempted: int = 0
    recalculated: int = 0
    skipped: int = 0
    failures: list[TournamentRecalculationFailure] = Field(default_factory=list)
    entries: int = 0
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        return len(self.failures) < 1


class TournamentResultsView(BaseModel):
    tournament_id: TournamentId
    skipped: bool = False
    results: list[LeagueTournamentResultInsertable] = Field(default_factory=list)


class TournamentLinkView(BaseModel):
    tournament: Tournament
    results: list[LeagueTournamentResultInsertable] = Field(default_factory=list)
    leaderboard_entries: int | None = None


class LeaderboardPointsBody(BaseModel):
    total_points: int


class TournamentStatusBody(BaseModel):
    status: TournamentStatus


class ScoringRulesBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    placement_points: dict[str, int] = Field(alias="placementPoints")
    allow_manual_override: bool = Field(default=True, alias="allowManualOverride")

    @field_validator("placement_points")
    @classmethod
    def placement_points_are_valid(cls, value: dict[str, int]) -> dict[str, int]:
        for key, points in ScoringRules.parse_placement_points(value).items():
            if points < 0:
                raise ValueError(f"Points for {key.serialize()} must not be negative")
        return value

    def to_scoring_rules(self) -> ScoringRules:
        return ScoringRules.model_validate(self.model_dump(by_alias=True))


class LeagueMemberBody(BaseModel):
    """A member to add: an existing player by id, or a player looked up or created by name."""

    player_id: PlayerId | None = None
    name: str | None = Field(default=None, min_length=1, max_length=120)
    role: LeagueMemberRole = LeagueMemberRole.PLAYER
    is_active: bool = True

    @model_validator(mode="after")
    def player_is_identified(self) -> Self:
        if self.player_id is None and (self.name is None or len(self.name.strip()) < 1):
            raise ValueError("A league member needs a player_id or a name")
        return self


class LeagueMembersBody(BaseModel):
    players: list[LeagueMemberBody] = Field(min_length=1)


class LeagueMemberUpdateBody(BaseModel):
    is_active: bool | None = None
    role: LeagueMemberRole | None = None
    left: bool | None = None


class LeagueCreateBody(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: str | None = None
    status: str = "active"
    scoring_rules: ScoringRulesBody | None = None
    players: list[LeagueMemberBody] = Field(default_factory=list)


class LeagueUpdateBody(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    status: str | None = None


class LeagueView(BaseModel):
    id: LeagueId
    name: str
    description: str | None = None
    status: str
    scoring_rules: dict[str, Any]
    created: datetime_utc
    member_count: int | None = None
    tournament_count: int | None = None

    @classmethod
    def from_league(cls, league: League, **extra: Any) -> Self:
        return cls(
            **league.model_dump(exclude={"scoring_rules"}),
            scoring_rules=league.scoring_rules.to_storage(),
            **extra,
        )


class LeagueDetail(LeagueView):
    members: list[LeagueMemberWithPlayer] = Field(default_factory=list)
    tournaments: list[Tournament] = Field(default_factory=list)
    leaderboard: list[LeaderboardEntryWithPlayer] = Field(default_factory=list)
