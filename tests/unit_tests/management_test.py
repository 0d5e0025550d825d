from collections.abc import Sequence

import pytest
from heliclockter import datetime_utc
from pydantic import ValidationError

from dartleague.exceptions import NotFoundError
from dartleague.logic.league import management
from dartleague.logic.league.management import (
    add_league_members,
    create_league,
    get_league_detail,
    remove_league_member,
    update_league_member,
)
from dartleague.models.db.league import (
    LeaderboardEntryWithPlayer,
    League,
    LeagueMemberInsertable,
    LeagueMemberRole,
    LeagueMemberWithPlayer,
)
from dartleague.models.db.player import Player
from dartleague.models.db.tournament import Tournament, TournamentFormat, TournamentStatus
from dartleague.models.league import (
    LeagueCreateBody,
    LeagueMemberBody,
    LeagueMemberUpdateBody,
    ScoringRulesBody,
)
from dartleague.models.scoring import ScoringRules
from dartleague.utils.id_types import LeagueId, LeagueMemberId, PlayerId, TournamentId


class _ManagementStore:
    def __init__(self) -> None:
        self.players: dict[PlayerId, Player] = {
            PlayerId("p1"): Player(id=PlayerId("p1"), name="Anna"),
        }
        self.leagues: dict[LeagueId, League] = {}
        self.members: dict[tuple[LeagueId, PlayerId], LeagueMemberWithPlayer] = {}
        self.tournaments: list[Tournament] = []

    async def get_player(self, player_id: PlayerId) -> Player | None:
        return self.players.get(player_id)

    async def get_player_by_name(self, name: str) -> Player | None:
        return next((player for player in self.players.values() if player.name == name), None)

    async def create_player(self, name: str) -> Player:
        player = Player(id=PlayerId(f"p{len(self.players) + 1}"), name=name)
        self.players[player.id] = player
        return player

    async def create_league(
        self, name: str, description: str | None, status: str, rules: ScoringRules
    ) -> League:
        league = League(
            id=LeagueId(f"l{len(self.leagues) + 1}"),
            name=name,
            description=description,
            status=status,
            scoring_rules=rules,
            created=datetime_utc.now(),
        )
        self.leagues[league.id] = league
        return league

    async def get_league(self, league_id: LeagueId) -> League | None:
        return self.leagues.get(league_id)

    async def upsert_league_members(self, members: Sequence[LeagueMemberInsertable]) -> None:
        for member in members:
            key = (member.league_id, member.player_id)
            existing = self.members.get(key)
            self.members[key] = LeagueMemberWithPlayer(
                id=existing.id if existing else LeagueMemberId(f"m{len(self.members) + 1}"),
                joined_at=existing.joined_at if existing else datetime_utc.now(),
                player_name=self.players[member.player_id].name,
                **member.model_dump(),
            )

    async def get_league_members(self, league_id: LeagueId) -> list[LeagueMemberWithPlayer]:
        return [
            member
            for (league_id_, _), member in self.members.items()
            if league_id_ == league_id and member.left_at is None
        ]

    async def update_league_member(
        self,
        league_id: LeagueId,
        player_id: PlayerId,
        is_active: bool | None,
        role: LeagueMemberRole | None,
        left: bool | None,
    ) -> LeagueMemberWithPlayer | None:
        member = self.members.get((league_id, player_id))
        if member is None:
            return None
        update: dict[str, object] = {}
        if is_active is not None:
            update["is_active"] = is_active
        if role is not None:
            update["role"] = role
        if left is not None:
            update["left_at"] = datetime_utc.now() if left else None
        self.members[(league_id, player_id)] = member.model_copy(update=update)
        return self.members[(league_id, player_id)]

    async def remove_league_member(self, league_id: LeagueId, player_id: PlayerId) -> bool:
        member = self.members.get((league_id, player_id))
        if member is None or member.left_at is not None:
            return False
        self.members[(league_id, player_id)] = member.model_copy(
            update={"left_at": datetime_utc.now(), "is_active": False}
        )
        return True

    async def get_league_tournaments(self, league_id: LeagueId) -> list[Tournament]:
        return [tournament for tournament in self.tournaments if tournament.league_id == league_id]

    async def get_leaderboard(self, league_id: LeagueId) -> list[LeaderboardEntryWithPlayer]:
        return []


@pytest.fixture
def management_store(monkeypatch: pytest.MonkeyPatch) -> _ManagementStore:
    store = _ManagementStore()
    monkeypatch.setattr(management, "sql_get_player", store.get_player)
    monkeypatch.setattr(management, "sql_get_player_by_name", store.get_player_by_name)
    monkeypatch.setattr(management, "sql_create_player", store.create_player)
    monkeypatch.setattr(management, "sql_create_league", store.create_league)
    monkeypatch.setattr(management, "sql_get_league", store.get_league)
    monkeypatch.setattr(management, "sql_upsert_league_members", store.upsert_league_members)
    monkeypatch.setattr(management, "sql_get_league_members", store.get_league_members)
    monkeypatch.setattr(management, "sql_update_league_member", store.update_league_member)
    monkeypatch.setattr(management, "sql_remove_league_member", store.remove_league_member)
    monkeypatch.setattr(management, "sql_get_league_tournaments", store.get_league_tournaments)
    monkeypatch.setattr(management, "sql_get_leaderboard", store.get_leaderboard)
    return store


@pytest.mark.asyncio
async def test_create_league_uses_standard_rules_and_adds_members(
    management_store: _ManagementStore,
) -> None:
    league = await create_league(
        LeagueCreateBody(
            name="Tuesday League",
            players=[
                LeagueMemberBody(player_id=PlayerId("p1"), role=LeagueMemberRole.MANAGER),
                LeagueMemberBody(name="  Ben "),
            ],
        )
    )

    assert league.scoring_rules.to_storage() == ScoringRules.standard().to_storage()
    members = await management_store.get_league_members(league.id)
    assert [(member.player_name, member.role) for member in members] == [
        ("Anna", LeagueMemberRole.MANAGER),
        ("Ben", LeagueMemberRole.PLAYER),
    ]


@pytest.mark.asyncio
async def test_create_league_with_custom_rules(management_store: _ManagementStore) -> None:
    body = LeagueCreateBody(
        name="Cup",
        scoring_rules=ScoringRulesBody.model_validate(
            {"placementPoints": {"1": 10, "default": 1}, "allowManualOverride": False}
        ),
    )

    league = await create_league(body)

    assert league.scoring_rules.to_storage() == {
        "placementPoints": {"1": 10, "default": 1},
        "allowManualOverride": False,
    }


@pytest.mark.asyncio
async def test_members_added_by_name_reuse_existing_players(
    management_store: _ManagementStore,
) -> None:
    league = await management_store.create_league("Cup", None, "active", ScoringRules.standard())

    added = await add_league_members(league.id, [LeagueMemberBody(name="Anna")])

    assert [member.player_id for member in added] == ["p1"]
    assert len(management_store.players) == 1


@pytest.mark.asyncio
async def test_adding_unknown_player_id_fails(management_store: _ManagementStore) -> None:
    league = await management_store.create_league("Cup", None, "active", ScoringRules.standard())

    with pytest.raises(NotFoundError):
        await add_league_members(league.id, [LeagueMemberBody(player_id=PlayerId("nobody"))])
    assert management_store.members == {}


@pytest.mark.asyncio
async def test_adding_members_to_missing_league_fails(management_store: _ManagementStore) -> None:
    with pytest.raises(NotFoundError):
        await add_league_members(LeagueId("missing"), [LeagueMemberBody(name="Ben")])
    assert len(management_store.players) == 1


def test_member_needs_player_id_or_name() -> None:
    with pytest.raises(ValidationError):
        LeagueMemberBody(name="   ")
    with pytest.raises(ValidationError):
        LeagueMemberBody()


@pytest.mark.asyncio
async def test_league_detail_counts_current_members_and_tournaments(
    management_store: _ManagementStore,
) -> None:
    league = await management_store.create_league("Cup", None, "active", ScoringRules.standard())
    await add_league_members(league.id, [LeagueMemberBody(name="Anna"), LeagueMemberBody(name="Ben")])
    await remove_league_member(league.id, PlayerId("p1"))
    management_store.tournaments.append(
        Tournament(
            id=TournamentId("t1"),
            name="Friday Darts",
            status=TournamentStatus.COMPLETED,
            format=TournamentFormat.GROUPS_ONLY,
            league_id=league.id,
            created=datetime_utc.now(),
        )
    )

    detail = await get_league_detail(league.id)

    assert detail.member_count == 1
    assert detail.tournament_count == 1
    assert [member.player_name for member in detail.members] == ["Ben"]
    assert detail.scoring_rules["placementPoints"]["1"] == 5


@pytest.mark.asyncio
async def test_league_detail_of_missing_league(management_store: _ManagementStore) -> None:
    with pytest.raises(NotFoundError):
        await get_league_detail(LeagueId("missing"))


@pytest.mark.asyncio
async def test_update_member_changes_only_given_fields(management_store: _ManagementStore) -> None:
    league = await management_store.create_league("Cup", None, "active", ScoringRules.standard())
    await add_league_members(league.id, [LeagueMemberBody(name="Anna")])

    member = await update_league_member(
        league.id, PlayerId("p1"), LeagueMemberUpdateBody(is_active=False)
    )

    assert member.is_active is False
    assert member.role is LeagueMemberRole.PLAYER
    assert member.left_at is None


@pytest.mark.asyncio
async def test_removed_member_can_rejoin(management_store: _ManagementStore) -> None:
    league = await management_store.create_league("Cup", None, "active", ScoringRules.standard())
    await add_league_members(league.id, [LeagueMemberBody(name="Anna")])

    await remove_league_member(league.id, PlayerId("p1"))
    with pytest.raises(NotFoundError):
        await remove_league_member(league.id, PlayerId("p1"))

    rejoined = await update_league_member(
        league.id, PlayerId("p1"), LeagueMemberUpdateBody(left=False)
    )
    members = await management_store.get_league_members(league.id)

    assert rejoined.left_at is None
    assert [member.player_id for member in members] == ["p1"]


@pytest.mark.asyncio
async def test_update_of_non_member_fails(management_store: _ManagementStore) -> None:
    with pytest.raises(NotFoundError):
        await update_league_member(
            LeagueId("l1"), PlayerId("p1"), LeagueMemberUpdateBody(role=LeagueMemberRole.MANAGER)
        )
