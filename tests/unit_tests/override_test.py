import pytest
from fakes import InMemoryLeagueStore, TournamentFactory

from dartleague.exceptions import ManualOverrideDisabled, NotFoundError
from dartleague.logic.league.leaderboard import set_player_points, update_leaderboard_cache
from dartleague.logic.league.linkage import link_tournament_to_league
from dartleague.models.scoring import ScoringRules
from dartleague.utils.id_types import LeagueId, PlayerId, TournamentId


@pytest.mark.asyncio
async def test_set_player_points_patches_only_the_total(
    league_store: InMemoryLeagueStore, make_tournament: TournamentFactory
) -> None:
    league_store.add_league("l1")
    league_store.add_tournament(make_tournament("t1", ["P1", "P2"]))
    await link_tournament_to_league(LeagueId("l1"), TournamentId("t1"))
    results_before = dict(league_store.results)

    await set_player_points(LeagueId("l1"), PlayerId("P2"), 42)

    entry = league_store.leaderboard[("l1", "P2")]
    assert entry.total_points == 42
    assert entry.tournaments_played == 1
    assert entry.best_placement == 2
    assert league_store.results == results_before


@pytest.mark.asyncio
async def test_leaderboard_rebuild_replaces_manual_points(
    league_store: InMemoryLeagueStore, make_tournament: TournamentFactory
) -> None:
    league_store.add_league("l1")
    league_store.add_tournament(make_tournament("t1", ["P1", "P2"]))
    await link_tournament_to_league(LeagueId("l1"), TournamentId("t1"))
    await set_player_points(LeagueId("l1"), PlayerId("P2"), 42)

    await update_leaderboard_cache(LeagueId("l1"))

    assert league_store.leaderboard[("l1", "P2")].total_points == 4


@pytest.mark.asyncio
async def test_set_player_points_when_overrides_are_disabled(
    league_store: InMemoryLeagueStore,
) -> None:
    league_store.add_league(
        "l1", ScoringRules.model_validate({"allowManualOverride": False})
    )

    with pytest.raises(ManualOverrideDisabled):
        await set_player_points(LeagueId("l1"), PlayerId("P1"), 10)


@pytest.mark.asyncio
async def test_set_player_points_without_leaderboard_entry(
    league_store: InMemoryLeagueStore,
) -> None:
    league_store.add_league("l1")

    with pytest.raises(NotFoundError):
        await set_player_points(LeagueId("l1"), PlayerId("P1"), 10)


@pytest.mark.asyncio
async def test_set_player_points_for_missing_league(league_store: InMemoryLeagueStore) -> None:
    with pytest.raises(NotFoundError):
        await set_player_points(LeagueId("missing"), PlayerId("P1"), 10)
