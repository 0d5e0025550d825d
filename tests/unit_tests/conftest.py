import pytest
from fakes import InMemoryLeagueStore, TournamentFactory

from dartleague.logic.league import leaderboard, linkage, results


@pytest.fixture
def league_store(monkeypatch: pytest.MonkeyPatch) -> InMemoryLeagueStore:
    store = InMemoryLeagueStore()

    monkeypatch.setattr(results, "sql_get_tournament_data", store.get_tournament_data)
    monkeypatch.setattr(results, "sql_get_league_scoring_rules", store.get_league_scoring_rules)
    monkeypatch.setattr(results, "sql_upsert_result_rows", store.upsert_result_rows)
    monkeypatch.setattr(results, "sql_mark_tournament_calculated", store.mark_tournament_calculated)

    monkeypatch.setattr(leaderboard, "sql_get_league", store.get_league)
    monkeypatch.setattr(leaderboard, "sql_get_result_rows", store.get_result_rows)
    monkeypatch.setattr(leaderboard, "sql_upsert_leaderboard_rows", store.upsert_leaderboard_rows)
    monkeypatch.setattr(
        leaderboard,
        "sql_reset_leaderboard_rows_without_results",
        store.reset_leaderboard_rows_without_results,
    )
    monkeypatch.setattr(leaderboard, "sql_patch_leaderboard_points", store.patch_leaderboard_points)
    monkeypatch.setattr(
        leaderboard,
        "sql_get_completed_tournaments_for_league",
        store.get_completed_tournaments_for_league,
    )

    monkeypatch.setattr(linkage, "sql_get_league", store.get_league)
    monkeypatch.setattr(linkage, "sql_get_tournament", store.get_tournament)
    monkeypatch.setattr(linkage, "sql_link_tournament_to_league", store.link_tournament)
    monkeypatch.setattr(linkage, "sql_unlink_tournament_from_league", store.unlink_tournament)
    monkeypatch.setattr(linkage, "sql_update_tournament_status", store.update_tournament_status)
    monkeypatch.setattr(linkage, "sql_delete_result_rows", store.delete_result_rows)
    return store


@pytest.fixture
def make_tournament() -> TournamentFactory:
    return TournamentFactory()
