import pytest

from dartleague.sql.references import get_column, get_row_key, get_table


def test_get_row_key_uses_composite_primary_key() -> None:
    row = {"tournament_id": "t1", "player_id": "A"}
    assert get_row_key("tournament_players", row) == {"tournament_id": "t1", "player_id": "A"}


def test_get_row_key_uses_surrogate_id() -> None:
    row = {"id": "m1", "league_id": "L", "player_id": "A", "role": "player"}
    assert get_row_key("league_members", row) == {"id": "m1"}


def test_unknown_tables_and_columns_are_rejected() -> None:
    with pytest.raises(ValueError):
        get_table("users")
    with pytest.raises(ValueError):
        get_column(get_table("matches"), "loser_id")
