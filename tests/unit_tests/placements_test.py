from typing import Any

from heliclockter import datetime_utc

from dartleague.logic.league.results import build_result_rows
from dartleague.logic.ranking.placements import extract_placements, freshen_match
from dartleague.models.db.tournament import (
    BracketMatch,
    BracketRound,
    GroupStanding,
    GroupWithStandings,
    MatchResult,
    MatchStatus,
    PlayerRef,
    PlayoffBracket,
    TournamentData,
    TournamentFormat,
    TournamentStatus,
)
from dartleague.models.scoring import ScoringRules
from dartleague.utils.id_types import LeagueId, MatchId, PlayerId, TournamentId


def _match(
    match_id: str,
    player1: str,
    player2: str,
    winner: str | None = None,
    *,
    third_place: bool = False,
) -> BracketMatch:
    return BracketMatch(
        id=MatchId(match_id),
        player1=PlayerRef(id=PlayerId(player1)),
        player2=PlayerRef(id=PlayerId(player2)),
        status=MatchStatus.COMPLETED if winner is not None else MatchStatus.PENDING,
        result=MatchResult(winner=PlayerId(winner)) if winner is not None else None,
        is_third_place_match=third_place,
    )


def _standing(
    player_id: str, points: int, legs_won: int = 0, legs_lost: int = 0, average: float = 0.0
) -> GroupStanding:
    return GroupStanding(
        player=PlayerRef(id=PlayerId(player_id)),
        points=points,
        legs_won=legs_won,
        legs_lost=legs_lost,
        average=average,
    )


def _tournament(**kwargs: Any) -> TournamentData:
    return TournamentData(
        id=TournamentId("t1"),
        name="Friday Darts",
        status=TournamentStatus.COMPLETED,
        format=kwargs.pop("format", TournamentFormat.GROUPS_WITH_PLAYOFFS),
        league_id=LeagueId("l1"),
        created=datetime_utc.now(),
        **kwargs,
    )


def _by_player(tournament: TournamentData) -> dict[str, tuple[int, bool]]:
    return {
        record.player_id: (record.placement, record.in_playoff)
        for record in extract_placements(tournament)
    }


def test_freshen_match_overlays_live_state() -> None:
    snapshot = _match("m1", "P1", "P2")
    live = _match("m1", "P1", "P2", winner="P1")

    freshened = freshen_match(snapshot, {MatchId("m1"): live})

    assert freshened.status is MatchStatus.COMPLETED
    assert freshened.result is not None
    assert freshened.result.winner == "P1"
    assert snapshot.status is MatchStatus.PENDING


def test_freshen_match_keeps_snapshot_flags_and_missing_live_fields() -> None:
    snapshot = _match("m1", "P1", "P2", third_place=True)
    live = BracketMatch(id=MatchId("m1"), status=MatchStatus.IN_PROGRESS)

    freshened = freshen_match(snapshot, {MatchId("m1"): live})

    assert freshened.is_third_place_match is True
    assert freshened.status is MatchStatus.IN_PROGRESS
    assert freshened.player_ids() == ["P1", "P2"]


def test_freshen_match_without_live_match_returns_snapshot() -> None:
    snapshot = _match("m1", "P1", "P2")
    assert freshen_match(snapshot, {}) is snapshot


def test_final_and_third_place_match_give_four_distinct_placements() -> None:
    bracket = PlayoffBracket(
        rounds=[
            BracketRound(
                name="Quarterfinals",
                matches=[
                    _match("q1", "P1", "P5", "P1"),
                    _match("q2", "P3", "P6", "P3"),
                    _match("q3", "P2", "P7", "P2"),
                    _match("q4", "P4", "P8", "P4"),
                ],
            ),
            BracketRound(
                name="Semifinals",
                matches=[_match("s1", "P1", "P3", "P1"), _match("s2", "P2", "P4", "P2")],
            ),
            BracketRound(
                name="Final",
                matches=[
                    _match("f1", "P1", "P2", "P2"),
                    _match("f2", "P3", "P4", "P4", third_place=True),
                ],
            ),
        ]
    )

    placements = _by_player(_tournament(playoffs=bracket))

    assert {player: placements[player][0] for player in ("P2", "P1", "P4", "P3")} == {
        "P2": 1,
        "P1": 2,
        "P4": 3,
        "P3": 4,
    }
    others = [placements[player][0] for player in ("P5", "P6", "P7", "P8")]
    assert sorted(others) == [5, 6, 7, 8]
    assert all(in_playoff for _, in_playoff in placements.values())


def test_semifinal_losers_share_third_place_without_third_place_match() -> None:
    bracket = PlayoffBracket(
        rounds=[
            BracketRound(
                matches=[_match("s1", "P1", "P3", "P1"), _match("s2", "P2", "P4", "P2")]
            ),
            BracketRound(matches=[_match("f1", "P1", "P2", "P1")]),
        ]
    )

    placements = _by_player(_tournament(playoffs=bracket))

    assert placements["P1"] == (1, True)
    assert placements["P2"] == (2, True)
    assert placements["P3"] == (3, True)
    assert placements["P4"] == (3, True)
    assert 4 not in {placement for placement, _ in placements.values()}


def test_rounds_without_matches_are_skipped() -> None:
    bracket = PlayoffBracket(
        rounds=[
            BracketRound(name="Round 1", matches=[]),
            BracketRound(
                name="Semifinals",
                matches=[_match("s1", "P1", "P3", "P1"), _match("s2", "P2", "P4", "P2")],
            ),
            BracketRound(
                name="Final",
                matches=[
                    _match("f1", "P1", "P2", "P1"),
                    _match("f2", "P3", "P4", "P3", third_place=True),
                ],
            ),
        ]
    )

    records = extract_placements(_tournament(playoffs=bracket))

    assert [(record.player_id, record.placement) for record in records] == [
        ("P1", 1),
        ("P2", 2),
        ("P3", 3),
        ("P4", 4),
    ]


def test_rounds_without_matches_keep_shared_third_place() -> None:
    bracket = PlayoffBracket(
        rounds=[
            BracketRound(matches=[]),
            BracketRound(
                matches=[_match("s1", "P1", "P3", "P1"), _match("s2", "P2", "P4", "P2")]
            ),
            BracketRound(matches=[_match("f1", "P1", "P2", "P2")]),
        ]
    )

    placements = _by_player(_tournament(playoffs=bracket))

    assert placements == {
        "P2": (1, True),
        "P1": (2, True),
        "P3": (3, True),
        "P4": (3, True),
    }


def test_live_matches_override_stale_bracket_snapshot() -> None:
    bracket = PlayoffBracket(rounds=[BracketRound(matches=[_match("f1", "P1", "P2")])])
    tournament = _tournament(
        playoffs=bracket, playoff_matches=[_match("f1", "P1", "P2", winner="P2")]
    )

    placements = _by_player(tournament)

    assert placements["P2"] == (1, True)
    assert placements["P1"] == (2, True)


def test_undecided_final_leaves_finalists_to_group_standings() -> None:
    bracket = PlayoffBracket(rounds=[BracketRound(matches=[_match("f1", "P1", "P2")])])
    groups = [GroupWithStandings(name="A", standings=[_standing("P1", 4), _standing("P2", 6)])]

    placements = _by_player(_tournament(playoffs=bracket, groups=groups))

    assert placements["P2"] == (1, True)
    assert placements["P1"] == (2, True)


def test_group_only_tournament_ranks_by_points_then_leg_difference() -> None:
    groups = [
        GroupWithStandings(
            name="A", standings=[_standing("P1", 4, 6, 4), _standing("P2", 6, 7, 2)]
        ),
        GroupWithStandings(
            name="B", standings=[_standing("P3", 4, 8, 3), _standing("P4", 0, 1, 8)]
        ),
    ]

    records = extract_placements(
        _tournament(format=TournamentFormat.GROUPS_ONLY, groups=groups)
    )

    assert [(record.player_id, record.placement) for record in records] == [
        ("P2", 1),
        ("P3", 2),
        ("P1", 3),
        ("P4", 4),
    ]
    assert not any(record.in_playoff for record in records)


def test_group_only_tournament_breaks_ties_by_average() -> None:
    groups = [
        GroupWithStandings(
            name="A",
            standings=[
                _standing("P1", 4, 6, 4, average=48.2),
                _standing("P2", 4, 6, 4, average=61.7),
            ],
        ),
        GroupWithStandings(name="B", standings=[_standing("P3", 4, 6, 4, average=55.0)]),
    ]

    records = extract_placements(
        _tournament(format=TournamentFormat.GROUPS_ONLY, groups=groups)
    )

    assert [(record.player_id, record.placement) for record in records] == [
        ("P2", 1),
        ("P3", 2),
        ("P1", 3),
    ]


def test_remaining_group_players_break_ties_by_average() -> None:
    bracket = PlayoffBracket(rounds=[BracketRound(matches=[_match("f1", "P1", "P2", "P1")])])
    groups = [
        GroupWithStandings(
            name="A",
            standings=[
                _standing("P1", 6, 8, 2),
                _standing("P3", 2, 4, 5, average=39.5),
            ],
        ),
        GroupWithStandings(
            name="B",
            standings=[
                _standing("P2", 6, 8, 3),
                _standing("P4", 2, 4, 5, average=44.1),
            ],
        ),
    ]

    placements = _by_player(_tournament(playoffs=bracket, groups=groups))

    assert placements["P4"] == (3, False)
    assert placements["P3"] == (4, False)


def test_groups_only_format_ignores_bracket_snapshot() -> None:
    bracket = PlayoffBracket(rounds=[BracketRound(matches=[_match("f1", "P1", "P2", "P2")])])
    groups = [GroupWithStandings(name="A", standings=[_standing("P1", 6), _standing("P2", 3)])]

    records = extract_placements(
        _tournament(format=TournamentFormat.GROUPS_ONLY, playoffs=bracket, groups=groups)
    )

    assert [record.player_id for record in records] == ["P1", "P2"]


def test_tournament_without_groups_or_playoffs_has_no_placements() -> None:
    assert extract_placements(_tournament()) == []


def test_players_only_known_from_player_list_are_ranked_last() -> None:
    bracket = PlayoffBracket(rounds=[BracketRound(matches=[_match("f1", "P1", "P2", "P1")])])
    tournament = _tournament(
        playoffs=bracket,
        players=[PlayerRef(id=PlayerId("P2")), PlayerRef(id=PlayerId("P9"))],
    )

    placements = _by_player(tournament)

    assert placements["P9"] == (3, False)
    assert len(placements) == 3


def test_full_tournament_awards_expected_league_points() -> None:
    bracket = PlayoffBracket(
        rounds=[
            BracketRound(
                name="Round 1",
                matches=[_match("r1", "P1", "P5", "P1"), _match("r2", "P2", "P6", "P2")],
            ),
            BracketRound(
                name="Semifinals",
                matches=[_match("s1", "P1", "P3", "P1"), _match("s2", "P2", "P4", "P2")],
            ),
            BracketRound(
                name="Final",
                matches=[
                    _match("f1", "P1", "P2", "P1"),
                    _match("f2", "P3", "P4", "P3", third_place=True),
                ],
            ),
        ]
    )
    groups = [
        GroupWithStandings(
            name="A",
            standings=[_standing(player, 6 - index) for index, player in enumerate(
                ["P1", "P2", "P3", "P4", "P5", "P6", "P7"]
            )],
        )
    ]
    tournament = _tournament(playoffs=bracket, groups=groups)
    rules = ScoringRules.model_validate(
        {
            "placementPoints": {
                "1": 5,
                "2": 4,
                "3": 3,
                "4": 2,
                "playoffDefault": 1,
                "default": 0,
            }
        }
    )

    rows = build_result_rows(
        LeagueId("l1"), TournamentId("t1"), extract_placements(tournament), rules
    )

    assert [(row.player_id, row.placement, row.points_awarded) for row in rows] == [
        ("P1", 1, 5),
        ("P2", 2, 4),
        ("P3", 3, 3),
        ("P4", 4, 2),
        ("P5", 5, 1),
        ("P6", 6, 1),
        ("P7", 7, 0),
    ]
