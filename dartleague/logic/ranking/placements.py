"""
Final rankings of tournament participants.

The bracket snapshot stored on the tournament row is only trusted for topology (which rounds and
matches exist, which match is the third-place match). Match state comes from the live match table,
which is read separately and may be newer than the snapshot.
"""

from collections.abc import Iterable, Mapping

from dartleague.models.db.league import PlacementRecord
from dartleague.models.db.tournament import (
    BracketMatch,
    BracketRound,
    GroupStanding,
    TournamentData,
)
from dartleague.utils.id_types import MatchId, PlayerId


def freshen_match(
    snapshot_match: BracketMatch, live_matches: Mapping[MatchId, BracketMatch]
) -> BracketMatch:
    live = live_matches.get(snapshot_match.id)
    if live is None:
        return snapshot_match

    return snapshot_match.model_copy(
        update={
            "status": live.status,
            "result": live.result or snapshot_match.result,
            "player1": live.player1 or snapshot_match.player1,
            "player2": live.player2 or snapshot_match.player2,
        }
    )


def get_live_match_lookup(live_matches: Iterable[BracketMatch]) -> dict[MatchId, BracketMatch]:
    return {match.id: match for match in live_matches}


def get_playoff_player_ids(
    rounds: list[BracketRound], live_matches: Iterable[BracketMatch]
) -> set[PlayerId]:
    player_ids = {
        player_id for round_ in rounds for match in round_.matches for player_id in match.player_ids()
    }
    player_ids.update(player_id for match in live_matches for player_id in match.player_ids())
    return player_ids


def _standing_sort_key(standing: GroupStanding) -> tuple[int, int, float]:
    return -standing.points, -standing.leg_difference, -standing.average


class _PlacementList:
    def __init__(self) -> None:
        self.records: list[PlacementRecord] = []
        self.placed: set[PlayerId] = set()

    def add(self, player_id: PlayerId | None, placement: int, *, in_playoff: bool) -> bool:
        if player_id is None or player_id in self.placed:
            return False
        self.records.append(
            PlacementRecord(player_id=player_id, placement=placement, in_playoff=in_playoff)
        )
        self.placed.add(player_id)
        return True

    def next_placement(self) -> int:
        return max((record.placement for record in self.records), default=0) + 1


def _extract_playoff_placements(tournament: TournamentData) -> list[PlacementRecord]:
    rounds = tournament.playoff_rounds
    live_lookup = get_live_match_lookup(tournament.playoff_matches)
    playoff_player_ids = get_playoff_player_ids(rounds, tournament.playoff_matches)
    placements = _PlacementList()

    final_round = rounds[-1]
    raw_final = next((m for m in final_round.matches if not m.is_third_place_match), None)
    raw_third_place = next((m for m in final_round.matches if m.is_third_place_match), None)

    if raw_final is not None:
        final = freshen_match(raw_final, live_lookup)
        if final.is_decided:
            placements.add(final.get_winner_id(), 1, in_playoff=True)
            placements.add(final.get_loser_id(), 2, in_playoff=True)

    if raw_third_place is not None:
        third_place = freshen_match(raw_third_place, live_lookup)
        if third_place.is_decided:
            placements.add(third_place.get_winner_id(), 3, in_playoff=True)
            placements.add(third_place.get_loser_id(), 4, in_playoff=True)
    elif len(rounds) >= 2:
        # Without a third-place match both semifinal losers share third place.
        for raw_match in rounds[-2].matches:
            match = freshen_match(raw_match, live_lookup)
            if match.is_decided and not match.is_third_place_match:
                placements.add(match.get_loser_id(), 3, in_playoff=True)

    # Earlier rounds, in input order. Semifinal losers are the third-place match players when
    # one exists, so that round is skipped in that case.
    current_placement = placements.next_placement()
    semifinal_index = len(rounds) - 2
    for round_index, round_ in enumerate(rounds[:-1]):
        if raw_third_place is not None and round_index == semifinal_index:
            continue
        for raw_match in round_.matches:
            match = freshen_match(raw_match, live_lookup)
            if not match.is_decided or match.is_third_place_match:
                continue
            if placements.add(match.get_loser_id(), current_placement, in_playoff=True):
                current_placement += 1

    remaining_standings = [
        (standing.player.id, standing)
        for group in tournament.groups
        for standing in group.standings
        if standing.player is not None and standing.player.id not in placements.placed
    ]
    remaining_standings.sort(
        key=lambda pair: (pair[0] not in playoff_player_ids, *_standing_sort_key(pair[1]))
    )
    for player_id, _ in remaining_standings:
        if placements.add(player_id, current_placement, in_playoff=player_id in playoff_player_ids):
            current_placement += 1

    for player in tournament.players:
        if placements.add(player.id, current_placement, in_playoff=player.id in playoff_player_ids):
            current_placement += 1

    return placements.records


def _extract_group_placements(tournament: TournamentData) -> list[PlacementRecord]:
    standings = [
        (standing.player.id, standing)
        for group in tournament.groups
        for standing in group.standings
        if standing.player is not None
    ]
    standings.sort(key=lambda pair: _standing_sort_key(pair[1]))

    placements = _PlacementList()
    for player_id, _ in standings:
        placements.add(player_id, len(placements.records) + 1, in_playoff=False)
    return placements.records


def extract_placements(tournament: TournamentData) -> list[PlacementRecord]:
    """
    Rank every participant of a tournament exactly once.

    Playoff tournaments rank the final, the third-place match (or shared third place for both
    semifinal losers), then earlier-round losers in round and match order, then the remaining
    players by group standings and finally any players only known from the player list.
    Group-only tournaments rank all group standings by points, leg difference and average.
    """
    if len(tournament.playoff_rounds) > 0:
        return _extract_playoff_placements(tournament)
    if len(tournament.groups) > 0:
        return _extract_group_placements(tournament)
    return []
