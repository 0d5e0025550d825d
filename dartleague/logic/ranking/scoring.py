from collections.abc import Iterator

from dartleague.models.db.league import PlacementRecord
from dartleague.models.scoring import PlacementRuleKey, ScoringRules


def candidate_keys(placement: PlacementRecord) -> Iterator[PlacementRuleKey]:
    """
    Rule keys in resolution order: the literal placement, then ``playoffDefault`` for playoff
    participants, then ``default``.
    """
    yield PlacementRuleKey.literal(placement.placement)
    if placement.in_playoff:
        yield PlacementRuleKey.playoff_default()
    yield PlacementRuleKey.default()


def resolve_points(rules: ScoringRules, placement: PlacementRecord) -> int:
    for key in candidate_keys(placement):
        points = rules.get(key)
        if points is not None:
            return max(points, 0)
    return 0
