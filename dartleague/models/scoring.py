from collections.abc import Iterator, Mapping
from enum import auto
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from dartleague.utils.types import EnumAutoStr

PLAYOFF_DEFAULT_KEY = "playoffDefault"
DEFAULT_KEY = "default"

STANDARD_PLACEMENT_POINTS: dict[str, int] = {
    "1": 5,
    "2": 4,
    "3": 3,
    "4": 2,
    PLAYOFF_DEFAULT_KEY: 1,
    DEFAULT_KEY: 0,
}


class PlacementRuleKind(EnumAutoStr):
    LITERAL = auto()
    PLAYOFF_DEFAULT = auto()
    DEFAULT = auto()


class PlacementRuleKey(BaseModel):
    """One key of a scoring rule table: a literal placement or one of the two fallbacks."""

    model_config = ConfigDict(frozen=True)

    kind: PlacementRuleKind
    placement: int | None = None

    @classmethod
    def literal(cls, placement: int) -> "PlacementRuleKey":
        return cls(kind=PlacementRuleKind.LITERAL, placement=placement)

    @classmethod
    def playoff_default(cls) -> "PlacementRuleKey":
        return cls(kind=PlacementRuleKind.PLAYOFF_DEFAULT)

    @classmethod
    def default(cls) -> "PlacementRuleKey":
        return cls(kind=PlacementRuleKind.DEFAULT)

    @classmethod
    def parse(cls, raw: str) -> "PlacementRuleKey":
        key = str(raw).strip()
        if key == PLAYOFF_DEFAULT_KEY:
            return cls.playoff_default()
        if key == DEFAULT_KEY:
            return cls.default()
        if key.isdigit() and int(key) >= 1:
            return cls.literal(int(key))
        raise ValueError(f"Invalid placement points key: {raw!r}")

    def serialize(self) -> str:
        if self.kind is PlacementRuleKind.LITERAL:
            return str(self.placement)
        if self.kind is PlacementRuleKind.PLAYOFF_DEFAULT:
            return PLAYOFF_DEFAULT_KEY
        return DEFAULT_KEY


class ScoringRules(BaseModel):
    """
    Scoring configuration of a league.

    Stored as JSON in the shape ``{"placementPoints": {"1": 5, ..., "playoffDefault": 1,
    "default": 0}, "allowManualOverride": true}``; parsed into typed rule keys on load.
    """

    points: dict[PlacementRuleKey, int] = Field(default_factory=dict)
    allow_manual_override: bool = True

    @model_validator(mode="before")
    @classmethod
    def parse_stored_rules(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value
        if "points" in value:
            points = value["points"]
            if isinstance(points, Mapping):
                points = {
                    key if isinstance(key, PlacementRuleKey) else PlacementRuleKey.parse(key): amount
                    for key, amount in points.items()
                }
            return {**value, "points": points}
        placement_points = value.get("placementPoints", value.get("placement_points"))
        if placement_points is None:
            placement_points = STANDARD_PLACEMENT_POINTS
        allow_manual_override = value.get(
            "allowManualOverride", value.get("allow_manual_override", True)
        )
        return {
            "points": cls.parse_placement_points(placement_points),
            "allow_manual_override": bool(allow_manual_override),
        }

    @field_validator("points")
    @classmethod
    def points_are_not_negative(
        cls, value: dict[PlacementRuleKey, int]
    ) -> dict[PlacementRuleKey, int]:
        for key, points in value.items():
            if points < 0:
                raise ValueError(f"Points for {key.serialize()} must not be negative")
        return value

    @field_serializer("points")
    def serialize_points(self, value: dict[PlacementRuleKey, int]) -> dict[str, int]:
        return {key.serialize(): points for key, points in value.items()}

    @staticmethod
    def parse_placement_points(raw: Mapping[str, Any]) -> dict[PlacementRuleKey, int]:
        return {PlacementRuleKey.parse(key): int(points) for key, points in raw.items()}

    @classmethod
    def standard(cls) -> "ScoringRules":
        return cls.model_validate({"placementPoints": STANDARD_PLACEMENT_POINTS})

    def get(self, key: PlacementRuleKey) -> int | None:
        return self.points.get(key)

    def iter_serialized(self) -> Iterator[tuple[str, int]]:
        for key, points in self.points.items():
            yield key.serialize(), points

    def to_storage(self) -> dict[str, Any]:
        return {
            "placementPoints": dict(self.iter_serialized()),
            "allowManualOverride": self.allow_manual_override,
        }
