from enum import auto
from typing import Literal

from pydantic import BaseModel, Field

from dartleague.exceptions import PartialMergeFailure
from dartleague.utils.id_types import PlayerId
from dartleague.utils.types import EnumAutoStr


class MergeStrategy(EnumAutoStr):
    SIMPLE_FOREIGN_KEY = auto()
    UNIQUE_COMPOSITE = auto()


class MergeStep(BaseModel):
    """
    One table column that references a player.

    ``unique_columns`` are the other columns that form a unique key together with the player
    column. ``composite_primary_key`` marks tables without a surrogate id, where a row cannot be
    repointed in place and is deleted and re-inserted instead.
    """

    table: str
    column: str = "player_id"
    strategy: MergeStrategy = MergeStrategy.SIMPLE_FOREIGN_KEY
    unique_columns: tuple[str, ...] = ()
    composite_primary_key: bool = False

    @property
    def label(self) -> str:
        return f"{self.table}.{self.column}"


class MergeStepSuccess(BaseModel):
    outcome: Literal["success"] = "success"
    step: str
    rows: int = 0


class MergeStepFailure(BaseModel):
    outcome: Literal["failure"] = "failure"
    step: str
    error: str

    @property
    def label(self) -> str:
        return self.step


MergeStepOutcome = MergeStepSuccess | MergeStepFailure


class MergeStatus(EnumAutoStr):
    MERGED = auto()
    PARTIAL_FAILURE = auto()
    ALREADY_MERGED = auto()


class MergeReport(BaseModel):
    source_player_id: PlayerId
    target_player_id: PlayerId
    status: MergeStatus
    steps: list[MergeStepOutcome] = Field(default_factory=list)
    source_deleted: bool = False

    @property
    def failed_steps(self) -> list[MergeStepFailure]:
        return [step for step in self.steps if isinstance(step, MergeStepFailure)]

    @property
    def log(self) -> list[str]:
        lines = [
            f"{step.step}: {step.rows} row(s)"
            if isinstance(step, MergeStepSuccess)
            else f"{step.step}: failed ({step.error})"
            for step in self.steps
        ]
        if self.status is MergeStatus.ALREADY_MERGED:
            lines.append("Source player no longer exists, already merged")
        elif self.source_deleted:
            lines.append("Source player deleted")
        return lines

    def raise_for_failure(self) -> None:
        if self.status is MergeStatus.PARTIAL_FAILURE:
            raise PartialMergeFailure([self])


class MergePlayersBody(BaseModel):
    source_player_ids: list[PlayerId] = Field(min_length=1)
    target_player_id: PlayerId
