from datetime import datetime, timezone
from enum import Enum
from typing import List, Tuple

from pydantic import field_validator, model_validator
from sqlmodel import Field, SQLModel

GRID_COLUMNS = 9
SLOT_IDS = (1, 2, 3)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Alliance(str, Enum):
    RED = "red"
    BLUE = "blue"

    @property
    def opponent(self) -> "Alliance":
        return Alliance.BLUE if self == Alliance.RED else Alliance.RED


class WinResult(str, Enum):
    DEFEAT = "defeat"
    TIE = "tie"
    VICTORY = "victory"

    @property
    def opposing(self) -> "WinResult":
        """The result the other alliance must have recorded for the same match."""
        return OPPOSING_RESULTS[self]


OPPOSING_RESULTS = {
    WinResult.DEFEAT: WinResult.VICTORY,
    WinResult.TIE: WinResult.TIE,
    WinResult.VICTORY: WinResult.DEFEAT,
}


class ChargeType(str, Enum):
    NONE = "none"
    DOCKED = "docked"
    CHARGED = "charged"


class ItemType(str, Enum):
    NONE = "none"
    CONE = "cone"
    CUBE = "cube"


class RowType(str, Enum):
    TOP = "top"
    MID = "mid"
    LOW = "low"


class ScoringCell(SQLModel):
    item: ItemType = ItemType.NONE
    team_id: int = Field(default=0, ge=0, le=3)
    auto: bool = False

    @property
    def occupied(self) -> bool:
        return self.item != ItemType.NONE

    @model_validator(mode="after")
    def _occupied_cell_has_slot(self) -> "ScoringCell":
        if self.occupied and self.team_id == 0:
            raise ValueError("an occupied scoring cell must name a slot between 1 and 3")
        return self


class ScoreGrid(SQLModel):
    top: List[ScoringCell]
    mid: List[ScoringCell]
    low: List[ScoringCell]

    @field_validator("top", "mid", "low")
    @classmethod
    def _row_has_nine_cells(cls, row: List[ScoringCell]) -> List[ScoringCell]:
        if len(row) != GRID_COLUMNS:
            raise ValueError(f"a scoring row must have exactly {GRID_COLUMNS} cells, got {len(row)}")
        return row

    def row(self, row: RowType) -> List[ScoringCell]:
        return getattr(self, row.value)


class RobotRecord(SQLModel):
    team_number: int = Field(gt=0)
    slot_id: int = Field(ge=1, le=3)
    auto_mobility: bool
    auto_charge: ChargeType
    end_charge: ChargeType
    notes: str = ""


class MatchRecord(SQLModel):
    """One alliance's scouted performance in one match."""

    match_number: int = Field(gt=0)
    alliance: Alliance
    win_result: WinResult
    timestamp: datetime = Field(default_factory=utc_now)
    score_grid: ScoreGrid
    team1_data: RobotRecord
    team2_data: RobotRecord
    team3_data: RobotRecord

    @field_validator("timestamp")
    @classmethod
    def _timestamp_is_utc(cls, value: datetime) -> datetime:
        # naive values (SQLite reads, offset-less JSON) are taken as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _slots_are_consistent(self) -> "MatchRecord":
        for expected_slot, robot in zip(SLOT_IDS, self.robots):
            if robot.slot_id != expected_slot:
                raise ValueError(
                    f"team{expected_slot}_data must carry slot id {expected_slot}, got {robot.slot_id}"
                )

        team_numbers = [robot.team_number for robot in self.robots]
        if len(set(team_numbers)) != len(team_numbers):
            raise ValueError(f"team numbers must be unique within an alliance, got {team_numbers}")
        return self

    @property
    def robots(self) -> Tuple[RobotRecord, RobotRecord, RobotRecord]:
        return (self.team1_data, self.team2_data, self.team3_data)

    @property
    def team_numbers(self) -> List[int]:
        return [robot.team_number for robot in self.robots]

    def slot_for_team(self, team_number: int) -> int:
        """Return the slot id ``team_number`` occupies, or 0 if it did not play."""
        for robot in self.robots:
            if robot.team_number == team_number:
                return robot.slot_id
        return 0
