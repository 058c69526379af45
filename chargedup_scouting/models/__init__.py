"""Convenience exports for the models package."""

from .match_data_2023 import MatchData2023, RobotData2023
from .match_record import (
    GRID_COLUMNS,
    Alliance,
    ChargeType,
    ItemType,
    MatchRecord,
    RobotRecord,
    RowType,
    ScoreGrid,
    ScoringCell,
    WinResult,
)
