from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from .match_record import Alliance, ChargeType, WinResult, utc_now


class MatchData2023(SQLModel, table=True):
    """Alliance-level row for one scouted CHARGED UP match.

    ``(match_number, alliance)`` is the primary key, so a second report for the
    same alliance in the same match can never be stored.
    """

    __tablename__ = "matchdata2023"

    match_number: int = Field(primary_key=True)
    alliance: Alliance = Field(primary_key=True)
    win_result: WinResult
    timestamp: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False)
    )

    # {"top": [...9 cells], "mid": [...], "low": [...]}
    score_grid: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))


class RobotData2023(SQLModel, table=True):
    __tablename__ = "robotdata2023"

    match_number: int = Field(primary_key=True)
    alliance: Alliance = Field(primary_key=True)
    slot_id: int = Field(primary_key=True)

    team_number: int = Field(index=True)
    auto_mobility: bool = Field(default=False)
    auto_charge: ChargeType = Field(default=ChargeType.NONE)
    end_charge: ChargeType = Field(default=ChargeType.NONE)
    notes: str = Field(default="")
