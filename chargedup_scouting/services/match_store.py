import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from chargedup_scouting.errors import DuplicateMatchRecordError, MalformedMatchRecordError
from chargedup_scouting.models import (
    Alliance,
    MatchData2023,
    MatchRecord,
    RobotData2023,
    RobotRecord,
    ScoreGrid,
)

logger = logging.getLogger(__name__)


class MatchBounds(SQLModel):
    min: Optional[int] = None
    max: Optional[int] = None


def _to_rows(record: MatchRecord) -> Tuple[MatchData2023, List[RobotData2023]]:
    match_row = MatchData2023(
        match_number=record.match_number,
        alliance=record.alliance,
        win_result=record.win_result,
        timestamp=record.timestamp,
        score_grid=record.score_grid.model_dump(mode="json"),
    )
    robot_rows = [
        RobotData2023(
            match_number=record.match_number,
            alliance=record.alliance,
            slot_id=robot.slot_id,
            team_number=robot.team_number,
            auto_mobility=robot.auto_mobility,
            auto_charge=robot.auto_charge,
            end_charge=robot.end_charge,
            notes=robot.notes,
        )
        for robot in record.robots
    ]
    return match_row, robot_rows


def _to_record(match_row: MatchData2023, robot_rows: Sequence[RobotData2023]) -> MatchRecord:
    robots_by_slot: Dict[int, RobotRecord] = {
        row.slot_id: RobotRecord(
            team_number=row.team_number,
            slot_id=row.slot_id,
            auto_mobility=row.auto_mobility,
            auto_charge=row.auto_charge,
            end_charge=row.end_charge,
            notes=row.notes or "",
        )
        for row in robot_rows
    }
    return MatchRecord(
        match_number=match_row.match_number,
        alliance=match_row.alliance,
        win_result=match_row.win_result,
        timestamp=match_row.timestamp,
        score_grid=ScoreGrid.model_validate(match_row.score_grid),
        team1_data=robots_by_slot.get(1),
        team2_data=robots_by_slot.get(2),
        team3_data=robots_by_slot.get(3),
    )


async def fetch_all_matches(session: AsyncSession) -> List[MatchRecord]:
    """Every stored alliance record, ordered by match number ascending."""
    match_result = await session.execute(
        select(MatchData2023).order_by(MatchData2023.match_number, MatchData2023.alliance)
    )
    match_rows = match_result.scalars().all()

    robot_result = await session.execute(select(RobotData2023))
    robots_by_alliance: Dict[Tuple[int, Alliance], List[RobotData2023]] = defaultdict(list)
    for robot_row in robot_result.scalars().all():
        robots_by_alliance[(robot_row.match_number, robot_row.alliance)].append(robot_row)

    return [
        _to_record(match_row, robots_by_alliance[(match_row.match_number, match_row.alliance)])
        for match_row in match_rows
    ]


async def insert_match(session: AsyncSession, record: MatchRecord) -> None:
    existing = await session.get(MatchData2023, (record.match_number, record.alliance))
    if existing is not None:
        raise DuplicateMatchRecordError(record.match_number, record.alliance.value)

    opposing = await session.get(MatchData2023, (record.match_number, record.alliance.opponent))
    if opposing is not None and opposing.win_result != record.win_result.opposing:
        raise MalformedMatchRecordError(
            f"match {record.match_number} result {record.win_result.value} conflicts with "
            f"{opposing.alliance.value} alliance result {opposing.win_result.value}"
        )

    match_row, robot_rows = _to_rows(record)
    session.add(match_row)
    session.add_all(robot_rows)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise DuplicateMatchRecordError(record.match_number, record.alliance.value) from exc

    logger.debug("Stored match %s (%s)", record.match_number, record.alliance.value)


def list_all_teams(matches: Sequence[MatchRecord]) -> List[int]:
    teams = {team_number for match in matches for team_number in match.team_numbers}
    return sorted(teams)


def match_bounds(matches: Sequence[MatchRecord]) -> MatchBounds:
    if not matches:
        return MatchBounds()
    match_numbers = [match.match_number for match in matches]
    return MatchBounds(min=min(match_numbers), max=max(match_numbers))


async def get_all_teams(session: AsyncSession) -> List[int]:
    return list_all_teams(await fetch_all_matches(session))


async def get_match_bounds(session: AsyncSession) -> MatchBounds:
    return match_bounds(await fetch_all_matches(session))
