from typing import Dict, List, Optional, Sequence

from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from chargedup_scouting.models import (
    GRID_COLUMNS,
    Alliance,
    ChargeType,
    ItemType,
    MatchRecord,
    RobotRecord,
    RowType,
    WinResult,
)
from chargedup_scouting.services.match_stats import LINK_LENGTH, find_links
from chargedup_scouting.services.match_store import fetch_all_matches, list_all_teams
from chargedup_scouting.services.summary_stats import (
    extract_emojis,
    mean,
    median,
    stdev,
    total,
    variance,
)


class PlayedMatch(SQLModel):
    match_number: int
    alliance: Alliance
    win_result: WinResult
    slot_id: int


class MatchRecordSummary(SQLModel):
    played: List[PlayedMatch]
    number_played: int
    won: int
    lost: int
    tie: int
    win_percent: Optional[float] = None


class AutoStats(SQLModel):
    mobility: int
    mobility_percent: Optional[float] = None
    docked: int
    docked_percent: Optional[float] = None
    charged: int
    charge_percent: Optional[float] = None


class EndStats(SQLModel):
    docked: int
    docked_percent: Optional[float] = None
    charged: int
    charge_percent: Optional[float] = None


class ItemTotals(SQLModel):
    cones: int = 0
    cubes: int = 0


class Distribution(SQLModel):
    values: List[float]
    total: float
    mean: Optional[float] = None
    median: Optional[float] = None
    variance: Optional[float] = None
    stdev: Optional[float] = None


class RowStats(SQLModel):
    heat_map: List[int]
    item_totals: List[ItemTotals]
    scores: Distribution
    links: Distribution


class ScoreGridStats(SQLModel):
    top: RowStats
    mid: RowStats
    low: RowStats


class TeleopStats(SQLModel):
    score_grid: ScoreGridStats


class TeamStats(SQLModel):
    team_number: int
    notes: List[str]
    emojis: List[str]
    matches: MatchRecordSummary
    auto: AutoStats
    teleop: TeleopStats
    end: EndStats


def _rate(count: int, played: int) -> Optional[float]:
    if played == 0:
        return None
    return count / played


def distribution(values: Sequence[float]) -> Distribution:
    return Distribution(
        values=list(values),
        total=total(values),
        mean=mean(values),
        median=median(values),
        variance=variance(values),
        stdev=stdev(values),
    )


def _match_summary(appearances: Sequence[PlayedMatch]) -> MatchRecordSummary:
    played = len(appearances)
    won = sum(1 for match in appearances if match.win_result == WinResult.VICTORY)
    lost = sum(1 for match in appearances if match.win_result == WinResult.DEFEAT)
    tie = sum(1 for match in appearances if match.win_result == WinResult.TIE)
    return MatchRecordSummary(
        played=list(appearances),
        number_played=played,
        won=won,
        lost=lost,
        tie=tie,
        win_percent=_rate(won + 0.5 * tie, played),
    )


def _auto_stats(robots: Sequence[RobotRecord]) -> AutoStats:
    played = len(robots)
    mobility = sum(1 for robot in robots if robot.auto_mobility)
    docked = sum(1 for robot in robots if robot.auto_charge == ChargeType.DOCKED)
    charged = sum(1 for robot in robots if robot.auto_charge == ChargeType.CHARGED)
    return AutoStats(
        mobility=mobility,
        mobility_percent=_rate(mobility, played),
        docked=docked,
        docked_percent=_rate(docked, played),
        charged=charged,
        charge_percent=_rate(charged, played),
    )


def _end_stats(robots: Sequence[RobotRecord]) -> EndStats:
    played = len(robots)
    docked = sum(1 for robot in robots if robot.end_charge == ChargeType.DOCKED)
    charged = sum(1 for robot in robots if robot.end_charge == ChargeType.CHARGED)
    return EndStats(
        docked=docked,
        docked_percent=_rate(docked, played),
        charged=charged,
        charge_percent=_rate(charged, played),
    )


def _row_stats(matches: Sequence[MatchRecord], slots: Sequence[int], row_type: RowType) -> RowStats:
    heat_map = [0] * GRID_COLUMNS
    item_totals: List[ItemTotals] = []
    score_totals: List[int] = []
    link_totals: List[float] = []

    for match, slot in zip(matches, slots):
        row = match.score_grid.row(row_type)
        items = ItemTotals()
        for column, cell in enumerate(row):
            if cell.team_id != slot or not cell.occupied:
                continue
            if cell.item == ItemType.CONE:
                items.cones += 1
            elif cell.item == ItemType.CUBE:
                items.cubes += 1
            heat_map[column] += 1

        link_cells = sum(1 for link in find_links(row) for cell in link if cell.team_id == slot)

        item_totals.append(items)
        score_totals.append(items.cones + items.cubes)
        link_totals.append(link_cells / LINK_LENGTH)

    return RowStats(
        heat_map=heat_map,
        item_totals=item_totals,
        scores=distribution(score_totals),
        links=distribution(link_totals),
    )


def build_team_stats(matches: Sequence[MatchRecord], team_number: int) -> Optional[TeamStats]:
    """Aggregate a team's performance across every match it played.

    Returns ``None`` when the team never appears in ``matches``.
    """
    if team_number not in list_all_teams(matches):
        return None

    played = sorted(
        (match for match in matches if team_number in match.team_numbers),
        key=lambda match: match.match_number,
    )
    slots = [match.slot_for_team(team_number) for match in played]
    robots = [match.robots[slot - 1] for match, slot in zip(played, slots)]

    appearances = [
        PlayedMatch(
            match_number=match.match_number,
            alliance=match.alliance,
            win_result=match.win_result,
            slot_id=slot,
        )
        for match, slot in zip(played, slots)
    ]

    notes = [robot.notes for robot in robots if robot.notes]
    emojis = []
    for note in notes:
        note_emojis = extract_emojis(note)
        if note_emojis:
            emojis.append(note_emojis[0])

    rows: Dict[str, RowStats] = {
        row_type.value: _row_stats(played, slots, row_type) for row_type in RowType
    }

    return TeamStats(
        team_number=team_number,
        notes=notes,
        emojis=emojis,
        matches=_match_summary(appearances),
        auto=_auto_stats(robots),
        teleop=TeleopStats(score_grid=ScoreGridStats(**rows)),
        end=_end_stats(robots),
    )


async def get_team_stats(session: AsyncSession, team_number: int) -> Optional[TeamStats]:
    return build_team_stats(await fetch_all_matches(session), team_number)
