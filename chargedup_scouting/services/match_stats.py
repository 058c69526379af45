from typing import Dict, List, Optional, Sequence, Tuple

from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from chargedup_scouting.models import (
    Alliance,
    ChargeType,
    MatchRecord,
    RobotRecord,
    RowType,
    ScoringCell,
    WinResult,
)
from chargedup_scouting.services.match_store import fetch_all_matches

# (auto, teleop) point value of a game piece in each row
ROW_VALUES: Dict[RowType, Tuple[int, int]] = {
    RowType.TOP: (6, 5),
    RowType.MID: (4, 3),
    RowType.LOW: (3, 2),
}

COOP_COLUMNS = range(3, 6)
COOP_MIN_SCORES = 3

LINK_LENGTH = 3

AUTO_CHARGED_POINTS = 12
AUTO_DOCKED_POINTS = 8
END_CHARGED_POINTS = 10
END_DOCKED_POINTS = 6
ACTIVATION_THRESHOLD = 26

SUSTAINABILITY_THRESHOLD = 5
COOP_SUSTAINABILITY_THRESHOLD = 4

RESULT_RANKING_POINTS: Dict[WinResult, int] = {
    WinResult.VICTORY: 2,
    WinResult.TIE: 1,
    WinResult.DEFEAT: 0,
}


class AllianceMatchStats(SQLModel):
    match_number: int
    alliance: Alliance
    win_result: WinResult
    teams: List[int]
    scores_per_team: List[int]
    points_per_team: List[int]
    links_per_team: List[float]
    total_links: float
    coop_scores: int
    coop: bool
    auto_charge_points: int
    end_charge_points: int
    activation: bool
    # None when the opposing alliance has not been scouted
    sustainability: Optional[bool] = None
    ranking_points: int = 0


class MatchStats(SQLModel):
    match_number: int
    coop: Optional[bool] = None
    blue: Optional[AllianceMatchStats] = None
    red: Optional[AllianceMatchStats] = None


def find_links(row: Sequence[ScoringCell]) -> List[Tuple[ScoringCell, ...]]:
    """Scan a row left to right for non-overlapping runs of three occupied cells.

    Once a link is found the scan resumes after it, so no cell is part of two links.
    """
    links: List[Tuple[ScoringCell, ...]] = []
    column = 0
    while column + LINK_LENGTH <= len(row):
        cells = tuple(row[column:column + LINK_LENGTH])
        if all(cell.occupied for cell in cells):
            links.append(cells)
            column += LINK_LENGTH
        else:
            column += 1
    return links


def auto_charge_points(robots: Sequence[RobotRecord]) -> int:
    states = [robot.auto_charge for robot in robots]
    if ChargeType.CHARGED in states:
        return AUTO_CHARGED_POINTS
    if ChargeType.DOCKED in states:
        return AUTO_DOCKED_POINTS
    return 0


def end_charge_points(robots: Sequence[RobotRecord]) -> int:
    charging = sum(1 for robot in robots if robot.end_charge == ChargeType.CHARGED)
    docking = 0
    if charging == 0:
        docking = sum(1 for robot in robots if robot.end_charge == ChargeType.DOCKED)
    return charging * END_CHARGED_POINTS + docking * END_DOCKED_POINTS


def _alliance_stats(record: MatchRecord) -> AllianceMatchStats:
    scores_per_team = [0, 0, 0]
    points_per_team = [0, 0, 0]
    # Link credit is counted in thirds so that totals stay exact.
    link_thirds_per_team = [0, 0, 0]
    coop_scores = 0

    for row_type in RowType:
        auto_value, teleop_value = ROW_VALUES[row_type]
        row = record.score_grid.row(row_type)

        for column, cell in enumerate(row):
            if not cell.occupied:
                continue
            slot_index = cell.team_id - 1
            scores_per_team[slot_index] += 1
            points_per_team[slot_index] += auto_value if cell.auto else teleop_value
            if column in COOP_COLUMNS:
                coop_scores += 1

        for link in find_links(row):
            for cell in link:
                link_thirds_per_team[cell.team_id - 1] += 1

    auto_points = auto_charge_points(record.robots)
    end_points = end_charge_points(record.robots)
    activation = auto_points + end_points >= ACTIVATION_THRESHOLD

    ranking_points = RESULT_RANKING_POINTS[record.win_result]
    if activation:
        ranking_points += 1

    return AllianceMatchStats(
        match_number=record.match_number,
        alliance=record.alliance,
        win_result=record.win_result,
        teams=record.team_numbers,
        scores_per_team=scores_per_team,
        points_per_team=points_per_team,
        links_per_team=[thirds / LINK_LENGTH for thirds in link_thirds_per_team],
        total_links=sum(link_thirds_per_team) / LINK_LENGTH,
        coop_scores=coop_scores,
        coop=coop_scores >= COOP_MIN_SCORES,
        auto_charge_points=auto_points,
        end_charge_points=end_points,
        activation=activation,
        ranking_points=ranking_points,
    )


def build_match_stats(matches: Sequence[MatchRecord], match_number: int) -> MatchStats:
    """Per-alliance statistics for ``match_number`` over a snapshot of the store.

    Alliances without a stored record are left as ``None``; the sustainability
    ranking point is only judged when both alliances are present.
    """
    records: Dict[Alliance, MatchRecord] = {
        match.alliance: match for match in matches if match.match_number == match_number
    }
    blue = _alliance_stats(records[Alliance.BLUE]) if Alliance.BLUE in records else None
    red = _alliance_stats(records[Alliance.RED]) if Alliance.RED in records else None

    coop: Optional[bool] = None
    if blue is not None and red is not None:
        coop = blue.coop and red.coop

    threshold = COOP_SUSTAINABILITY_THRESHOLD if coop else SUSTAINABILITY_THRESHOLD
    for stats, opponent in ((blue, red), (red, blue)):
        if stats is None or opponent is None:
            continue
        stats.sustainability = stats.total_links >= threshold
        if stats.sustainability:
            stats.ranking_points += 1

    return MatchStats(match_number=match_number, coop=coop, blue=blue, red=red)


async def get_match_stats(session: AsyncSession, match_number: int) -> MatchStats:
    return build_match_stats(await fetch_all_matches(session), match_number)
