from typing import List, Sequence

from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from chargedup_scouting.models import MatchRecord
from chargedup_scouting.services.match_stats import MatchStats, build_match_stats
from chargedup_scouting.services.match_store import (
    MatchBounds,
    fetch_all_matches,
    list_all_teams,
    match_bounds,
)
from chargedup_scouting.services.team_stats import TeamStats, build_team_stats


class SnapshotStats(SQLModel):
    teams: List[TeamStats]
    matches: List[MatchStats]


class DataSnapshot(SQLModel):
    matches: List[MatchRecord]
    team_list: List[int]
    match_bounds: MatchBounds
    stats: SnapshotStats


def build_data_snapshot(matches: Sequence[MatchRecord]) -> DataSnapshot:
    """Every team's and every match number's statistics from one read of the store."""
    teams = list_all_teams(matches)
    bounds = match_bounds(matches)

    match_numbers: List[int] = []
    if bounds.min is not None and bounds.max is not None:
        match_numbers = list(range(bounds.min, bounds.max + 1))

    return DataSnapshot(
        matches=list(matches),
        team_list=teams,
        match_bounds=bounds,
        stats=SnapshotStats(
            teams=[build_team_stats(matches, team_number) for team_number in teams],
            matches=[build_match_stats(matches, match_number) for match_number in match_numbers],
        ),
    )


async def get_data_snapshot(session: AsyncSession) -> DataSnapshot:
    return build_data_snapshot(await fetch_all_matches(session))
