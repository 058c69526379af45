from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel.ext.asyncio.session import AsyncSession

from chargedup_scouting.db.database import get_session
from chargedup_scouting.services.match_stats import MatchStats, get_match_stats
from chargedup_scouting.services.match_store import MatchBounds, get_all_teams, get_match_bounds
from chargedup_scouting.services.snapshot import DataSnapshot, get_data_snapshot
from chargedup_scouting.services.team_stats import TeamStats, get_team_stats

router = APIRouter(tags=["Stats"])


@router.get("/data", response_model=DataSnapshot)
async def get_all_data(session: AsyncSession = Depends(get_session)) -> DataSnapshot:
    return await get_data_snapshot(session)


@router.get("/teams", response_model=List[int])
async def list_teams(session: AsyncSession = Depends(get_session)) -> List[int]:
    return await get_all_teams(session)


@router.get("/teams/{teamNumber}/stats", response_model=TeamStats)
async def get_team_statistics(teamNumber: int, session: AsyncSession = Depends(get_session)) -> TeamStats:
    stats = await get_team_stats(session, teamNumber)
    if stats is None:
        raise HTTPException(status_code=404, detail="Team not found")
    return stats


@router.get("/matches/bounds", response_model=MatchBounds)
async def get_bounds(session: AsyncSession = Depends(get_session)) -> MatchBounds:
    return await get_match_bounds(session)


@router.get("/matches/{matchNumber}/stats", response_model=MatchStats)
async def get_match_statistics(matchNumber: int, session: AsyncSession = Depends(get_session)) -> MatchStats:
    return await get_match_stats(session, matchNumber)
