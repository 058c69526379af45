from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
from sqlmodel.ext.asyncio.session import AsyncSession

from chargedup_scouting.db.database import get_session
from chargedup_scouting.errors import DuplicateMatchRecordError, MalformedMatchRecordError
from chargedup_scouting.models import MatchRecord
from chargedup_scouting.services.match_store import insert_match
from chargedup_scouting.services.submission import (
    SubmissionRequest,
    SubmissionSummary,
    submit_reports,
)

router = APIRouter(
    prefix="/submit",
    tags=["Submit"],
)


@router.get("", response_class=HTMLResponse)
async def submission_info() -> str:
    return "<title>Submission Upload Route</title>Submission Upload Route"


@router.post("", response_model=SubmissionSummary)
async def submit_match_reports(
    request: SubmissionRequest,
    session: AsyncSession = Depends(get_session),
) -> SubmissionSummary:
    return await submit_reports(session, request.submissions)


@router.post("/match", status_code=201, response_model=MatchRecord)
async def submit_single_match(
    match: MatchRecord,
    session: AsyncSession = Depends(get_session),
) -> MatchRecord:
    try:
        await insert_match(session, match)
    except DuplicateMatchRecordError as exc:
        raise HTTPException(
            status_code=409,
            detail=f"Match {match.match_number} ({match.alliance.value}): {exc}",
        ) from exc
    except MalformedMatchRecordError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return match
