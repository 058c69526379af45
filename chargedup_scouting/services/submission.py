import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from chargedup_scouting.errors import DuplicateMatchRecordError, MalformedMatchRecordError
from chargedup_scouting.models import Alliance, ChargeType, ItemType, MatchRecord, RowType
from chargedup_scouting.services.match_store import insert_match

logger = logging.getLogger(__name__)

CHARGE_CODES: Dict[int, ChargeType] = {
    0: ChargeType.NONE,
    1: ChargeType.DOCKED,
    2: ChargeType.CHARGED,
}

ITEM_CODES: Dict[int, ItemType] = {
    0: ItemType.NONE,
    1: ItemType.CONE,
    2: ItemType.CUBE,
}

ROW_TAGS: Dict[RowType, str] = {
    RowType.TOP: "Top",
    RowType.MID: "Mid",
    RowType.LOW: "Low",
}


class SubmissionRequest(SQLModel):
    submissions: List[str] = []


class SubmissionRejection(SQLModel):
    match_number: Optional[int] = None
    alliance: Optional[Alliance] = None
    reason: str


class SubmissionSummary(SQLModel):
    submitted: int
    inserted: int
    rejections: List[SubmissionRejection]


def _child(element: ET.Element, tag: str) -> ET.Element:
    child = element.find(tag)
    if child is None:
        raise MalformedMatchRecordError(f"<{element.tag}> is missing <{tag}>")
    return child


def _text(element: ET.Element, tag: str) -> str:
    return (_child(element, tag).text or "").strip()


def _parse_int(value: Optional[str], name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise MalformedMatchRecordError(f"{name} is not an integer: {value!r}") from exc


def _parse_bool(value: str) -> bool:
    return value == "true"


def _decode_charge(team: ET.Element, tag: str) -> ChargeType:
    charge_code = _parse_int(_text(team, tag), tag)
    if charge_code not in CHARGE_CODES:
        raise MalformedMatchRecordError(f"unknown {tag} code {charge_code}")
    return CHARGE_CODES[charge_code]


def _decode_team(team: ET.Element) -> Dict[str, Any]:
    return {
        "slot_id": _parse_int(_text(team, "ID"), "ID"),
        "team_number": _parse_int(_text(team, "TeamNumber"), "TeamNumber"),
        "auto_mobility": _parse_bool(_text(team, "AutoMobility")),
        "auto_charge": _decode_charge(team, "AutoCharge"),
        "end_charge": _decode_charge(team, "EndCharge"),
        "notes": _child(team, "Notes").text or "",
    }


def _decode_cell(score: ET.Element) -> Dict[str, Any]:
    item_code = _parse_int(_text(score, "Item"), "Item")
    if item_code not in ITEM_CODES:
        raise MalformedMatchRecordError(f"unknown item code {item_code}")
    return {
        "auto": _parse_bool(_text(score, "Auto")),
        "item": ITEM_CODES[item_code],
        "team_id": _parse_int(_text(score, "TeamID"), "TeamID"),
    }


def decode_match_xml(xml_string: str) -> MatchRecord:
    """Decode one field-submitted ``<MatchData>`` report into a match record."""
    try:
        root = ET.fromstring(xml_string)
    except ET.ParseError as exc:
        raise MalformedMatchRecordError(f"invalid XML: {exc}") from exc

    if root.tag != "MatchData":
        raise MalformedMatchRecordError(f"expected <MatchData> root, got <{root.tag}>")

    match_number = _parse_int(root.get("matchNumber"), "matchNumber")
    timestamp_ms = _parse_int(root.get("timestamp"), "timestamp")
    try:
        timestamp = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise MalformedMatchRecordError(f"timestamp out of range: {timestamp_ms}") from exc

    teams = [_decode_team(team) for team in root.findall("Team")]
    slot_ids = sorted(team["slot_id"] for team in teams)
    if slot_ids != [1, 2, 3]:
        raise MalformedMatchRecordError(f"expected teams in slots 1, 2 and 3, got {slot_ids}")

    grid = _child(root, "ScoreGrid")
    score_grid = {
        row_type.value: [_decode_cell(score) for score in _child(grid, tag).findall("Score")]
        for row_type, tag in ROW_TAGS.items()
    }

    payload: Dict[str, Any] = {
        "match_number": match_number,
        "alliance": _text(root, "Alliance"),
        "win_result": _text(root, "AllianceWin"),
        "timestamp": timestamp,
        "score_grid": score_grid,
    }
    for team in teams:
        payload[f"team{team['slot_id']}_data"] = team

    try:
        return MatchRecord.model_validate(payload)
    except ValidationError as exc:
        raise MalformedMatchRecordError(str(exc)) from exc


async def submit_reports(session: AsyncSession, reports: Sequence[str]) -> SubmissionSummary:
    """Decode and store a batch of XML reports.

    A report that is malformed or already stored is rejected on its own; the rest
    of the batch is still inserted.
    """
    logger.info("Preparing submission upload of %d reports", len(reports))

    rejections: List[SubmissionRejection] = []
    records: List[MatchRecord] = []
    for report in reports:
        try:
            record = decode_match_xml(report)
        except MalformedMatchRecordError as exc:
            rejections.append(SubmissionRejection(reason=str(exc)))
            continue
        logger.info("Found match %s (%s)", record.match_number, record.alliance.value)
        records.append(record)

    inserted = 0
    for record in records:
        try:
            await insert_match(session, record)
        except (DuplicateMatchRecordError, MalformedMatchRecordError) as exc:
            rejections.append(
                SubmissionRejection(
                    match_number=record.match_number,
                    alliance=record.alliance,
                    reason=str(exc),
                )
            )
            continue
        inserted += 1

    logger.info("Finished uploading %d submissions", inserted)
    for rejection in rejections:
        logger.warning(
            "Rejected match %s (%s): %s",
            rejection.match_number,
            rejection.alliance.value if rejection.alliance else "unknown",
            rejection.reason,
        )

    return SubmissionSummary(submitted=len(reports), inserted=inserted, rejections=rejections)
