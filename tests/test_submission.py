import asyncio
from datetime import datetime, timezone

import pytest

from chargedup_scouting.errors import MalformedMatchRecordError
from chargedup_scouting.models import Alliance, ChargeType, ItemType, WinResult
from chargedup_scouting.services.match_store import fetch_all_matches
from chargedup_scouting.services.submission import decode_match_xml, submit_reports
from tests.builders import build_report_xml
from tests.conftest import AsyncSessionLocal


def test_decode_report_into_match_record():
    record = decode_match_xml(
        build_report_xml(
            7,
            alliance="blue",
            win_result="defeat",
            teams=(971, 973, 1323),
            top="1b.......",
            charge_codes=(2, 1, 0),
            notes=("great auto 🤖", "", ""),
        )
    )

    assert record.match_number == 7
    assert record.alliance == Alliance.BLUE
    assert record.win_result == WinResult.DEFEAT
    assert record.timestamp == datetime(2023, 3, 5, 7, 6, 40, tzinfo=timezone.utc)
    assert record.team_numbers == [971, 973, 1323]
    assert [robot.auto_charge for robot in record.robots] == [
        ChargeType.CHARGED,
        ChargeType.DOCKED,
        ChargeType.NONE,
    ]
    assert record.team1_data.auto_mobility is True
    assert record.team1_data.notes == "great auto 🤖"
    assert record.score_grid.top[0].item == ItemType.CONE
    assert record.score_grid.top[0].team_id == 1
    assert record.score_grid.top[1].item == ItemType.CUBE
    assert record.score_grid.top[1].team_id == 2
    assert record.score_grid.top[2].item == ItemType.NONE


def test_teams_are_placed_by_their_slot_id():
    xml = build_report_xml(8, teams=(1, 2, 3))
    # move the slot 1 team to the end of the report
    first_team_end = xml.index("</Team>") + len("</Team>")
    first_team_start = xml.index("<Team>")
    first_team = xml[first_team_start:first_team_end]
    reordered = xml[:first_team_start] + xml[first_team_end:]
    reordered = reordered.replace("<ScoreGrid>", first_team + "<ScoreGrid>")

    record = decode_match_xml(reordered)
    assert record.team1_data.team_number == 1
    assert record.team_numbers == [1, 2, 3]


@pytest.mark.parametrize(
    "xml",
    [
        "<MatchData matchNumber=",
        "<Report matchNumber='1' timestamp='0'/>",
        build_report_xml(1, alliance="none"),
        build_report_xml(1, win_result="forfeit"),
        build_report_xml(1, top="11111111"),
        build_report_xml(1, teams=(5, 5, 6)),
        build_report_xml(0),
        build_report_xml(1).replace("<Item>0</Item>", "<Item>3</Item>", 1),
        build_report_xml(1).replace("<TeamID>0</TeamID>", "<TeamID>4</TeamID>", 1),
        build_report_xml(1).replace("<ID>2</ID>", "<ID>1</ID>"),
        build_report_xml(1).replace("<EndCharge>0</EndCharge>", "", 1),
        build_report_xml(1).replace("<AutoCharge>0</AutoCharge>", "<AutoCharge>7</AutoCharge>", 1),
        build_report_xml(1).replace("<EndCharge>0</EndCharge>", "<EndCharge>-1</EndCharge>", 1),
        build_report_xml(1).replace('matchNumber="1"', 'matchNumber="first"'),
    ],
)
def test_malformed_reports_are_rejected(xml):
    with pytest.raises(MalformedMatchRecordError):
        decode_match_xml(xml)


def test_occupied_cell_without_slot_is_rejected():
    xml = build_report_xml(1).replace(
        "<Item>0</Item><TeamID>0</TeamID>", "<Item>1</Item><TeamID>0</TeamID>", 1
    )
    with pytest.raises(MalformedMatchRecordError):
        decode_match_xml(xml)


def test_submit_reports_inserts_valid_reports_and_collects_rejections():
    reports = [
        build_report_xml(1, alliance="red", win_result="victory"),
        build_report_xml(1, alliance="blue", win_result="defeat", teams=(4, 5, 6)),
        build_report_xml(1, alliance="red", win_result="victory", teams=(7, 8, 9)),
        "<MatchData/>",
    ]

    async def _submit():
        async with AsyncSessionLocal() as session:
            summary = await submit_reports(session, reports)
            return summary, await fetch_all_matches(session)

    summary, stored = asyncio.run(_submit())

    assert summary.submitted == 4
    assert summary.inserted == 2
    assert len(summary.rejections) == 2

    malformed, duplicate = summary.rejections
    assert malformed.match_number is None
    assert malformed.reason.startswith("Malformed match record")
    assert duplicate.match_number == 1
    assert duplicate.alliance == Alliance.RED
    assert duplicate.reason == "Already exists in the database."

    assert len(stored) == 2
    assert {match.alliance for match in stored} == {Alliance.RED, Alliance.BLUE}
