import pytest

from chargedup_scouting.models import Alliance, ChargeType, WinResult
from chargedup_scouting.services.team_stats import build_team_stats, distribution
from tests.builders import build_record

TEAM = 254


def _season():
    """Team 254 plays from a different slot in each of three matches."""
    return [
        build_record(
            3,
            Alliance.RED,
            WinResult.TIE,
            teams=(555, 666, TEAM),
            notes=("", "", "tipped over 😬 then recovered 😬👍"),
            mobility=(False, False, True),
        ),
        build_record(
            1,
            Alliance.RED,
            WinResult.VICTORY,
            teams=(TEAM, 111, 222),
            top="1a2......",
            low="1........",
            auto_charges=(ChargeType.CHARGED, ChargeType.NONE, ChargeType.NONE),
            end_charges=(ChargeType.DOCKED, ChargeType.NONE, ChargeType.NONE),
            mobility=(True, False, False),
            notes=("fast cycles 🚀🔥", "", ""),
        ),
        # other alliance of match 1, slot 1 here is not team 254
        build_record(1, Alliance.BLUE, WinResult.DEFEAT, teams=(333, 444, 777), top="111111111"),
        build_record(
            2,
            Alliance.BLUE,
            WinResult.DEFEAT,
            teams=(333, TEAM, 444),
            top="2........",
            mid="222......",
            auto_charges=(ChargeType.NONE, ChargeType.DOCKED, ChargeType.NONE),
            end_charges=(ChargeType.NONE, ChargeType.CHARGED, ChargeType.NONE),
            notes=("", "", "slow"),
        ),
        build_record(4, Alliance.BLUE, teams=(777, 888, 999), top="111111111"),
    ]


def test_unknown_team_has_no_stats():
    assert build_team_stats(_season(), 9999) is None
    assert build_team_stats([], TEAM) is None


def test_played_matches_are_ordered_with_their_slot():
    stats = build_team_stats(_season(), TEAM)

    assert [match.match_number for match in stats.matches.played] == [1, 2, 3]
    assert [match.slot_id for match in stats.matches.played] == [1, 2, 3]
    assert [match.alliance for match in stats.matches.played] == [Alliance.RED, Alliance.BLUE, Alliance.RED]


def test_win_loss_record():
    matches = build_team_stats(_season(), TEAM).matches

    assert matches.number_played == 3
    assert matches.won == 1
    assert matches.lost == 1
    assert matches.tie == 1
    assert matches.win_percent == pytest.approx(0.5)


def test_auto_and_end_game_rates_count_each_robot_independently():
    stats = build_team_stats(_season(), TEAM)

    assert stats.auto.mobility == 2
    assert stats.auto.mobility_percent == pytest.approx(2 / 3)
    assert stats.auto.docked == 1
    assert stats.auto.charged == 1
    assert stats.auto.charge_percent == pytest.approx(1 / 3)
    assert stats.end.docked == 1
    assert stats.end.docked_percent == pytest.approx(1 / 3)
    assert stats.end.charged == 1
    assert stats.end.charge_percent == pytest.approx(1 / 3)


def test_heat_maps_follow_the_team_slot_in_each_match():
    grid = build_team_stats(_season(), TEAM).teleop.score_grid

    assert grid.top.heat_map == [2, 1, 0, 0, 0, 0, 0, 0, 0]
    assert grid.mid.heat_map == [1, 1, 1, 0, 0, 0, 0, 0, 0]
    assert grid.low.heat_map == [1, 0, 0, 0, 0, 0, 0, 0, 0]


def test_item_and_score_totals_per_row():
    grid = build_team_stats(_season(), TEAM).teleop.score_grid

    assert [(items.cones, items.cubes) for items in grid.top.item_totals] == [(1, 1), (1, 0), (0, 0)]
    assert grid.top.scores.values == [2, 1, 0]
    assert grid.top.scores.total == 3
    assert grid.top.scores.mean == pytest.approx(1.0)
    assert grid.top.scores.median == pytest.approx(1.0)
    assert grid.top.scores.variance == pytest.approx(2 / 3)
    assert grid.mid.scores.values == [0, 3, 0]
    assert grid.low.scores.values == [1, 0, 0]


def test_link_contribution_only_counts_this_team():
    grid = build_team_stats(_season(), TEAM).teleop.score_grid

    assert grid.top.links.values == pytest.approx([2 / 3, 0, 0])
    assert grid.top.links.total == pytest.approx(2 / 3)
    assert grid.mid.links.values == pytest.approx([0, 1, 0])
    assert grid.low.links.values == [0, 0, 0]


def test_notes_and_first_emoji_per_note():
    stats = build_team_stats(_season(), TEAM)

    assert stats.notes == ["fast cycles 🚀🔥", "tipped over 😬 then recovered 😬👍"]
    assert stats.emojis == ["🚀", "😬"]


def test_empty_distribution_is_all_none():
    empty = distribution([])

    assert empty.values == []
    assert empty.total == 0
    assert empty.mean is None
    assert empty.median is None
    assert empty.variance is None
    assert empty.stdev is None
