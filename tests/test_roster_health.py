"""Tests for positional roster health."""

from __future__ import annotations

import pytest

from models import RosterSlot
from roster_health import compute_roster_health, tier_label


@pytest.mark.parametrize(
    "diff,label",
    [(6, "Elite"), (5.9, "Starter"), (3, "Starter"), (1, "Flex-worthy"), (0, "Depth"), (-0.1, "Replaceable")],
)
def test_tier_boundaries(diff, label) -> None:
    assert tier_label(diff) == label


@pytest.fixture
def report(make_player):
    optimal = [
        RosterSlot("QB", make_player("qb1", "QB", 20.0)),
        RosterSlot("RB", make_player("rb1", "RB", 15.0)),
        RosterSlot("RB", make_player("rb2", "RB", 10.0)),
        RosterSlot("WR", make_player("wr1", "WR", 12.0)),
    ]
    bench = [
        make_player("rb3", "RB", 8.0),
        make_player("rb4", "RB", 6.0),
        make_player("rb5", "RB", 4.0),
        make_player("rb6", "RB", 2.0),
        make_player("wr2", "WR", 5.0),
    ]
    fas = [
        make_player("fqb1", "QB", 15.0),
        make_player("fqb2", "QB", 13.0),
        make_player("frb1", "RB", 9.0),
        make_player("frb2", "RB", 7.0),
    ] + [make_player(f"fwr{i}", "WR", float(v)) for i, v in enumerate((11, 9, 7, 5, 3, 1))]
    return compute_roster_health(optimal, bench, fas)


def test_position_strength_numbers(report) -> None:
    by_pos = {s.position: s for s in report.by_position}
    assert [s.position for s in report.by_position] == ["QB", "RB", "WR"]

    rb = by_pos["RB"]
    assert rb.demand == 2
    assert rb.starters_proj == pytest.approx(25.0)
    assert rb.depth_proj_weighted == pytest.approx(6.6)  # fourth bench RB adds nothing
    assert rb.replacement_baseline == pytest.approx(8.0)
    assert rb.surplus == pytest.approx(9.0)
    assert rb.shortage == 0.0

    assert by_pos["WR"].replacement_baseline == pytest.approx(7.0)  # top five only
    assert by_pos["QB"].surplus == pytest.approx(6.0)


def test_tiers_relative_to_baseline(report) -> None:
    rb = next(s for s in report.by_position if s.position == "RB")
    assert [(t.name, t.label) for t in rb.tiers[:5]] == [
        ("RB1", "Elite"),
        ("RB2", "Flex-worthy"),
        ("RB3", "Depth"),
        ("RB4", "Replaceable"),
        ("RB5", "Replaceable"),
    ]


def test_strongest_weakest_and_trade_ideas(report) -> None:
    assert report.strongest == ("RB", "WR")
    assert report.weakest == ("QB", "RB")
    assert [(t.give, t.for_need) for t in report.trade_ideas] == [
        ("RB", "QB"),
        ("RB", "RB"),
        ("WR", "QB"),
    ]
    assert len(report.trade_ideas) == 3  # capped; ("WR", "RB") drops off
    assert report.trade_ideas[0].rationale == (
        "Surplus at RB (+9.0 pts over replacement) vs shortage at QB (0.0 pts)."
    )


def test_add_drop_ideas(report) -> None:
    ideas = {i.position: i for i in report.add_drop_ideas}
    assert ideas["RB"].add_player_id == "frb1"
    assert ideas["RB"].drop_name == "RB6"
    assert ideas["RB"].gain == pytest.approx(7.0)
    assert ideas["WR"].gain == pytest.approx(6.0)
    assert "QB" not in ideas


def test_shortage_and_missing_free_agents(make_player) -> None:
    optimal = [RosterSlot("WR", make_player("wr", "WR", 5.0)), RosterSlot("K", make_player("k", "K", 7.0))]
    fas = [make_player("fwr", "WR", 10.0)]

    report = compute_roster_health(optimal, [], fas)

    by_pos = {s.position: s for s in report.by_position}
    assert by_pos["WR"].shortage == pytest.approx(5.0)
    assert by_pos["K"].replacement_baseline == 0.0
    assert report.weakest[0] == "WR"
    assert report.add_drop_ideas == ()
