"""Tests for the lineup optimizer."""

from __future__ import annotations

import pytest

from optimizer import (
    OptimizerMode,
    build_slot_counts,
    expand_slots,
    optimize_lineup,
    sum_points,
)


def _ids(lineup):
    return [s.player_id for s in lineup]


def test_slot_counts_and_expansion() -> None:
    counts = build_slot_counts(["QB", "RB", "RB", "BN", "DST", "IR"])
    assert counts == {"QB": 1, "RB": 2, "DEF": 1}
    assert expand_slots(counts) == ["QB", "RB", "RB", "DEF"]
    assert expand_slots(["FLEX", "QB"]) == ["FLEX", "QB"]


def test_fixed_slots_fill_before_flex(make_player) -> None:
    players = [
        make_player("wr1", "WR", 20.0),
        make_player("rb1", "RB", 15.0),
        make_player("wr2", "WR", 12.0),
        make_player("rb2", "RB", 9.0),
        make_player("te1", "TE", 3.0),
    ]
    lineup = optimize_lineup(["FLEX", "RB", "WR"], players)
    assert [s.label for s in lineup] == ["FLEX", "RB", "WR"]
    assert _ids(lineup) == ["wr2", "rb1", "wr1"]
    assert sum_points(lineup) == pytest.approx(47.0)


def test_slot_without_candidate_stays_empty(make_player) -> None:
    lineup = optimize_lineup(["QB", "K", "BOGUS"], [make_player("qb", "QB", 10.0)])
    assert _ids(lineup) == ["qb", None, None]


def test_equal_points_keep_input_order(make_player) -> None:
    players = [make_player("b", "WR", 10.0), make_player("a", "WR", 10.0)]
    assert _ids(optimize_lineup(["WR"], players)) == ["b"]
    assert _ids(optimize_lineup(["WR"], list(reversed(players)))) == ["a"]


def test_duplicate_ids_are_used_once(make_player) -> None:
    p = make_player("wr", "WR", 10.0)
    assert _ids(optimize_lineup(["WR", "WR"], [p, p])) == ["wr", None]


def test_locked_starter_is_pinned_and_locked_bench_excluded(make_player) -> None:
    players = [
        make_player("slow", "RB", 2.0),
        make_player("fast", "RB", 20.0),
        make_player("mid", "RB", 10.0),
    ]
    lineup = optimize_lineup(
        ["RB", "RB"],
        players,
        current_starters=["slow", None],
        locked_ids={"slow", "fast"},
    )
    assert _ids(lineup) == ["slow", "mid"]


def test_greedy_and_exact_modes_differ_on_overlap(make_player) -> None:
    # hybrid can play RB or WR; greedy burns it on the RB slot
    players = [
        make_player("hybrid", "RB", 10.0, eligible_positions=("RB", "WR")),
        make_player("rb", "RB", 1.0),
    ]
    greedy = optimize_lineup(["RB", "WR"], players)
    exact = optimize_lineup(["RB", "WR"], players, mode=OptimizerMode.EXACT)

    assert _ids(greedy) == ["hybrid", None]
    assert _ids(exact) == ["rb", "hybrid"]
    assert sum_points(exact) > sum_points(greedy)


def test_exact_mode_accepts_string_value(make_player) -> None:
    players = [make_player("qb", "QB", 18.0), make_player("wr", "WR", 9.0)]
    lineup = optimize_lineup(["QB", "SUPER_FLEX"], players, mode="exact")
    assert _ids(lineup) == ["qb", "wr"]


def test_unknown_mode_raises(make_player) -> None:
    with pytest.raises(ValueError):
        optimize_lineup(["QB"], [make_player("qb", "QB", 1.0)], mode="magic")
