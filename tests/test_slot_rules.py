"""Tests for slot eligibility rules."""

from __future__ import annotations

from slot_rules import (
    can_fill_slot,
    find_best_slot,
    get_eligible_slots,
    interchangeable,
    is_flex_slot,
    normalize_pos,
    player_can_fill_slot,
    slot_positions,
    starting_slot_labels,
)


def test_defense_aliases_normalise_to_def() -> None:
    assert normalize_pos("DST") == "DEF"
    assert normalize_pos("d/st") == "DEF"
    assert can_fill_slot("DST", "DEF")


def test_flex_variants_have_the_expected_positions() -> None:
    assert can_fill_slot("TE", "FLEX")
    assert not can_fill_slot("QB", "FLEX")
    assert can_fill_slot("QB", "SUPER_FLEX")
    assert not can_fill_slot("RB", "REC_FLEX")
    assert can_fill_slot("LB", "IDP_FLEX")


def test_unknown_slot_accepts_nobody() -> None:
    assert slot_positions("BOGUS") == ()
    assert not is_flex_slot("BOGUS")
    assert not player_can_fill_slot("WR", ("RB",), "BOGUS")


def test_find_best_slot_prefers_exact_then_narrowest_flex() -> None:
    assert find_best_slot("WR", ["SUPER_FLEX", "FLEX", "WR"]) == "WR"
    assert find_best_slot("WR", ["SUPER_FLEX", "FLEX", "REC_FLEX"]) == "REC_FLEX"
    assert find_best_slot("WR", ["SUPER_FLEX", "FLEX"]) == "FLEX"
    assert find_best_slot("QB", ["FLEX", "REC_FLEX"]) is None


def test_eligible_slots_are_in_priority_order() -> None:
    assert get_eligible_slots("TE") == ["TE", "REC_FLEX", "FLEX", "WRT", "RB_WR_TE", "SUPER_FLEX", "WRTQ"]


def test_interchangeable_positions_share_a_slot() -> None:
    assert interchangeable("WR", "TE")
    assert interchangeable("QB", "RB")  # via SUPER_FLEX
    assert interchangeable("DL", "DB")
    assert not interchangeable("WR", "K")
    assert not interchangeable("DEF", "LB")


def test_multi_position_tags_are_honoured() -> None:
    assert player_can_fill_slot("WR", ("WR", "RB"), "RB")
    assert not player_can_fill_slot("WR", (), "RB")


def test_starting_slot_labels_drop_bench_ir_and_taxi() -> None:
    labels = starting_slot_labels(["QB", "BN", "FLEX", "IR", "DST", "TAXI", "BN"])
    assert labels == ("QB", "FLEX", "DEF")
