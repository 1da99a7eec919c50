"""Tests for the waiver-wire engine."""

from __future__ import annotations

import pytest

from models import GameInfo, Projection, RosterSlot, ScoredFreeAgent, StepKind
from waivers import (
    attach_action_plans,
    build_free_agent_pool,
    build_starter_floors,
    compute_lineup_diff,
    group_waiver_suggestions,
    pick_waiver_upgrades,
    score_free_agents,
)

NOW = 10_000.0


def _fa(player) -> ScoredFreeAgent:
    return ScoredFreeAgent(player=player)


def test_floors_use_own_slot_or_flex_eligibility(make_player) -> None:
    starters = [
        RosterSlot("WR", make_player("wr1", "WR", 14.0)),
        RosterSlot("WR", make_player("wr2", "WR", 9.0)),
        RosterSlot("TE", make_player("te1", "TE", 6.0)),
        RosterSlot("FLEX", make_player("rb1", "RB", 11.0)),
        RosterSlot("K", make_player("k1", "K", 2.0)),
    ]
    floors = build_starter_floors(starters, ["WR", "TE", "FLEX", "K", "QB"])
    assert floors["WR"].player_id == "wr2"
    assert floors["TE"].player_id == "te1"
    # FLEX floor considers every flex-eligible starter, not just the FLEX occupant
    assert floors["FLEX"].player_id == "te1"
    assert floors["K"].points == 2.0
    assert floors["QB"] is None


def test_receiver_upgrade_over_wr_floor(make_player) -> None:
    starters = [
        RosterSlot("QB", make_player("qb1", "QB", 18.0)),
        RosterSlot("WR", make_player("wr1", "WR", 9.0)),
        RosterSlot("K", make_player("k1", "K", 1.0)),
    ]
    fas = [
        _fa(make_player("wr3", "WR", 12.0, is_free_agent=True)),
        _fa(make_player("wr4", "WR", 10.0, is_free_agent=True)),  # +1.0, below min gain
    ]

    suggestions = pick_waiver_upgrades(fas, starters, ["QB", "WR", "K"], min_gain=1.5)

    assert len(suggestions) == 1
    s = suggestions[0]
    assert (s.slot, s.incoming.player_id, s.outgoing.player_id) == ("WR", "wr3", "wr1")
    assert s.delta == pytest.approx(3.0)


def test_cross_position_floor_is_skipped(make_player) -> None:
    # A kicker parked in a WR slot is the WR floor; a WR pickup must not "replace" it.
    starters = [
        RosterSlot("WR", make_player("wr1", "WR", 9.0)),
        RosterSlot("WR", make_player("k1", "K", 1.0)),
    ]
    fas = [_fa(make_player("wr3", "WR", 12.0, is_free_agent=True))]

    assert pick_waiver_upgrades(fas, starters, ["WR"]) == []


def test_kickers_and_bye_or_out_are_never_suggested(make_player) -> None:
    starters = [
        RosterSlot("K", make_player("k1", "K", 1.0)),
        RosterSlot("RB", make_player("rb1", "RB", 3.0)),
    ]
    fas = [
        _fa(make_player("k2", "K", 12.0)),
        ScoredFreeAgent(make_player("rb_out", "RB", 20.0), is_bye_or_out=True),
    ]
    assert pick_waiver_upgrades(fas, starters, ["K", "RB"]) == []


def test_per_position_cap_and_grouping(make_player) -> None:
    starters = [
        RosterSlot("RB", make_player("rb1", "RB", 5.0)),
        RosterSlot("WR", make_player("wr1", "WR", 6.0)),
        RosterSlot("FLEX", make_player("te1", "TE", 4.0)),
    ]
    fas = [_fa(make_player(f"rb_fa{i}", "RB", 15.0 - i, is_free_agent=True)) for i in range(4)]
    fas.append(_fa(make_player("wr_fa", "WR", 10.0, is_free_agent=True)))

    suggestions = pick_waiver_upgrades(fas, starters, ["RB", "WR", "FLEX"], max_per_position=3)
    rb_suggestions = [s for s in suggestions if s.incoming.position == "RB"]
    assert len(rb_suggestions) == 3
    deltas = [s.delta for s in suggestions]
    assert deltas == sorted(deltas, reverse=True)

    grouped = group_waiver_suggestions(suggestions, max_players=8, max_alternatives=3)
    top = grouped[0]
    assert top.player_id == "rb_fa0"
    assert top.best_delta == pytest.approx(11.0)  # 15 over the TE floor in FLEX
    outgoing = [a.outgoing.player_id for a in top.alternatives]
    assert len(outgoing) == len(set(outgoing))
    assert len({g.player_id for g in grouped}) == len(grouped)


def test_build_free_agent_pool_filters(make_player, schedule) -> None:
    directory = {
        p.player_id: p
        for p in (
            make_player("good", "RB", 0.0, team="KC"),
            make_player("owned", "RB", 0.0, team="KC"),
            make_player("kicker", "K", 0.0, team="KC"),
            make_player("bye", "WR", 0.0, team="KC"),
            make_player("out", "WR", 0.0, team="KC", injury_status="O"),
            make_player("blocked", "WR", 0.0, team="KC", name="Skip Me"),
            make_player("locked", "WR", 0.0, team="KC"),
            make_player("zero", "TE", 0.0, team="KC"),
            make_player("dst", "DST", 0.0, team="KC"),
        )
    }
    projections = {
        "good": Projection(points=9.0, opponent="BUF"),
        "owned": Projection(points=20.0),
        "kicker": Projection(points=9.0),
        "bye": Projection(points=9.0, opponent="BYE"),
        "out": Projection(points=9.0),
        "blocked": Projection(points=9.0),
        "locked": Projection(points=9.0),
        "zero": Projection(points=0.0),
        "dst": Projection(points=5.0),
        "good|KC|RB": Projection(points=99.0),
    }
    locked_schedule = dict(schedule)
    locked_schedule["KC"] = GameInfo(start=NOW + 600)

    pool = build_free_agent_pool(
        directory,
        projections,
        owned_ids={"owned"},
        weights=None,
        schedule=locked_schedule,
        now=NOW,
        played_ids={"locked"},
        excluded_names={"Skip Me"},
    )

    assert [p.player_id for p in pool] == ["good", "dst"]
    assert pool[0].points == 9.0 and pool[0].is_free_agent and pool[0].opponent == "BUF"
    assert pool[1].position == "DEF"


def test_free_agent_pool_caps_each_position(make_player) -> None:
    directory = {f"wr{i}": make_player(f"wr{i}", "WR", 0.0) for i in range(5)}
    projections = {f"wr{i}": Projection(points=float(i + 1)) for i in range(5)}

    pool = build_free_agent_pool(directory, projections, set(), None, {}, NOW, per_position_cap=2)

    assert [p.player_id for p in pool] == ["wr4", "wr3"]


def test_score_free_agents_uses_league_weights(make_player) -> None:
    fas = [make_player("wr", "WR", 0.0), make_player("none", "WR", 3.0)]
    projections = {"wr": Projection(points=5.0, stats={"rec": 4, "rec_yd": 50})}

    scored = score_free_agents(fas, projections, {"rec": 0.5})

    assert scored[0].points == pytest.approx(7.0)
    assert scored[1].points == 0.0
    assert all(s.player.is_free_agent for s in scored)


def test_action_plan_orders_steps_and_blocks_all_or_nothing(make_player) -> None:
    wr1 = make_player("wr1", "WR", 10.0)
    wr2 = make_player("wr2", "WR", 6.0)
    fa = make_player("fa", "WR", 12.0, is_free_agent=True)
    current = [RosterSlot("WR", wr1), RosterSlot("FLEX", wr2)]
    new = [RosterSlot("WR", fa), RosterSlot("FLEX", wr1)]

    plan = compute_lineup_diff(current, new)
    assert [(s.kind, s.player_id) for s in plan.steps] == [
        (StepKind.add, "fa"),
        (StepKind.move, "wr1"),
        (StepKind.bench, "wr2"),
    ]
    assert plan.steps[1].from_slot == "WR" and plan.steps[1].to_slot == "FLEX"
    assert plan.potential_delta == pytest.approx(6.0)
    assert plan.reachable_delta == pytest.approx(6.0)

    blocked = compute_lineup_diff(current, new, locked_ids={"wr2"})
    assert blocked.blocked
    assert blocked.steps[2].block_reason == "WR2 already played. Cannot be benched."
    assert blocked.potential_delta == pytest.approx(6.0)
    assert blocked.reachable_delta == 0.0


def test_attach_action_plans_reoptimizes_with_pickup(make_player) -> None:
    wr1 = make_player("wr1", "WR", 10.0)
    wr2 = make_player("wr2", "WR", 6.0)
    fa = make_player("fa", "WR", 12.0, is_free_agent=True)
    slots = ("WR", "FLEX")
    baseline = (RosterSlot("WR", wr1), RosterSlot("FLEX", wr2))

    suggestions = pick_waiver_upgrades([_fa(fa)], baseline, slots)
    grouped = group_waiver_suggestions(suggestions)
    (g,) = attach_action_plans(grouped, {"fa": fa}, slots, [wr1, wr2], baseline)

    assert g.action_plan is not None
    assert [s.kind for s in g.action_plan.steps] == [StepKind.add, StepKind.move, StepKind.bench]
    assert g.action_plan.reachable_delta == pytest.approx(6.0)
