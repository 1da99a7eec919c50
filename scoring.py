# scoring.py
#
# League-aware fantasy scoring from per-stat projections. Weights come from
# the league's scoring_settings; unset weights fall back to common defaults.

from __future__ import annotations

import math
from typing import Mapping, Optional

Stats = Mapping[str, float]
Weights = Mapping[str, float]


def _w(weights: Optional[Weights], key: str, default: float = 0.0) -> float:
    if not weights:
        return default
    value = weights.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value)


def _s(stats: Stats, key: str) -> float:
    value = stats.get(key)
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def score_offense(stats: Stats, weights: Optional[Weights]) -> float:
    """QB / RB / WR / TE points."""
    return (
        _s(stats, "pass_att") * _w(weights, "pass_att", 0)
        + _s(stats, "pass_comp") * _w(weights, "pass_cmp", 0)
        + _s(stats, "pass_yd") * _w(weights, "pass_yd", 0.04)
        + _s(stats, "pass_td") * _w(weights, "pass_td", 4)
        + _s(stats, "pass_int") * _w(weights, "pass_int", -1)
        + _s(stats, "rush_att") * _w(weights, "rush_att", 0)
        + _s(stats, "rush_yd") * _w(weights, "rush_yd", 0.1)
        + _s(stats, "rush_td") * _w(weights, "rush_td", 6)
        + _s(stats, "rec") * _w(weights, "rec", 1)
        + _s(stats, "rec_yd") * _w(weights, "rec_yd", 0.1)
        + _s(stats, "rec_td") * _w(weights, "rec_td", 6)
        + _s(stats, "fum_lost") * _w(weights, "fum_lost", -2)
        + _s(stats, "two_pt") * _w(weights, "two_pt", 2)
    )


def score_kicker(stats: Stats, weights: Optional[Weights]) -> float:
    return (
        _s(stats, "xpm") * _w(weights, "xpm", 1)
        + _s(stats, "fgm_0_19") * _w(weights, "fgm_0_19", 3)
        + _s(stats, "fgm_20_29") * _w(weights, "fgm_20_29", 3)
        + _s(stats, "fgm_30_39") * _w(weights, "fgm_30_39", 3)
        + _s(stats, "fgm_40_49") * _w(weights, "fgm_40_49", 4)
        + _s(stats, "fgm_50p") * _w(weights, "fgm_50p", 5)
    )


def score_defense(stats: Stats, weights: Optional[Weights]) -> float:
    # Points-allowed brackets vary too much between leagues; not scored here.
    return (
        _s(stats, "sacks") * _w(weights, "def_sack", 1)
        + _s(stats, "defs_int") * _w(weights, "def_int", 2)
        + _s(stats, "defs_fum_rec") * _w(weights, "def_fum_rec", 2)
        + _s(stats, "defs_td") * _w(weights, "def_td", 6)
        + _s(stats, "safety") * _w(weights, "def_sfty", 2)
        + _s(stats, "blk_kick") * _w(weights, "def_blk_kick", 2)
        + _s(stats, "ret_td") * _w(weights, "st_td", 6)
    )


def score_by_league(
    pos: str,
    stats: Optional[Stats],
    weights: Optional[Weights],
    fallback_total: float = 0.0,
) -> float:
    """
    Route to the kicker / defense / offense formula for `pos`.

    A zero or non-finite result means the stat breakdown was missing or
    incomplete, so the caller's own total is returned instead.
    """
    p = (pos or "").upper()
    stats = stats or {}
    if p == "K":
        pts = score_kicker(stats, weights)
    elif p in ("DEF", "DST", "D/ST"):
        pts = score_defense(stats, weights)
    else:
        pts = score_offense(stats, weights)

    if not math.isfinite(pts) or pts == 0:
        return float(fallback_total or 0.0)
    return pts
