# prototypes.py
# --------------------------------------------
# Normalized (1 rad/s) Chebyshev type I analog prototypes:
#   low_pass_prototype  : all-pole, equal ripple in the passband
#   low_shelf_prototype : poles and zeros on two ellipses sharing angles,
#                         unity gain at infinity, shelf gain at DC
# --------------------------------------------
from __future__ import annotations

import math

import numpy as np

from errors import InvalidGain, InvalidRipple
from layout import DEFAULT_MAX_ORDER, AnalogLayout, PoleZeroPair, check_capacity, is_finite

# The shelf ripple must stay strictly inside the shelf gain.
_SHELF_RIPPLE_LIMIT = 0.999
_FLAT_TOL = 64.0 * np.finfo(np.float64).eps


def _check_ripple(ripple_db: float) -> float:
    if not is_finite(ripple_db) or ripple_db <= 0.0:
        raise InvalidRipple("ripple_db", ripple_db, "must be a finite value > 0 dB")
    return float(ripple_db)


def _angles(order: int) -> np.ndarray:
    k = np.arange(order // 2, dtype=np.float64)
    return np.pi * (2.0 * k + 1.0) / (2.0 * order)


def ripple_factor(ripple_db: float) -> float:
    """eps = sqrt(10^(ripple/10) - 1)"""
    return math.sqrt(10.0 ** (ripple_db / 10.0) - 1.0)


def low_pass_prototype(order: int, ripple_db: float, *, max_order: int = DEFAULT_MAX_ORDER) -> AnalogLayout:
    order = check_capacity(order, max_order)
    ripple_db = _check_ripple(ripple_db)

    v0 = math.asinh(1.0 / ripple_factor(ripple_db)) / order
    sinh_v0, cosh_v0 = math.sinh(v0), math.cosh(v0)

    theta = _angles(order)
    poles = -sinh_v0 * np.sin(theta) + 1j * cosh_v0 * np.cos(theta)
    pairs = tuple(PoleZeroPair.conjugate(p) for p in poles)
    real_pole = -sinh_v0 if order % 2 else None

    # unity gain at DC for both parities; even orders ripple above 0 dB
    return AnalogLayout(pairs=pairs, real_pole=real_pole, normal_w=0.0, normal_gain=1.0)


def _flat_shelf(order: int, ripple_db: float, max_order: int) -> AnalogLayout:
    # every pole cancelled by a coincident zero
    flat = low_pass_prototype(order, ripple_db, max_order=max_order)
    pairs = tuple(PoleZeroPair.conjugate(pair.poles[0], pair.poles[0]) for pair in flat)
    return AnalogLayout(pairs=pairs, real_pole=flat.real_pole, real_zero=flat.real_pole,
                        normal_w=math.inf, normal_gain=1.0)


def low_shelf_prototype(order: int, gain_db: float, ripple_db: float, *,
                        max_order: int = DEFAULT_MAX_ORDER) -> AnalogLayout:
    """
    Low shelf with ``gain_db`` at DC and 0 dB at infinity.

    The layout is built as a cut of -gain_db: zeros sit on the plain
    Chebyshev ellipse asinh(1/eps)/N, poles on the ellipse scaled by the
    gain, so the DC response is prod(zeros)/prod(poles). DC is gain_db
    exactly for every order. Odd orders ripple from gain_db toward 0 dB,
    even orders from gain_db away from it.
    """
    order = check_capacity(order, max_order)
    ripple_db = _check_ripple(ripple_db)
    if not is_finite(gain_db):
        raise InvalidGain("gain_db", gain_db, "must be finite")
    gain_db = float(gain_db)

    if gain_db == 0.0:
        return _flat_shelf(order, ripple_db, max_order)

    cut_db = -gain_db
    ripple = min(ripple_db, _SHELF_RIPPLE_LIMIT * abs(gain_db))
    if cut_db < 0.0:
        ripple = -ripple

    if order % 2:
        G_db, Gb_db = cut_db, cut_db - ripple
    else:
        # even orders reach the ripple edge at DC, so the edge carries the gain
        G_db, Gb_db = cut_db + ripple, cut_db
    G = 10.0 ** (G_db / 20.0)
    Gb = 10.0 ** (Gb_db / 20.0)
    num, den = G * G - Gb * Gb, Gb * Gb - 1.0
    if abs(num) <= _FLAT_TOL or abs(den) <= _FLAT_TOL or num / den <= 0.0:
        # gain below double resolution around 0 dB
        return _flat_shelf(order, ripple_db, max_order)
    eps = math.sqrt(num / den)
    root = math.sqrt(1.0 + 1.0 / (eps * eps))

    u = math.log(G / eps + Gb * root) / order
    v = math.asinh(1.0 / eps) / order

    theta = _angles(order)
    sn, cs = np.sin(theta), np.cos(theta)
    poles = -sn * math.sinh(u) + 1j * cs * math.cosh(u)
    zeros = -sn * math.sinh(v) + 1j * cs * math.cosh(v)
    pairs = tuple(PoleZeroPair.conjugate(p, z) for p, z in zip(poles, zeros))

    if order % 2:
        return AnalogLayout(pairs=pairs, real_pole=-math.sinh(u), real_zero=-math.sinh(v),
                            normal_w=math.inf, normal_gain=1.0)
    return AnalogLayout(pairs=pairs, normal_w=math.inf, normal_gain=1.0)
