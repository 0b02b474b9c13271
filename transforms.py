# transforms.py
# --------------------------------------------
# Analog band transforms of a unit-cutoff prototype (s-plane in, s-plane out).
#
#   low_pass   s -> s / wc                    N poles
#   high_pass  s -> wc / s                    N poles, zeros at infinity -> 0
#   band_pass  s -> (s^2 + w0^2) / (bw s)     2N poles
#   band_stop  s -> (bw s) / (s^2 + w0^2)     2N poles, zeros at +/- j w0
#
# Shelves reuse the same maps on the shelf prototype (poles AND zeros):
# low_shelf = low_pass, high_shelf = high_pass, band_shelf = band_pass.
# All frequencies are angular (rad/s) and already prewarped by the caller.
# --------------------------------------------
from __future__ import annotations

import math
from typing import List, Tuple

import numpy as np

from errors import InvalidFrequency
from layout import AnalogLayout, PoleZeroPair, Root, is_finite


def _check_w(name: str, w: float) -> float:
    if not is_finite(w) or w <= 0.0:
        raise InvalidFrequency(name, w, "angular frequency must be finite and > 0")
    return float(w)


# ---------- lowpass / highpass ----------

def low_pass(analog: AnalogLayout, cutoff_w: float) -> AnalogLayout:
    wc = _check_w("cutoff_w", cutoff_w)

    def scale(c: Root) -> Root:
        return None if c is None else wc * complex(c)

    pairs = tuple(PoleZeroPair(tuple(scale(p) for p in pair.poles),
                               tuple(scale(z) for z in pair.zeros)) for pair in analog)
    real_pole = None if analog.real_pole is None else wc * analog.real_pole
    real_zero = None if analog.real_zero is None else wc * analog.real_zero
    return AnalogLayout(pairs=pairs, real_pole=real_pole, real_zero=real_zero,
                        normal_w=analog.normal_w * wc, normal_gain=analog.normal_gain)


def _reciprocal(wc: float, c: Root) -> Root:
    if c is None:
        return 0j
    c = complex(c)
    if c == 0:
        return None
    return wc / c


def high_pass(analog: AnalogLayout, cutoff_w: float) -> AnalogLayout:
    wc = _check_w("cutoff_w", cutoff_w)
    pairs = tuple(PoleZeroPair(tuple(_reciprocal(wc, p) for p in pair.poles),
                               tuple(_reciprocal(wc, z) for z in pair.zeros)) for pair in analog)
    real_pole = real_zero = None
    if analog.real_pole is not None:
        real_pole = wc / analog.real_pole
        rz = _reciprocal(wc, analog.real_zero)
        real_zero = None if rz is None else rz.real

    w = analog.normal_w
    if w == 0.0:
        normal_w = math.inf
    elif math.isinf(w):
        normal_w = 0.0
    else:
        normal_w = wc / w
    return AnalogLayout(pairs=pairs, real_pole=real_pole, real_zero=real_zero,
                        normal_w=normal_w, normal_gain=analog.normal_gain)


# ---------- bandpass / bandstop ----------

def _quadratic_roots(b: complex, c: float) -> Tuple[complex, complex]:
    """Roots of s^2 - b s + c = 0."""
    d = complex(np.sqrt(complex(b * b - 4.0 * c)))
    return 0.5 * (b + d), 0.5 * (b - d)


def _conj(c: Root) -> Root:
    return None if c is None else complex(c).conjugate()


def band_pass(analog: AnalogLayout, center_w: float, width_w: float) -> AnalogLayout:
    w0 = _check_w("center_w", center_w)
    bw = _check_w("width_w", width_w)

    def roots_of(c: Root) -> Tuple[Root, Root]:
        if c is None:
            return 0j, None
        return _quadratic_roots(complex(c) * bw, w0 * w0)

    pairs: List[PoleZeroPair] = []
    for pair in analog:
        s1, s2 = roots_of(pair.poles[0])
        if pair.zeros[0] is None:
            zeros_a = zeros_b = (0j, None)
        else:
            t1, t2 = roots_of(pair.zeros[0])
            zeros_a, zeros_b = (t1, _conj(t1)), (t2, _conj(t2))
        pairs.append(PoleZeroPair((s1, s1.conjugate()), zeros_a))
        pairs.append(PoleZeroPair((s2, s2.conjugate()), zeros_b))

    if analog.real_pole is not None:
        # one real prototype root -> a real or conjugate pair, never unpaired
        pairs.append(PoleZeroPair(roots_of(analog.real_pole),
                                  roots_of(analog.real_zero)))

    w = analog.normal_w
    if math.isinf(w):
        normal_w = 0.0
    else:
        normal_w = 0.5 * (w * bw + math.sqrt(w * w * bw * bw + 4.0 * w0 * w0))
    return AnalogLayout(pairs=tuple(pairs), normal_w=normal_w, normal_gain=analog.normal_gain)


def band_stop(analog: AnalogLayout, center_w: float, width_w: float) -> AnalogLayout:
    w0 = _check_w("center_w", center_w)
    bw = _check_w("width_w", width_w)

    def roots_of(c: Root) -> Tuple[Root, Root]:
        if c is None:
            return 1j * w0, -1j * w0
        c = complex(c)
        if c == 0:
            return 0j, None
        return _quadratic_roots(bw / c, w0 * w0)

    pairs: List[PoleZeroPair] = []
    for pair in analog:
        s1, s2 = roots_of(pair.poles[0])
        if pair.zeros[0] is None:
            zeros_a = zeros_b = roots_of(None)
        else:
            t1, t2 = roots_of(pair.zeros[0])
            zeros_a, zeros_b = (t1, _conj(t1)), (t2, _conj(t2))
        pairs.append(PoleZeroPair((s1, s1.conjugate()), zeros_a))
        pairs.append(PoleZeroPair((s2, s2.conjugate()), zeros_b))

    if analog.real_pole is not None:
        pairs.append(PoleZeroPair(roots_of(analog.real_pole), roots_of(analog.real_zero)))

    w = analog.normal_w
    if math.isinf(w):
        normal_w = w0
    elif w == 0.0:
        normal_w = 0.0
    else:
        # positive root of x^2 + (bw/w) x - w0^2 = 0
        b = bw / w
        normal_w = 0.5 * (-b + math.sqrt(b * b + 4.0 * w0 * w0))
    return AnalogLayout(pairs=tuple(pairs), normal_w=normal_w, normal_gain=analog.normal_gain)


low_shelf = low_pass
high_shelf = high_pass
band_shelf = band_pass
