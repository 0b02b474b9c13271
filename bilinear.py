# bilinear.py
# --------------------------------------------
# s-plane -> z-plane:
#   prewarp  : analog frequency whose bilinear image lands on f exactly
#   digitize : z = (2 fs + s) / (2 fs - s) for every root, zeros at
#              infinity -> z = -1, plus the gain correction at the
#              layout's reference point
# --------------------------------------------
from __future__ import annotations

import logging
import math
from dataclasses import replace

import numpy as np

from errors import DesignUnstable, InvalidFrequency
from layout import AnalogLayout, DigitalLayout, PoleZeroPair, Root, is_finite

log = logging.getLogger("chebyiir")


def prewarp(frequency: float, sample_rate: float) -> float:
    """Angular analog frequency (rad/s) that maps onto ``frequency`` Hz."""
    if not is_finite(sample_rate) or sample_rate <= 0.0:
        raise InvalidFrequency("sample_rate", sample_rate, "must be finite and > 0")
    if not is_finite(frequency) or not 0.0 < frequency < 0.5 * sample_rate:
        raise InvalidFrequency("frequency", frequency, f"must lie in (0, {0.5 * sample_rate:g}) Hz")
    return 2.0 * sample_rate * math.tan(math.pi * frequency / sample_rate)


def bilinear(c: Root, sample_rate: float) -> complex:
    if c is None:
        return complex(-1.0, 0.0)
    fs2 = 2.0 * sample_rate
    c = complex(c)
    return (fs2 + c) / (fs2 - c)


def digital_angle(w: float, sample_rate: float) -> float:
    """Analog rad/s -> digital rad/sample under the (unwarped) bilinear map."""
    if math.isinf(w):
        return math.pi
    return 2.0 * math.atan(w / (2.0 * sample_rate))


def _evaluate(poles, zeros, theta: float) -> complex:
    z = np.exp(1j * theta)
    num = np.prod(z - np.asarray(zeros, dtype=np.complex128))
    den = np.prod(z - np.asarray(poles, dtype=np.complex128))
    return complex(num / den)


def digitize(analog: AnalogLayout, sample_rate: float) -> DigitalLayout:
    if not is_finite(sample_rate) or sample_rate <= 0.0:
        raise InvalidFrequency("sample_rate", sample_rate, "must be finite and > 0")
    fs = float(sample_rate)

    pairs = tuple(PoleZeroPair(tuple(bilinear(p, fs) for p in pair.poles),
                               tuple(bilinear(z, fs) for z in pair.zeros)) for pair in analog)
    real_pole = real_zero = None
    if analog.real_pole is not None:
        real_pole = bilinear(analog.real_pole, fs).real
        real_zero = bilinear(analog.real_zero, fs).real

    digital = DigitalLayout(pairs=pairs, real_pole=real_pole, real_zero=real_zero,
                            normal_w=digital_angle(analog.normal_w, fs),
                            normal_gain=analog.normal_gain)

    for p in digital.poles():
        if not abs(p) < 1.0:
            raise DesignUnstable("pole", p, f"|z|={abs(p):.12g} is not inside the unit circle")

    h = abs(_evaluate(digital.poles(), digital.zeros(), digital.normal_w))
    if not math.isfinite(h) or h == 0.0:
        raise DesignUnstable("normal_w", digital.normal_w, f"response {h!r} cannot be normalized")
    gain = digital.normal_gain / h
    log.debug("digitized %d poles at fs=%g, max |p|=%.6f, gain=%.6g",
              digital.num_poles, fs, digital.max_pole_radius(), gain)

    return replace(digital, gain=gain)
