# chebyshev.py
# --------------------------------------------
# Chebyshev type I IIR design, user-facing side.
#
#   design(FilterSpec) -> Cascade
#       prototype (s) -> band transform (s) -> bilinear (z) -> biquads
#
#   LowPass / HighPass / BandPass / BandStop / LowShelf / HighShelf / BandShelf
#       hold the last good Cascade; setup() replaces it only on success.
#
# Usage:
#   lp = LowPass()
#   lp.setup(order=4, sample_rate=44100, cutoff_frequency=1000, ripple_db=1.0)
#   y = scipy.signal.sosfilt(lp.cascade.sos, x)
#
#   LowPass(max_order=6).setup(sample_rate=44100, cutoff_frequency=1000, ripple_db=1.0)
#       designs at order 6
# --------------------------------------------
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Optional

import bilinear
import prototypes
import transforms
from cascade import Cascade, assemble
from errors import DesignUnstable, InvalidBandwidth, InvalidFrequency
from layout import DEFAULT_MAX_ORDER, AnalogLayout, check_capacity, is_finite

log = logging.getLogger("chebyiir")


class FilterKind(str, Enum):
    LOWPASS = "lowpass"
    HIGHPASS = "highpass"
    BANDPASS = "bandpass"
    BANDSTOP = "bandstop"
    LOWSHELF = "lowshelf"
    HIGHSHELF = "highshelf"
    BANDSHELF = "bandshelf"

    @property
    def is_band(self) -> bool:
        return self in (FilterKind.BANDPASS, FilterKind.BANDSTOP, FilterKind.BANDSHELF)

    @property
    def is_shelf(self) -> bool:
        return self in (FilterKind.LOWSHELF, FilterKind.HIGHSHELF, FilterKind.BANDSHELF)


@dataclass(frozen=True)
class FilterSpec:
    kind: FilterKind
    order: int
    sample_rate: float
    ripple_db: float
    cutoff_frequency: Optional[float] = None
    center_frequency: Optional[float] = None
    width_frequency: Optional[float] = None
    gain_db: float = 0.0


_TRANSFORMS: Dict[FilterKind, Callable[..., AnalogLayout]] = {
    FilterKind.LOWPASS: transforms.low_pass,
    FilterKind.HIGHPASS: transforms.high_pass,
    FilterKind.BANDPASS: transforms.band_pass,
    FilterKind.BANDSTOP: transforms.band_stop,
    FilterKind.LOWSHELF: transforms.low_shelf,
    FilterKind.HIGHSHELF: transforms.high_shelf,
    FilterKind.BANDSHELF: transforms.band_shelf,
}


# ---------- Validation ----------

def _check_frequency(name: str, value: Optional[float], nyquist: float) -> float:
    if value is None:
        raise InvalidFrequency(name, value, "is required for this filter kind")
    if not is_finite(value) or not 0.0 < value < nyquist:
        raise InvalidFrequency(name, value, f"must lie in (0, {nyquist:g}) Hz")
    return float(value)


def _band_edges(spec: FilterSpec, nyquist: float):
    fc = _check_frequency("center_frequency", spec.center_frequency, nyquist)
    fw = spec.width_frequency
    if fw is None:
        raise InvalidFrequency("width_frequency", fw, "is required for this filter kind")
    if not is_finite(fw) or fw <= 0.0:
        raise InvalidFrequency("width_frequency", fw, "must be finite and > 0 Hz")
    fw = float(fw)
    # the limit never exceeds Nyquist, so it covers the upper bound as well
    limit = 2.0 * min(fc, nyquist - fc)
    if not fw < limit:
        raise InvalidBandwidth("width_frequency", fw,
                               f"must be < {limit:g} Hz for center {fc:g} Hz and Nyquist {nyquist:g} Hz")
    return fc, fc - 0.5 * fw, fc + 0.5 * fw


# ---------- Design ----------

def design(spec: FilterSpec, *, max_order: int = DEFAULT_MAX_ORDER) -> Cascade:
    kind = FilterKind(spec.kind)
    order = check_capacity(spec.order, max_order)
    fs = spec.sample_rate
    if not is_finite(fs) or fs <= 0.0:
        raise InvalidFrequency("sample_rate", fs, "must be finite and > 0")
    fs = float(fs)
    nyquist = 0.5 * fs

    # every parameter is checked before any pole is placed
    if kind.is_band:
        fc, f_lo, f_hi = _band_edges(spec, nyquist)
    else:
        fc = _check_frequency("cutoff_frequency", spec.cutoff_frequency, nyquist)

    if kind.is_shelf:
        proto = prototypes.low_shelf_prototype(order, spec.gain_db, spec.ripple_db, max_order=max_order)
    else:
        proto = prototypes.low_pass_prototype(order, spec.ripple_db, max_order=max_order)

    if kind.is_band:
        w_lo = bilinear.prewarp(f_lo, fs)
        w_hi = bilinear.prewarp(f_hi, fs)
        analog = _TRANSFORMS[kind](proto, math.sqrt(w_lo * w_hi), w_hi - w_lo)
        if kind in (FilterKind.BANDSTOP, FilterKind.BANDSHELF):
            # 0 dB reference on the side of the spectrum farther from the band
            analog = replace(analog, normal_w=0.0 if fc < 0.25 * fs else math.inf)
    else:
        analog = _TRANSFORMS[kind](proto, bilinear.prewarp(fc, fs))

    digital = bilinear.digitize(analog, fs)
    cascade = assemble(digital)

    if not all(s.is_stable() for s in cascade):
        raise DesignUnstable("cascade", kind.value, "unstable section after assembly")
    log.debug("%s order=%d fs=%g -> %d section(s)", kind.value, order, fs, len(cascade))
    return cascade


# ---------- Filter objects ----------

class ChebyshevFilter:
    """
    Holds the most recent successful design for one filter kind.

    ``setup()`` without ``order`` designs at the instance's ``max_order``.
    """
    kind: FilterKind

    def __init__(self, max_order: int = DEFAULT_MAX_ORDER):
        check_capacity(1, max_order)
        self.max_order = max_order
        self.spec: Optional[FilterSpec] = None
        self.cascade: Optional[Cascade] = None

    def _setup(self, order: Optional[int], **kwargs) -> Cascade:
        if order is None:
            order = self.max_order
        spec = FilterSpec(kind=self.kind, order=order, **kwargs)
        cascade = design(spec, max_order=self.max_order)
        # commit only after the whole design succeeded
        self.spec, self.cascade = spec, cascade
        return cascade

    @property
    def num_sections(self) -> int:
        return 0 if self.cascade is None else len(self.cascade)

    def response(self, frequency: float) -> complex:
        """Complex response at ``frequency`` Hz of the current design."""
        if self.cascade is None or self.spec is None:
            raise RuntimeError(f"{type(self).__name__}.setup() has not been called")
        return self.cascade.response(frequency / self.spec.sample_rate)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(max_order={self.max_order}, sections={self.num_sections})"


class LowPass(ChebyshevFilter):
    kind = FilterKind.LOWPASS

    def setup(self, order: Optional[int] = None, sample_rate: Optional[float] = None,
              cutoff_frequency: Optional[float] = None, ripple_db: Optional[float] = None) -> Cascade:
        return self._setup(order=order, sample_rate=sample_rate,
                           cutoff_frequency=cutoff_frequency, ripple_db=ripple_db)


class HighPass(ChebyshevFilter):
    kind = FilterKind.HIGHPASS

    def setup(self, order: Optional[int] = None, sample_rate: Optional[float] = None,
              cutoff_frequency: Optional[float] = None, ripple_db: Optional[float] = None) -> Cascade:
        return self._setup(order=order, sample_rate=sample_rate,
                           cutoff_frequency=cutoff_frequency, ripple_db=ripple_db)


class BandPass(ChebyshevFilter):
    kind = FilterKind.BANDPASS

    def setup(self, order: Optional[int] = None, sample_rate: Optional[float] = None,
              center_frequency: Optional[float] = None, width_frequency: Optional[float] = None,
              ripple_db: Optional[float] = None) -> Cascade:
        return self._setup(order=order, sample_rate=sample_rate, center_frequency=center_frequency,
                           width_frequency=width_frequency, ripple_db=ripple_db)


class BandStop(ChebyshevFilter):
    kind = FilterKind.BANDSTOP

    def setup(self, order: Optional[int] = None, sample_rate: Optional[float] = None,
              center_frequency: Optional[float] = None, width_frequency: Optional[float] = None,
              ripple_db: Optional[float] = None) -> Cascade:
        return self._setup(order=order, sample_rate=sample_rate, center_frequency=center_frequency,
                           width_frequency=width_frequency, ripple_db=ripple_db)


class LowShelf(ChebyshevFilter):
    """Gain ``gain_db`` below the cutoff, 0 dB above."""
    kind = FilterKind.LOWSHELF

    def setup(self, order: Optional[int] = None, sample_rate: Optional[float] = None,
              cutoff_frequency: Optional[float] = None, gain_db: Optional[float] = None,
              ripple_db: Optional[float] = None) -> Cascade:
        return self._setup(order=order, sample_rate=sample_rate, cutoff_frequency=cutoff_frequency,
                           gain_db=gain_db, ripple_db=ripple_db)


class HighShelf(ChebyshevFilter):
    """Gain ``gain_db`` above the cutoff, 0 dB below."""
    kind = FilterKind.HIGHSHELF

    def setup(self, order: Optional[int] = None, sample_rate: Optional[float] = None,
              cutoff_frequency: Optional[float] = None, gain_db: Optional[float] = None,
              ripple_db: Optional[float] = None) -> Cascade:
        return self._setup(order=order, sample_rate=sample_rate, cutoff_frequency=cutoff_frequency,
                           gain_db=gain_db, ripple_db=ripple_db)


class BandShelf(ChebyshevFilter):
    """Gain ``gain_db`` inside the band, 0 dB outside."""
    kind = FilterKind.BANDSHELF

    def setup(self, order: Optional[int] = None, sample_rate: Optional[float] = None,
              center_frequency: Optional[float] = None, width_frequency: Optional[float] = None,
              gain_db: Optional[float] = None, ripple_db: Optional[float] = None) -> Cascade:
        return self._setup(order=order, sample_rate=sample_rate, center_frequency=center_frequency,
                           width_frequency=width_frequency, gain_db=gain_db, ripple_db=ripple_db)


FILTER_CLASSES = {cls.kind: cls for cls in (LowPass, HighPass, BandPass, BandStop,
                                             LowShelf, HighShelf, BandShelf)}
