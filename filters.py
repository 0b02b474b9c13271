# =============================
# filters.py
# Streamable Chebyshev type I filters + name registry.
# Each filter designs its cascade once per sample rate and runs it through
# scipy's sosfilt, carrying the per-section delay state across blocks.
# =============================
from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Tuple

import numpy as np
from scipy import signal

from cascade import Cascade
from chebyshev import FilterKind, FilterSpec, design
from layout import DEFAULT_MAX_ORDER


# ---------- Base & Registry ----------
class AudioFilter:
    """Base class for streamable audio filters.
    process(block, sr) -> block (N,C) float32, same length as the input
    reset() -> clear the delay state
    """
    def process(self, block: np.ndarray, sr: int) -> np.ndarray:  # (N,C)
        raise NotImplementedError

    def reset(self) -> None:
        pass

FilterFactory = Callable[[Dict[str, Any]], AudioFilter]
_REGISTRY: Dict[str, Tuple[str, FilterFactory]] = {}


def register_filter(name: str, *, help: str) -> Callable[[FilterFactory], FilterFactory]:
    key = name.strip().lower()
    def _decorator(factory: FilterFactory) -> FilterFactory:
        if key in _REGISTRY:
            raise ValueError(f"Duplicate filter name: {name}")
        _REGISTRY[key] = (help, factory)
        return factory
    return _decorator


def available_filters() -> Dict[str, str]:
    return {k: v[0] for k, v in sorted(_REGISTRY.items())}


def build_filter(name: str, **kwargs: Any) -> AudioFilter:
    key = name.strip().lower()
    if key not in _REGISTRY:
        raise KeyError(f"Unknown filter '{name}'. Available: {', '.join(available_filters().keys()) or '(none)'}")
    _help, factory = _REGISTRY[key]
    return factory(kwargs)


# ---------- Utilities ----------
def _ensure_2d(x: np.ndarray) -> np.ndarray:
    return x[:, None] if x.ndim == 1 else x

def _opt_float(v: Any) -> Optional[float]:
    return None if v is None else float(v)


# ---------- Chebyshev SOS filters ----------
class _ChebyshevSOS(AudioFilter):
    kind: FilterKind

    def __init__(self, params: Dict[str, Any]):
        self.order = int(params.get("order", 4))
        self.ripple_db = float(params.get("ripple_db", 1.0))
        self.gain_db = float(params.get("gain_db", 0.0))
        self.cutoff = _opt_float(params.get("cutoff"))
        self.center = _opt_float(params.get("center"))
        self.width = _opt_float(params.get("width"))
        self.max_order = int(params.get("max_order", DEFAULT_MAX_ORDER))

        self.cascade: Optional[Cascade] = None
        self.sos: Optional[np.ndarray] = None
        self.zi: Optional[np.ndarray] = None
        self._initd = False
        self._sr: Optional[int] = None
        self._C: Optional[int] = None

    def _spec(self, sr: int) -> FilterSpec:
        return FilterSpec(kind=self.kind, order=self.order, sample_rate=float(sr), ripple_db=self.ripple_db,
                          cutoff_frequency=self.cutoff, center_frequency=self.center,
                          width_frequency=self.width, gain_db=self.gain_db)

    def _ensure(self, sr: int, C: int):
        if self._initd and self._sr == sr and self._C == C:
            return
        if not self._initd or self._sr != sr:
            self.cascade = design(self._spec(sr), max_order=self.max_order)
            self.sos = self.cascade.sos  # (S,6)
        S = self.sos.shape[0]
        # zi shape for sosfilt along axis 0: (S, 2, C)
        self.zi = np.zeros((S, 2, C), dtype=np.float64)
        self._sr, self._C, self._initd = sr, C, True

    def reset(self):
        if self.zi is not None:
            self.zi[...] = 0.0

    def process(self, block: np.ndarray, sr: int) -> np.ndarray:
        x = _ensure_2d(np.asarray(block, dtype=np.float64))
        n, C = x.shape
        self._ensure(sr, C)
        if n == 0:
            return x.astype(np.float32)
        y, self.zi = signal.sosfilt(self.sos, x, axis=0, zi=self.zi)
        return y.astype(np.float32)


@register_filter("cheby_lowpass", help="Chebyshev I LPF. Params: cutoff (Hz), order (4), ripple_db (1)")
class ChebyLowpass(_ChebyshevSOS):
    kind = FilterKind.LOWPASS


@register_filter("cheby_highpass", help="Chebyshev I HPF. Params: cutoff (Hz), order (4), ripple_db (1)")
class ChebyHighpass(_ChebyshevSOS):
    kind = FilterKind.HIGHPASS


@register_filter("cheby_bandpass",
                 help="Chebyshev I BPF. Params: center (Hz), width (Hz), order (4), ripple_db (1)")
class ChebyBandpass(_ChebyshevSOS):
    kind = FilterKind.BANDPASS


@register_filter("cheby_bandstop",
                 help="Chebyshev I notch/BSF. Params: center (Hz), width (Hz), order (4), ripple_db (1)")
class ChebyBandstop(_ChebyshevSOS):
    kind = FilterKind.BANDSTOP


@register_filter("cheby_lowshelf",
                 help="Chebyshev I low shelf. Params: cutoff (Hz), gain_db (0), order (4), ripple_db (1)")
class ChebyLowShelf(_ChebyshevSOS):
    kind = FilterKind.LOWSHELF


@register_filter("cheby_highshelf",
                 help="Chebyshev I high shelf. Params: cutoff (Hz), gain_db (0), order (4), ripple_db (1)")
class ChebyHighShelf(_ChebyshevSOS):
    kind = FilterKind.HIGHSHELF


@register_filter("cheby_bandshelf",
                 help="Chebyshev I band shelf. Params: center (Hz), width (Hz), gain_db (0), order (4), ripple_db (1)")
class ChebyBandShelf(_ChebyshevSOS):
    kind = FilterKind.BANDSHELF
