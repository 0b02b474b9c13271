# layout.py
# --------------------------------------------
# Pole/zero containers shared by every stage of the design pipeline:
#   PoleZeroPair   : two poles + two zeros forming one second-order stage
#   AnalogLayout   : s-plane roots + reference point for gain normalization
#   DigitalLayout  : z-plane roots + overall gain correction
#
# Layouts are frozen; each stage builds a new one from the previous.
# A zero of None sits at infinity (an all-pole stage).
# --------------------------------------------
from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from errors import InvalidOrder

# Capacity of a layout, counted in prototype poles (band shapes double it).
DEFAULT_MAX_ORDER = 16

Root = Optional[complex]


@dataclass(frozen=True)
class PoleZeroPair:
    poles: Tuple[complex, complex]
    zeros: Tuple[Root, Root]

    @classmethod
    def conjugate(cls, pole: complex, zero: Root = None) -> "PoleZeroPair":
        """Pair ``pole`` and ``zero`` with their complex conjugates."""
        p = complex(pole)
        if zero is None:
            return cls((p, p.conjugate()), (None, None))
        z = complex(zero)
        return cls((p, p.conjugate()), (z, z.conjugate()))

    def is_conjugate(self, tol: float = 1e-9) -> bool:
        p1, p2 = self.poles
        return abs(p1 - p2.conjugate()) <= tol * max(1.0, abs(p1))


@dataclass(frozen=True)
class _Layout:
    pairs: Tuple[PoleZeroPair, ...] = ()
    real_pole: Optional[float] = None
    real_zero: Optional[float] = None

    def __post_init__(self):
        if self.real_zero is not None and self.real_pole is None:
            raise ValueError("an unpaired real zero needs an unpaired real pole")

    @property
    def num_poles(self) -> int:
        return 2 * len(self.pairs) + (1 if self.real_pole is not None else 0)

    @property
    def num_sections(self) -> int:
        return len(self.pairs) + (1 if self.real_pole is not None else 0)

    def __iter__(self) -> Iterator[PoleZeroPair]:
        return iter(self.pairs)

    def __len__(self) -> int:
        return len(self.pairs)

    def poles(self) -> List[complex]:
        out = [p for pair in self.pairs for p in pair.poles]
        if self.real_pole is not None:
            out.append(complex(self.real_pole))
        return out

    def zeros(self) -> List[Root]:
        out: List[Root] = [z for pair in self.pairs for z in pair.zeros]
        if self.real_pole is not None:
            out.append(None if self.real_zero is None else complex(self.real_zero))
        return out


@dataclass(frozen=True)
class AnalogLayout(_Layout):
    """s-plane layout. ``normal_w`` is the analog frequency (rad/s, may be
    ``math.inf``) at which the finished filter must have ``normal_gain``."""
    normal_w: float = 0.0
    normal_gain: float = 1.0


@dataclass(frozen=True)
class DigitalLayout(_Layout):
    """z-plane layout. ``normal_w`` is in rad/sample (0..pi); ``gain`` is the
    scalar that brings the response at ``normal_w`` to ``normal_gain``."""
    normal_w: float = 0.0
    normal_gain: float = 1.0
    gain: float = 1.0

    def max_pole_radius(self) -> float:
        return max((abs(p) for p in self.poles()), default=0.0)


def check_capacity(order, max_order: int = DEFAULT_MAX_ORDER) -> int:
    """Validate a filter order against the layout capacity; returns it as int."""
    if isinstance(max_order, bool) or not isinstance(max_order, numbers.Integral) or max_order < 1:
        raise InvalidOrder("max_order", max_order, "must be a positive integer")
    if isinstance(order, bool) or not isinstance(order, numbers.Integral):
        raise InvalidOrder("order", order, "must be an integer")
    if order < 1:
        raise InvalidOrder("order", order, "must be >= 1")
    if order > max_order:
        raise InvalidOrder("order", order, f"exceeds the maximum order {max_order}")
    return int(order)


def is_finite(x: float) -> bool:
    return isinstance(x, numbers.Real) and not isinstance(x, bool) and math.isfinite(x)
