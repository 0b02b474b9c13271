# cascade.py
# --------------------------------------------
# Second-order sections built from a digital layout.
#
# Each PoleZeroPair becomes one biquad, an unpaired real pole/zero becomes a
# first-order section (b2 = a2 = 0). Sections are ordered by ascending
# pole/zero radius ratio so the poles closest to the unit circle run last,
# and the layout gain goes into the first section's numerator.
#
# Coefficient order everywhere: (b0, b1, b2, a0, a1, a2), a0 == 1.
# This is scipy's "sos" row layout, so Cascade.sos feeds signal.sosfilt.
# --------------------------------------------
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence, Tuple

import numpy as np

from errors import DesignUnstable
from layout import DigitalLayout

Coefficients = Tuple[float, float, float, float, float, float]


@dataclass(frozen=True)
class BiquadSection:
    b0: float
    b1: float
    b2: float
    a0: float
    a1: float
    a2: float

    @classmethod
    def from_roots(cls, poles: Sequence[complex], zeros: Sequence[complex]) -> "BiquadSection":
        if len(poles) == 1:
            (p,), (z,) = poles, zeros
            return cls(1.0, -complex(z).real, 0.0, 1.0, -complex(p).real, 0.0)
        p1, p2 = (complex(p) for p in poles)
        z1, z2 = (complex(z) for z in zeros)
        return cls(1.0, -(z1 + z2).real, (z1 * z2).real,
                   1.0, -(p1 + p2).real, (p1 * p2).real)

    @property
    def is_first_order(self) -> bool:
        return self.a2 == 0.0 and self.b2 == 0.0

    def coefficients(self) -> Coefficients:
        return (self.b0, self.b1, self.b2, self.a0, self.a1, self.a2)

    def poles(self) -> np.ndarray:
        if self.is_first_order:
            return np.roots([self.a0, self.a1])
        return np.roots([self.a0, self.a1, self.a2])

    def zeros(self) -> np.ndarray:
        if self.is_first_order:
            return np.roots([self.b0, self.b1])
        return np.roots([self.b0, self.b1, self.b2])

    def is_stable(self) -> bool:
        return bool(np.all(np.abs(self.poles()) < 1.0))

    def response(self, z: complex) -> complex:
        zi = 1.0 / z
        num = self.b0 + (self.b1 + self.b2 * zi) * zi
        den = self.a0 + (self.a1 + self.a2 * zi) * zi
        return complex(num / den)

    def scaled(self, k: float) -> "BiquadSection":
        return BiquadSection(self.b0 * k, self.b1 * k, self.b2 * k, self.a0, self.a1, self.a2)


@dataclass(frozen=True)
class Cascade:
    sections: Tuple[BiquadSection, ...] = ()

    def __len__(self) -> int:
        return len(self.sections)

    def __iter__(self) -> Iterator[BiquadSection]:
        return iter(self.sections)

    def __getitem__(self, i: int) -> BiquadSection:
        return self.sections[i]

    @property
    def sos(self) -> np.ndarray:
        """(n_sections, 6) float64 array for scipy.signal.sosfilt & co."""
        return np.array([s.coefficients() for s in self.sections], dtype=np.float64).reshape(-1, 6)

    def response(self, normalized_frequency: float) -> complex:
        """Complex response at ``normalized_frequency`` cycles/sample (f / fs)."""
        z = np.exp(2j * np.pi * normalized_frequency)
        h = 1.0 + 0j
        for s in self.sections:
            h *= s.response(z)
        return h

    def pole_zeros(self) -> List[Tuple[np.ndarray, np.ndarray]]:
        return [(s.poles(), s.zeros()) for s in self.sections]

    def to_list(self) -> List[Coefficients]:
        return [s.coefficients() for s in self.sections]

    @classmethod
    def from_list(cls, rows: Iterable[Sequence[float]]) -> "Cascade":
        sections = []
        for row in rows:
            if len(row) != 6:
                raise ValueError(f"Expected 6 coefficients per section, got {len(row)}")
            sections.append(BiquadSection(*(float(c) for c in row)))
        return cls(tuple(sections))


def _section_key(poles: Sequence[complex], zeros: Sequence[complex]) -> float:
    rp = max(abs(p) for p in poles)
    rz = max(abs(z) for z in zeros)
    return rp / rz if rz > 0.0 else rp


def assemble(digital: DigitalLayout) -> Cascade:
    staged = [(pair.poles, pair.zeros) for pair in digital]
    if digital.real_pole is not None:
        staged.append(((complex(digital.real_pole),), (complex(digital.real_zero),)))

    # stable sort keeps layout order among equal ratios
    staged.sort(key=lambda pz: _section_key(*pz))
    sections = [BiquadSection.from_roots(p, z) for p, z in staged]

    for i, s in enumerate(sections):
        if not s.is_stable():
            raise DesignUnstable("section", i, f"denominator roots {s.poles()} leave the unit circle")
    if sections:
        sections[0] = sections[0].scaled(digital.gain)
    return Cascade(tuple(sections))
