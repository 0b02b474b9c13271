# errors.py
# --------------------------------------------
# Design failures raised by the Chebyshev pipeline.
# Every error names the offending parameter and its value.
# --------------------------------------------
from __future__ import annotations

from typing import Any


class FilterDesignError(Exception):
    """Base class for every failed design() / setup() call."""

    def __init__(self, param: str, value: Any, reason: str):
        self.param = param
        self.value = value
        self.reason = reason
        super().__init__(f"{param}={value!r}: {reason}")


class InvalidOrder(FilterDesignError, ValueError):
    pass


class InvalidRipple(FilterDesignError, ValueError):
    pass


class InvalidGain(FilterDesignError, ValueError):
    pass


class InvalidFrequency(FilterDesignError, ValueError):
    pass


class InvalidBandwidth(FilterDesignError, ValueError):
    pass


class DesignUnstable(FilterDesignError, RuntimeError):
    """A digital pole landed on or outside the unit circle."""
