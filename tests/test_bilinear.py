# ------------------------------------------------------------------------------
# Digitizer tests: prewarp, s -> z mapping, gain normalization
# ------------------------------------------------------------------------------
import math

import numpy as np
import pytest
from scipy import signal

import transforms
from bilinear import bilinear, digital_angle, digitize, prewarp
from errors import DesignUnstable, InvalidFrequency
from layout import AnalogLayout, PoleZeroPair
from prototypes import low_pass_prototype, low_shelf_prototype

FS = 48000.0


def assert_roots_close(actual, expected, atol=1e-9):
    actual = list(np.asarray(actual, dtype=complex))
    expected = list(np.asarray(expected, dtype=complex))
    assert len(actual) == len(expected)
    for r in expected:
        i = int(np.argmin([abs(r - a) for a in actual]))
        assert abs(r - actual[i]) <= atol, f"{r} not found in {actual}"
        actual.pop(i)


def finite(roots):
    return [r for r in roots if r is not None]


def digital_response(layout, theta):
    z = np.exp(1j * theta)
    num = np.prod([z - q for q in layout.zeros()])
    den = np.prod([z - p for p in layout.poles()])
    return layout.gain * num / den


def test_prewarp_value():
    assert prewarp(1000.0, 44100.0) == pytest.approx(2 * 44100.0 * math.tan(math.pi * 1000.0 / 44100.0))


def test_prewarped_frequency_lands_on_target():
    w = prewarp(5000.0, FS)
    assert digital_angle(w, FS) == pytest.approx(2.0 * math.pi * 5000.0 / FS)


@pytest.mark.parametrize("f", [0.0, -10.0, FS / 2, FS, float("nan")])
def test_prewarp_rejects_out_of_band(f):
    with pytest.raises(InvalidFrequency):
        prewarp(f, FS)


@pytest.mark.parametrize("fs", [0.0, -1.0, float("inf")])
def test_prewarp_rejects_bad_sample_rate(fs):
    with pytest.raises(InvalidFrequency) as exc:
        prewarp(100.0, fs)
    assert exc.value.param == "sample_rate"


def test_bilinear_fixed_points():
    assert bilinear(None, FS) == -1
    assert bilinear(0j, FS) == 1
    assert abs(bilinear(-1e12, FS) + 1.0) < 1e-6
    assert abs(bilinear(1j * 2 * FS, FS)) == pytest.approx(1.0)
    assert digital_angle(math.inf, FS) == math.pi
    assert digital_angle(0.0, FS) == 0.0


@pytest.mark.parametrize("order", [1, 2, 3, 4, 7])
def test_digitize_low_pass_matches_scipy(order):
    analog = transforms.low_pass(low_pass_prototype(order, 1.0), prewarp(2000.0, FS))
    digital = digitize(analog, FS)
    z_ref, p_ref, _k = signal.bilinear_zpk(finite(analog.zeros()), analog.poles(), 1.0, FS)

    assert digital.num_poles == order
    assert_roots_close(digital.poles(), p_ref)
    assert_roots_close(digital.zeros(), z_ref)
    assert digital.max_pole_radius() < 1.0
    assert digital.normal_w == 0.0
    assert abs(digital_response(digital, 0.0)) == pytest.approx(1.0, abs=1e-12)


def test_digitize_high_pass_normalizes_at_nyquist():
    analog = transforms.high_pass(low_pass_prototype(4, 0.5), prewarp(300.0, FS))
    digital = digitize(analog, FS)
    assert digital.normal_w == math.pi
    np.testing.assert_allclose(digital.zeros(), 1.0)
    assert abs(digital_response(digital, math.pi)) == pytest.approx(1.0, abs=1e-12)


def test_digitize_low_shelf_keeps_shelf_gain():
    gain_db = -9.0
    analog = transforms.low_shelf(low_shelf_prototype(3, gain_db, 1.0), prewarp(500.0, FS))
    digital = digitize(analog, FS)
    assert abs(digital_response(digital, math.pi)) == pytest.approx(1.0, abs=1e-12)
    dc = abs(digital_response(digital, 0.0))
    assert 20.0 * math.log10(dc) == pytest.approx(gain_db, abs=1e-9)


def test_digitize_returns_a_new_layout():
    analog = transforms.low_pass(low_pass_prototype(2, 1.0), prewarp(2000.0, FS))
    digital = digitize(analog, FS)
    assert digital is not analog
    assert analog.poles()[0].real < 0.0


def test_unstable_pole_is_rejected():
    analog = AnalogLayout(pairs=(PoleZeroPair.conjugate(complex(50.0, 100.0)),), normal_w=0.0)
    with pytest.raises(DesignUnstable) as exc:
        digitize(analog, FS)
    assert exc.value.param == "pole"


def test_unnormalizable_reference_is_rejected():
    # zero sitting on the reference point
    analog = AnalogLayout(pairs=(PoleZeroPair.conjugate(complex(-100.0, 100.0), 0j),), normal_w=0.0)
    with pytest.raises(DesignUnstable):
        digitize(analog, FS)


if __name__ == "__main__":
    pytest.main([__file__])
