# ------------------------------------------------------------------------------
# Analog prototype tests (scipy.signal.cheb1ap as the reference)
# ------------------------------------------------------------------------------
import math

import numpy as np
import pytest
from scipy import signal

from errors import InvalidGain, InvalidOrder, InvalidRipple
from prototypes import low_pass_prototype, low_shelf_prototype, ripple_factor


def assert_roots_close(actual, expected, rtol=1e-9):
    actual = list(np.asarray(actual, dtype=complex))
    expected = list(np.asarray(expected, dtype=complex))
    assert len(actual) == len(expected)
    for r in expected:
        i = int(np.argmin([abs(r - a) for a in actual]))
        assert abs(r - actual[i]) <= rtol * max(1.0, abs(r)), f"{r} not found in {actual}"
        actual.pop(i)


def analog_response(layout, w):
    s = 1j * np.asarray(w, dtype=np.float64)
    h = np.ones_like(s)
    for z in layout.zeros():
        if z is not None:
            h = h * (s - z)
    for p in layout.poles():
        h = h / (s - p)
    return h


@pytest.mark.parametrize("order", [1, 2, 3, 4, 5, 8, 16])
@pytest.mark.parametrize("ripple_db", [0.1, 0.5, 1.0, 3.0])
def test_low_pass_poles_match_scipy(order, ripple_db):
    proto = low_pass_prototype(order, ripple_db)
    _z, p_ref, _k = signal.cheb1ap(order, ripple_db)

    assert proto.num_poles == order
    assert len(proto.pairs) * 2 + (1 if proto.real_pole is not None else 0) == order
    assert all(z is None for z in proto.zeros())
    assert all(p.real < 0.0 for p in proto.poles())
    assert all(pair.is_conjugate() for pair in proto)
    assert_roots_close(proto.poles(), p_ref)


@pytest.mark.parametrize("order", [1, 2, 3, 4, 7])
@pytest.mark.parametrize("ripple_db", [0.25, 1.0, 2.0])
def test_low_pass_passband_ripple(order, ripple_db):
    proto = low_pass_prototype(order, ripple_db)
    w = np.linspace(0.0, 1.0, 20001)
    h = analog_response(proto, w)
    db = 20.0 * np.log10(np.abs(h / h[0]))

    span = db.max() - db.min()
    assert span <= ripple_db + 1e-9
    assert span == pytest.approx(ripple_db, abs=1e-3)
    # edge of the passband sits on the ripple extreme
    expected_edge = 0.0 if order % 2 == 0 else -ripple_db
    assert db[-1] == pytest.approx(expected_edge, abs=1e-9)


def test_low_pass_reference_point():
    proto = low_pass_prototype(4, 1.0)
    assert proto.normal_w == 0.0
    assert proto.normal_gain == 1.0


def test_ripple_factor():
    assert ripple_factor(3.0103) == pytest.approx(1.0, rel=1e-4)


@pytest.mark.parametrize("order", [1, 3, 5])
@pytest.mark.parametrize("gain_db", [6.0, -9.0, 12.0])
def test_low_shelf_odd_order_hits_gain_at_dc(order, gain_db):
    proto = low_shelf_prototype(order, gain_db, 0.5)
    assert proto.num_poles == order
    assert all(p.real < 0.0 for p in proto.poles())
    assert all(z is not None and z.real < 0.0 for z in proto.zeros())

    h0 = analog_response(proto, [0.0])[0]
    assert 20.0 * math.log10(abs(h0)) == pytest.approx(gain_db, abs=1e-9)
    # unity far above the shelf
    h_inf = analog_response(proto, [1e7])[0]
    assert abs(h_inf) == pytest.approx(1.0, abs=1e-5)


@pytest.mark.parametrize("order", [2, 4, 6])
@pytest.mark.parametrize("gain_db", [6.0, -6.0])
def test_low_shelf_even_order_hits_gain_at_dc(order, gain_db):
    ripple_db = 0.5
    proto = low_shelf_prototype(order, gain_db, ripple_db)
    h0 = analog_response(proto, [0.0])[0]
    assert 20.0 * math.log10(abs(h0)) == pytest.approx(gain_db, abs=1e-9)

    # ripple extends past the shelf gain, away from 0 dB
    expected = math.copysign(abs(gain_db) + ripple_db, gain_db)
    w = np.linspace(0.0, 1.0, 20001)
    db = 20.0 * np.log10(np.abs(analog_response(proto, w)))
    lo, hi = sorted((gain_db, expected))
    assert db.min() >= lo - 1e-9
    assert db.max() <= hi + 1e-9


def test_low_shelf_ripple_limited_by_gain():
    proto = low_shelf_prototype(3, 1.0, 3.0)
    assert all(p.real < 0.0 for p in proto.poles())
    h0 = analog_response(proto, [0.0])[0]
    assert 20.0 * math.log10(abs(h0)) == pytest.approx(1.0, abs=1e-9)


def test_low_shelf_zero_gain_is_flat():
    proto = low_shelf_prototype(5, 0.0, 1.0)
    h = analog_response(proto, np.logspace(-3, 3, 50))
    np.testing.assert_allclose(np.abs(h), 1.0, atol=1e-12)


@pytest.mark.parametrize("order", [1, 2, 3, 4])
@pytest.mark.parametrize("gain_db", [1e-15, 1e-13, -1e-13, 1e-10])
def test_low_shelf_tiny_gain(order, gain_db):
    proto = low_shelf_prototype(order, gain_db, 0.5)
    assert proto.num_poles == order
    assert all(np.isfinite(p) and p.real < 0.0 for p in proto.poles())
    assert all(np.isfinite(z) for z in proto.zeros())
    h0 = analog_response(proto, [0.0])[0]
    assert 20.0 * math.log10(abs(h0)) == pytest.approx(gain_db, abs=1e-9)


def test_low_shelf_reference_point_is_infinity():
    proto = low_shelf_prototype(2, 6.0, 0.5)
    assert math.isinf(proto.normal_w)
    assert proto.normal_gain == 1.0


@pytest.mark.parametrize("order", [0, -1, 17, 2.5, True, "4"])
def test_invalid_order(order):
    with pytest.raises(InvalidOrder):
        low_pass_prototype(order, 1.0)


def test_max_order_is_configurable():
    assert low_pass_prototype(20, 1.0, max_order=32).num_poles == 20
    with pytest.raises(InvalidOrder) as exc:
        low_pass_prototype(5, 1.0, max_order=4)
    assert exc.value.param == "order"
    assert exc.value.value == 5


@pytest.mark.parametrize("ripple_db", [0.0, -1.0, float("nan"), float("inf")])
def test_invalid_ripple(ripple_db):
    with pytest.raises(InvalidRipple):
        low_pass_prototype(3, ripple_db)
    with pytest.raises(InvalidRipple):
        low_shelf_prototype(3, 6.0, ripple_db)


@pytest.mark.parametrize("gain_db", [float("nan"), float("inf"), -float("inf")])
def test_invalid_gain(gain_db):
    with pytest.raises(InvalidGain):
        low_shelf_prototype(3, gain_db, 1.0)


if __name__ == "__main__":
    pytest.main([__file__])
