import math

import numpy as np
from bsaccel.black_scholes import legs, put_price, call_price


def _by_hand(spot, k, rate, vol, time):
    logterm = math.log10(spot / k)
    powterm = 0.5 * vol ** 2
    den = vol * math.sqrt(time)
    d1 = ((rate + powterm) * time + logterm) / den
    d2 = d1 - den
    Nd1 = 0.5 + math.erf(d1 / math.sqrt(2)) / 2
    Nd2 = 0.5 + math.erf(d2 / math.sqrt(2)) / 2
    fv = k * math.exp(-rate * time)
    call = spot * Nd1 - fv * Nd2
    return call, call - fv + spot


def test_single_strike_known_value():
    px = put_price(42.0, 40.0, 0.5, 0.2, 0.5)
    assert abs(px - _by_hand(42.0, 40.0, 0.5, 0.2, 0.5)[1]) < 1e-12
    assert abs(px - 21.7223654187) < 1e-8
    assert math.isfinite(px) and px > 0


def test_call_leg_matches_hand_evaluation():
    c = call_price(42.0, 40.0, 0.5, 0.2, 0.5)
    assert abs(c - _by_hand(42.0, 40.0, 0.5, 0.2, 0.5)[0]) < 1e-12
    assert abs(c - 10.8743967416) < 1e-8


def test_put_is_call_minus_future_value_plus_spot():
    call, put = legs(100.0, 95.0, 0.05, 0.25, 1.0)
    fv = 95.0 * math.exp(-0.05)
    assert abs(float(put) - (float(call) - fv + 100.0)) < 1e-10


def test_log10_not_natural_log():
    # natural-log Black-Scholes would give a different d1
    spot, k, rate, vol, t = 42.0, 40.0, 0.5, 0.2, 0.5
    den = vol * math.sqrt(t)
    d1_ln = ((rate + 0.5 * vol ** 2) * t + math.log(spot / k)) / den
    d2_ln = d1_ln - den
    fv = k * math.exp(-rate * t)
    call_ln = (spot * (0.5 + math.erf(d1_ln / math.sqrt(2)) / 2)
               - fv * (0.5 + math.erf(d2_ln / math.sqrt(2)) / 2))
    assert abs(call_price(spot, k, rate, vol, t) - call_ln) > 1e-3


def test_float32_stays_float32():
    call, put = legs(42.0, 40.0, 0.5, 0.2, 0.5, dtype="float32")
    assert isinstance(put, np.float32)
    assert abs(float(put) - 21.7223654187) / 21.7223654187 < 1e-5


def test_degenerate_time_gives_ieee_values():
    # no exception mid-loop: inf / nan flow through
    call, put = legs(42.0, 42.0, 0.5, 0.2, 0.0)
    assert math.isnan(float(put))
