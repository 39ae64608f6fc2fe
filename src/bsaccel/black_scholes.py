"""Scalar form of the reference put formula, one strike at a time.

Arithmetic runs on NumPy scalars of the requested dtype so that a float32
evaluation stays float32 throughout, and so that degenerate inputs follow
IEEE semantics (inf / nan) instead of raising mid-loop.
"""

from __future__ import annotations

import numpy as np
from scipy.special import erf

from .core import resolve_dtype

__all__ = ["legs", "put_price", "call_price"]


def _d1_d2(spot, strike, rate, volatility, time):
    logterm = np.log10(spot / strike)
    powterm = 0.5 * volatility * volatility
    den = volatility * np.sqrt(time)
    d1 = ((rate + powterm) * time + logterm) / den
    d2 = d1 - den
    return d1, d2


def legs(spot, strike, rate, volatility, time, *, dtype="float64"):
    """Return ``(call, put)`` for a single strike.

    The put leg is ``call - futureValue + spot`` and the log term is base 10,
    both exactly as in the reference formula.
    """
    dt = resolve_dtype(dtype)
    spot, strike, rate, volatility, time = (
        dt(x) for x in (spot, strike, rate, volatility, time)
    )
    half = dt(0.5)
    inv_sqrt2 = dt(1.0 / np.sqrt(2.0))
    with np.errstate(all="ignore"):
        d1, d2 = _d1_d2(spot, strike, rate, volatility, time)
        Nd1 = half + erf(d1 * inv_sqrt2) * half
        Nd2 = half + erf(d2 * inv_sqrt2) * half
        future_value = strike * np.exp(-rate * time)
        call = spot * Nd1 - future_value * Nd2
        put = call - future_value + spot
    return call, put


def put_price(spot, strike, rate, volatility, time, *, dtype="float64") -> float:
    return float(legs(spot, strike, rate, volatility, time, dtype=dtype)[1])


def call_price(spot, strike, rate, volatility, time, *, dtype="float64") -> float:
    return float(legs(spot, strike, rate, volatility, time, dtype=dtype)[0])
