# black_scholes_vec.py
# Vectorised form of the reference put formula.
# Functions take an array module ``xp`` (numpy by default, cupy for GPU
# arrays) plus the matching ``erf``, so the same algebra runs wherever the
# arrays live.  Scalars broadcast against the strike vector.

from __future__ import annotations
import math

import numpy as np
from scipy.special import erf as _np_erf

__all__ = ["legs_vec", "put_price_vec"]

_INV_SQRT2 = 1.0 / math.sqrt(2.0)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------
def _d1_d2(xp, spot, strikes, rate, volatility, time):
    """Compute d1, d2 arrays.  All inputs broadcast."""
    logterm = xp.log10(spot / strikes)
    powterm = 0.5 * volatility * volatility
    den = volatility * xp.sqrt(time)
    d1 = ((rate + powterm) * time + logterm) / den
    d2 = d1 - den
    return d1, d2


def _as_arrays(xp, dtype, *values):
    return tuple(xp.asarray(v, dtype=dtype) for v in values)


# ---------------------------------------------------------------------------
# Vectorised legs
# ---------------------------------------------------------------------------
def legs_vec(spot, strikes, rate, volatility, time, *,
             dtype=np.float64, xp=np, erf=None) -> dict:
    """Vectorised call / put legs of the reference formula.

    Returns
    -------
    dict
        ``"call"``, ``"put"`` and ``"future_value"`` arrays, each shaped like
        the broadcast inputs and of ``dtype``.
    """
    if erf is None:
        erf = _np_erf
    spot, strikes, rate, volatility, time = _as_arrays(
        xp, dtype, spot, strikes, rate, volatility, time
    )
    d1, d2 = _d1_d2(xp, spot, strikes, rate, volatility, time)
    Nd1 = 0.5 + erf(d1 * _INV_SQRT2) * 0.5
    Nd2 = 0.5 + erf(d2 * _INV_SQRT2) * 0.5

    future_value = strikes * xp.exp(-rate * time)
    call = spot * Nd1 - future_value * Nd2
    put = call - future_value + spot
    return {"call": call, "put": put, "future_value": future_value}


def put_price_vec(spot, strikes, rate, volatility, time, *,
                  dtype=np.float64, xp=np, erf=None, out=None):
    """Vectorised put prices; writes into ``out`` when given."""
    put = legs_vec(spot, strikes, rate, volatility, time,
                   dtype=dtype, xp=xp, erf=erf)["put"]
    if out is None:
        return put
    out[...] = put
    return out
