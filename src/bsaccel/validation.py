"""Backend validation toolkit.

Cross-backend benchmarking against the sequential loop, partition
equivalence checks, and a stress grid over shocked market scalars.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

import numpy as np

from .backends import BACKENDS, BackendUnavailable, plan_chunks
from .core import MarketInputs, PricingConfig
from .pricing import price_inputs

__all__ = [
    "cross_validate",
    "partition_check",
    "stress_test",
]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Cross-backend benchmarking
# ---------------------------------------------------------------------------

def cross_validate(
    inputs: MarketInputs,
    backends: Optional[list[str]] = None,
    *,
    dtype: str = "float64",
    errors: str = "raise",
) -> dict:
    """Price the same request with several backends and compare.

    Parameters
    ----------
    inputs : MarketInputs
    backends : list of str, optional
        Backend names.  Default: every registered backend.  The reference is
        ``"loop"`` when present, else the first backend that ran.

    Returns
    -------
    dict
        ``"prices"`` (name -> ndarray), ``"sums"`` (name -> float),
        ``"max_discrepancy"`` (name -> max abs diff vs reference),
        ``"reference"`` and ``"skipped"`` (unavailable backends).
    """
    if backends is None:
        backends = list(BACKENDS)

    prices: dict[str, np.ndarray] = {}
    skipped: list[str] = []
    for name in backends:
        config = PricingConfig(backend=name, dtype=dtype, errors=errors)
        try:
            prices[name] = price_inputs(inputs, config)
        except BackendUnavailable as exc:
            logger.info("skipping %s: %s", name, exc)
            skipped.append(name)

    if not prices:
        raise ValueError("No backend could run.")

    ref_name = "loop" if "loop" in prices else next(iter(prices))
    ref = prices[ref_name]
    return {
        "prices": prices,
        "sums": {k: float(np.sum(v, dtype=np.float64)) for k, v in prices.items()},
        "max_discrepancy": {
            k: float(np.max(np.abs(v - ref))) if v.size else 0.0
            for k, v in prices.items()
        },
        "reference": ref_name,
        "skipped": skipped,
    }


# ---------------------------------------------------------------------------
# Partition equivalence
# ---------------------------------------------------------------------------

def partition_check(
    inputs: MarketInputs,
    n_parts: int,
    *,
    backend: str = "numpy",
    dtype: str = "float64",
) -> dict:
    """Price ``n_parts`` contiguous partitions separately and compare with
    one sequential call over all strikes.

    Returns
    -------
    dict
        ``"max_abs_diff"`` and ``"identical"`` (bitwise equality).
    """
    if n_parts <= 0:
        raise ValueError("n_parts must be positive.")
    config = PricingConfig(backend=backend, dtype=dtype)
    whole = price_inputs(inputs, config)

    n = len(inputs)
    size = max(1, -(-n // n_parts))
    parts = [price_inputs(inputs.with_strikes(inputs.strikes[sl]), config)
             for sl in plan_chunks(n, size)]
    joined = np.concatenate(parts)

    return {
        "max_abs_diff": float(np.max(np.abs(joined - whole))),
        "identical": bool(np.array_equal(joined, whole)),
    }


# ---------------------------------------------------------------------------
# Stress testing
# ---------------------------------------------------------------------------

def stress_test(
    inputs: MarketInputs,
    spot_shocks: np.ndarray,
    vol_shocks: np.ndarray,
    rate_shocks: np.ndarray,
    *,
    config: Optional[PricingConfig] = None,
) -> np.ndarray:
    """Sum of put prices across a 3-D grid of market shocks.

    Parameters
    ----------
    spot_shocks : array, shape (n_spot,)
        Multiplicative shocks to spot (e.g. [0.8, 1.0, 1.2]).
    vol_shocks : array, shape (n_vol,)
        Additive shocks to volatility (floored at 1e-6).
    rate_shocks : array, shape (n_rate,)
        Additive shocks to the rate.

    Returns
    -------
    ndarray, shape (n_spot, n_vol, n_rate)
    """
    spot_shocks = np.asarray(spot_shocks, dtype=float)
    vol_shocks = np.asarray(vol_shocks, dtype=float)
    rate_shocks = np.asarray(rate_shocks, dtype=float)

    result = np.empty((len(spot_shocks), len(vol_shocks), len(rate_shocks)))

    for i, ds in enumerate(spot_shocks):
        for j, dv in enumerate(vol_shocks):
            new_vol = max(inputs.volatility + dv, 1e-6)
            for k_idx, dr in enumerate(rate_shocks):
                shocked = replace(inputs, spot=inputs.spot * ds,
                                  volatility=new_vol, rate=inputs.rate + dr)
                result[i, j, k_idx] = np.sum(price_inputs(shocked, config),
                                             dtype=np.float64)

    return result
