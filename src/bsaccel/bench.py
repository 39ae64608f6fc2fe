"""Wall-clock timing of a backend over a pricing request."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import numpy as np

from .core import MarketInputs, PricingConfig
from .pricing import price_inputs

__all__ = ["BenchResult", "time_backend"]

logger = logging.getLogger(__name__)

# backends whose first call pays for compilation or device start-up
_WARMUP = {"numba", "cupy"}


@dataclass(frozen=True)
class BenchResult:
    backend: str
    n: int
    total: float      # sum of the put vector
    elapsed: float    # seconds, best of ``repeat``

    def __str__(self):
        return (f"{self.backend:<8s} n={self.n:<10d} sum={self.total:.6e}  "
                f"elapsed={self.elapsed:.4f}s")


def time_backend(
    inputs: MarketInputs,
    backend: str,
    *,
    repeat: int = 1,
    dtype: str = "float64",
    **options,
) -> BenchResult:
    """Price ``inputs`` with ``backend`` and report the sum and best time."""
    if repeat <= 0:
        raise ValueError("repeat must be positive.")
    config = PricingConfig(backend=backend, dtype=dtype, **options)

    if backend in _WARMUP:
        logger.debug("warm-up call for %s", backend)
        price_inputs(inputs.with_strikes(inputs.strikes[:1]), config)

    best = float("inf")
    out = None
    for _ in range(repeat):
        t0 = time.perf_counter()
        out = price_inputs(inputs, config)
        best = min(best, time.perf_counter() - t0)

    total = float(np.sum(out, dtype=np.float64))
    logger.info("%s: %d strikes in %.4fs", backend, len(inputs), best)
    return BenchResult(backend=backend, n=len(inputs), total=total, elapsed=best)
