"""Entry point for pricing a strike vector.

``price_options`` is the call boundary: it applies the error policy once
for the whole request and hands the arithmetic to the selected backend.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .backends import get_backend
from .core import (
    ERROR_POLICIES, MarketInputs, PricingConfig,
    check_domain, domain_mask, resolve_dtype,
)

__all__ = ["price_options", "price_inputs"]

logger = logging.getLogger(__name__)


def price_options(
    spot: float,
    strikes,
    rate: float,
    volatility: float,
    time: float,
    *,
    backend: str = "numpy",
    dtype: str = "float64",
    errors: str = "raise",
    chunk_size: Optional[int] = None,
    n_workers: Optional[int] = None,
    **backend_options,
) -> np.ndarray:
    """Put prices for every strike, one element per strike, in strike order.

    Parameters
    ----------
    spot, rate, volatility, time : float
        Shared market scalars.
    strikes : array-like
        1-D strike vector.
    backend : str
        Registered backend name: ``"loop"``, ``"numpy"``, ``"threads"``,
        ``"numba"`` or ``"cupy"``.
    dtype : str
        ``"float64"`` or ``"float32"``; all arithmetic runs in this type.
    errors : str
        ``"raise"`` checks the inputs first and raises ``DomainError``.
        ``"nan"`` never raises on domain violations and returns NaN for each
        element whose inputs are out of domain (all elements if a shared
        scalar is).
    chunk_size, n_workers : int, optional
        Passed to the backends that take them.

    Returns
    -------
    np.ndarray
        Freshly allocated host array of length ``len(strikes)``.
    """
    if errors not in ERROR_POLICIES:
        raise ValueError(f"errors must be one of {ERROR_POLICIES}, got {errors!r}")
    dt = resolve_dtype(dtype)
    # check the values the kernel will actually see: float32 can flush a
    # tiny strike to 0 or overflow a huge one to inf
    with np.errstate(all="ignore"):
        strikes = np.asarray(np.asarray(strikes, dtype=np.float64), dtype=dt)
        spot, rate, volatility, time = (
            dt(x) for x in (spot, rate, volatility, time)
        )

    if errors == "raise":
        check_domain(spot, strikes, rate, volatility, time)
    elif strikes.ndim != 1:
        raise ValueError(f"strikes must be 1-D, got shape {strikes.shape}")

    if chunk_size is not None:
        backend_options["chunk_size"] = chunk_size
    if n_workers is not None:
        backend_options["n_workers"] = n_workers
    engine = get_backend(backend, **backend_options)
    logger.debug("pricing %d strikes with %r (%s)", strikes.size, engine,
                 np.dtype(dt).name)

    out = engine.price(spot, strikes, rate, volatility, time, dtype=dt)

    if errors == "nan":
        bad = domain_mask(spot, strikes, rate, volatility, time)
        if bad.any():
            logger.debug("%d of %d strikes out of domain", int(bad.sum()), bad.size)
            out[bad] = np.nan
    return out


def price_inputs(inputs: MarketInputs,
                 config: Optional[PricingConfig] = None) -> np.ndarray:
    """``price_options`` for a :class:`MarketInputs` bundle."""
    if config is None:
        config = PricingConfig()
    return price_options(
        inputs.spot, inputs.strikes, inputs.rate, inputs.volatility, inputs.time,
        backend=config.backend, dtype=config.dtype, errors=config.errors,
        **config.backend_options(),
    )
