"""Pluggable compute backends for the put formula.

A backend takes the shared scalars and a host strike vector and returns a
freshly allocated host ``ndarray`` of put prices.  Backends do raw IEEE
arithmetic; domain checks and the NaN policy live in :mod:`bsaccel.pricing`.

The caller picks a backend by name::

    >>> from bsaccel.backends import get_backend
    >>> get_backend("threads", n_workers=4).price(42.0, strikes, 0.5, 0.2, 0.5)

Optional backends (``numba``, ``cupy``) import their library lazily and
raise :class:`BackendUnavailable` when it is missing.
"""

from __future__ import annotations

import logging
import math
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import numpy as np

from .black_scholes import legs
from .black_scholes_vec import put_price_vec
from .core import resolve_dtype

__all__ = [
    "Backend",
    "BackendUnavailable",
    "BACKENDS",
    "register_backend",
    "get_backend",
    "available_backends",
    "plan_chunks",
]

logger = logging.getLogger(__name__)


class BackendUnavailable(RuntimeError):
    """The library behind an optional backend is not installed or has no device."""


BACKENDS: dict[str, type] = {}


def register_backend(cls):
    """Class decorator: add a backend to the registry under ``cls.name``."""
    BACKENDS[cls.name] = cls
    return cls


def get_backend(name: str, **options) -> "Backend":
    try:
        cls = BACKENDS[name]
    except KeyError:
        raise ValueError(
            f"Unknown backend: {name!r} (choose from {sorted(BACKENDS)})"
        ) from None
    return cls(**options)


def available_backends() -> dict[str, bool]:
    """Map every registered backend name to whether it can run here."""
    return {name: cls.is_available() for name, cls in BACKENDS.items()}


def plan_chunks(n: int, chunk_size: Optional[int]) -> list[slice]:
    """Split ``range(n)`` into contiguous slices of at most ``chunk_size``."""
    if chunk_size is None or chunk_size >= n:
        return [slice(0, n)]
    return [slice(i, min(i + chunk_size, n)) for i in range(0, n, chunk_size)]


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------
class Backend:
    """Common options: ``chunk_size`` bounds the strikes handled per kernel
    call, ``n_workers`` the number of concurrent partitions.  Backends that
    have no use for an option ignore it.
    """
    name = "base"
    extra: Optional[str] = None   # pip extra that provides the library

    def __init__(self, chunk_size: Optional[int] = None,
                 n_workers: Optional[int] = None):
        if chunk_size is not None and chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if n_workers is not None and n_workers <= 0:
            raise ValueError(f"n_workers must be positive, got {n_workers}")
        self.chunk_size = chunk_size
        self.n_workers = n_workers

    @classmethod
    def is_available(cls) -> bool:
        return True

    def price(self, spot, strikes, rate, volatility, time, *,
              dtype="float64") -> np.ndarray:
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}()"


# ---------------------------------------------------------------------------
# 1) Plain loop
# ---------------------------------------------------------------------------
@register_backend
class LoopBackend(Backend):
    """One strike at a time through the scalar kernel."""
    name = "loop"

    def price(self, spot, strikes, rate, volatility, time, *, dtype="float64"):
        dt = resolve_dtype(dtype)
        strikes = np.asarray(strikes, dtype=dt)
        out = np.empty(strikes.shape, dtype=dt)
        for i, k in enumerate(strikes):
            out[i] = legs(spot, k, rate, volatility, time, dtype=dt)[1]
        return out


# ---------------------------------------------------------------------------
# 2) Vectorised NumPy, optionally streamed
# ---------------------------------------------------------------------------
@register_backend
class NumpyBackend(Backend):
    """Whole-array NumPy evaluation.

    With ``chunk_size`` the strikes are streamed in slices so temporaries
    stay bounded regardless of N.
    """
    name = "numpy"

    def price(self, spot, strikes, rate, volatility, time, *, dtype="float64"):
        dt = resolve_dtype(dtype)
        strikes = np.asarray(strikes, dtype=dt)
        out = np.empty(strikes.shape, dtype=dt)
        chunks = plan_chunks(strikes.size, self.chunk_size)
        if len(chunks) > 1:
            logger.debug("numpy backend: %d strikes in %d chunks",
                         strikes.size, len(chunks))
        with np.errstate(all="ignore"):
            for sl in chunks:
                put_price_vec(spot, strikes[sl], rate, volatility, time,
                              dtype=dt, out=out[sl])
        return out

    def __repr__(self):
        return f"NumpyBackend(chunk_size={self.chunk_size})"


# ---------------------------------------------------------------------------
# 3) Thread pool over NumPy partitions
# ---------------------------------------------------------------------------
@register_backend
class ThreadedBackend(Backend):
    """Partition the strikes and price each slice on a worker thread.

    NumPy ufuncs release the GIL, so the partitions run concurrently.  Each
    worker writes a disjoint slice of the shared output buffer.
    """
    name = "threads"

    def __init__(self, chunk_size: Optional[int] = None,
                 n_workers: Optional[int] = None):
        super().__init__(chunk_size=chunk_size,
                         n_workers=n_workers or os.cpu_count() or 1)

    def price(self, spot, strikes, rate, volatility, time, *, dtype="float64"):
        dt = resolve_dtype(dtype)
        strikes = np.asarray(strikes, dtype=dt)
        out = np.empty(strikes.shape, dtype=dt)
        n = strikes.size
        if n == 0:
            return out

        chunk = self.chunk_size or max(1, math.ceil(n / self.n_workers))
        chunks = plan_chunks(n, chunk)
        logger.debug("threads backend: %d strikes, %d partitions, %d workers",
                     n, len(chunks), self.n_workers)

        def work(sl):
            with np.errstate(all="ignore"):
                put_price_vec(spot, strikes[sl], rate, volatility, time,
                              dtype=dt, out=out[sl])

        with ThreadPoolExecutor(max_workers=self.n_workers) as ex:
            # list() re-raises the first worker exception here
            list(ex.map(work, chunks))
        return out

    def __repr__(self):
        return (f"ThreadedBackend(n_workers={self.n_workers}, "
                f"chunk_size={self.chunk_size})")


# ---------------------------------------------------------------------------
# 4) Numba parallel JIT
# ---------------------------------------------------------------------------
_numba_kernel = None
_numba_lock = threading.Lock()


def _compile_numba_kernel():
    import numba

    # error_model="numpy": float division by zero gives inf/nan, not an exception
    @numba.njit(parallel=True, error_model="numpy")
    def kernel(spot, strikes, rate, volatility, time, out):
        powterm = 0.5 * volatility * volatility
        den = volatility * math.sqrt(time)
        disc = math.exp(-rate * time)
        inv_sqrt2 = 1.0 / math.sqrt(2.0)
        for i in numba.prange(strikes.shape[0]):
            k = strikes[i]
            logterm = math.log10(spot / k) if spot / k > 0 else math.nan
            d1 = ((rate + powterm) * time + logterm) / den
            d2 = d1 - den
            Nd1 = 0.5 + math.erf(d1 * inv_sqrt2) * 0.5
            Nd2 = 0.5 + math.erf(d2 * inv_sqrt2) * 0.5
            future_value = k * disc
            call = spot * Nd1 - future_value * Nd2
            out[i] = call - future_value + spot
        return out

    return kernel


def _get_numba_kernel():
    global _numba_kernel
    with _numba_lock:
        if _numba_kernel is None:
            logger.info("compiling numba kernel")
            _numba_kernel = _compile_numba_kernel()
    return _numba_kernel


@register_backend
class NumbaBackend(Backend):
    """``@njit(parallel=True)`` loop; compiled on first use."""
    name = "numba"
    extra = "jit"

    @classmethod
    def is_available(cls) -> bool:
        try:
            import numba  # noqa: F401
        except ImportError:
            return False
        return True

    def __init__(self, **options):
        if not self.is_available():
            raise BackendUnavailable(
                "numba backend needs numba: pip install 'bsaccel[jit]'"
            )
        super().__init__(**options)

    def price(self, spot, strikes, rate, volatility, time, *, dtype="float64"):
        kernel = _get_numba_kernel()
        dt = resolve_dtype(dtype)
        strikes = np.ascontiguousarray(strikes, dtype=dt)
        out = np.empty(strikes.shape, dtype=dt)
        return kernel(dt(spot), strikes, dt(rate), dt(volatility), dt(time), out)


# ---------------------------------------------------------------------------
# 5) CuPy GPU arrays
# ---------------------------------------------------------------------------
@register_backend
class CupyBackend(Backend):
    """Same vectorised algebra on CuPy device arrays.

    Strikes are copied to the device, priced there, and the result is
    copied back with ``cupy.asnumpy``.
    """
    name = "cupy"
    extra = "gpu"

    @classmethod
    def is_available(cls) -> bool:
        try:
            import cupy
        except ImportError:
            return False
        try:
            return cupy.cuda.runtime.getDeviceCount() > 0
        except cupy.cuda.runtime.CUDARuntimeError:
            return False

    def __init__(self, device: Optional[int] = None, **options):
        if not self.is_available():
            raise BackendUnavailable(
                "cupy backend needs cupy and a CUDA device: "
                "pip install 'bsaccel[gpu]'"
            )
        super().__init__(**options)
        self.device = device

    def price(self, spot, strikes, rate, volatility, time, *, dtype="float64"):
        import cupy as cp
        from cupyx.scipy.special import erf as cp_erf

        dt = resolve_dtype(dtype)
        with cp.cuda.Device(self.device if self.device is not None else 0):
            d_strikes = cp.asarray(strikes, dtype=dt)
            d_put = put_price_vec(spot, d_strikes, rate, volatility, time,
                                  dtype=dt, xp=cp, erf=cp_erf)
            return cp.asnumpy(d_put)

    def __repr__(self):
        return f"CupyBackend(device={self.device})"
