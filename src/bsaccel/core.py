from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

import numpy as np


DTYPES = {"float32": np.float32, "float64": np.float64}
ERROR_POLICIES = ("raise", "nan")


class DomainError(ValueError):
    """Inputs outside the domain of the pricing formula (log / division)."""


def resolve_dtype(dtype) -> type:
    """Map ``"float32"`` / ``"float64"`` (or the NumPy types) to a NumPy type."""
    if isinstance(dtype, str):
        try:
            return DTYPES[dtype]
        except KeyError:
            raise ValueError(
                f"dtype must be one of {sorted(DTYPES)}, got {dtype!r}"
            ) from None
    dt = np.dtype(dtype).type
    if dt not in (np.float32, np.float64):
        raise ValueError(f"dtype must be float32 or float64, got {dtype!r}")
    return dt


# ---------------------------------------------------------------------------
# Domain checks
# ---------------------------------------------------------------------------
def check_domain(spot, strikes, rate, volatility, time) -> None:
    """Fail fast, once for the whole call, on inputs the formula cannot take."""
    strikes = np.asarray(strikes, dtype=float)
    if strikes.ndim != 1:
        raise DomainError(f"strikes must be 1-D, got shape {strikes.shape}")
    if strikes.size == 0:
        raise DomainError("strikes must be non-empty")
    bad = ~(np.isfinite(strikes) & (strikes > 0))
    if bad.any():
        i = int(np.argmax(bad))
        raise DomainError(
            f"strikes must be positive, got {strikes[i]} at index {i}"
        )
    for name, value in (("spot", spot), ("volatility", volatility), ("time", time)):
        if not (np.isfinite(value) and value > 0):
            raise DomainError(f"{name} must be positive, got {value}")
    if not np.isfinite(rate):
        raise DomainError(f"rate must be finite, got {rate}")


def domain_mask(spot, strikes, rate, volatility, time) -> np.ndarray:
    """Boolean mask, True where an element's inputs fall outside the domain."""
    strikes = np.asarray(strikes, dtype=float)
    with np.errstate(invalid="ignore"):
        bad = ~(np.isfinite(strikes) & (strikes > 0))
        scalars_ok = all(
            np.isfinite(x) and x > 0 for x in (spot, volatility, time)
        ) and np.isfinite(rate)
    if not scalars_ok:
        bad = np.ones_like(bad)
    return bad


def ramp_strikes(n: int, *, base: float = 40.0, dtype="float64") -> np.ndarray:
    """Linear strike ramp ``base + i/n`` for ``i = 1..n``."""
    if n <= 0:
        raise ValueError("n must be positive.")
    dt = resolve_dtype(dtype)
    return (base + np.arange(1, n + 1, dtype=np.float64) / n).astype(dt, copy=False)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------
def _frozen_strikes(strikes) -> np.ndarray:
    arr = np.array(strikes, dtype=np.float64, ndmin=1)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class MarketInputs:
    """One pricing request: shared scalars plus an ordered strike vector.

    The domain is *not* checked on construction so that the ``"nan"``
    error policy can still be exercised; call :meth:`validate` for that.

    Parameters
    ----------
    spot : float
        Current underlying price.
    strikes : array-like
        Strike prices, length N.  Stored as a read-only float64 array.
    rate : float
        Risk-free rate.
    volatility : float
        Annualised volatility.
    time : float
        Time to expiry in years.
    """
    spot: float
    strikes: np.ndarray
    rate: float
    volatility: float
    time: float

    def __post_init__(self):
        object.__setattr__(self, "strikes", _frozen_strikes(self.strikes))

    def __len__(self) -> int:
        return int(self.strikes.size)

    def validate(self) -> "MarketInputs":
        check_domain(self.spot, self.strikes, self.rate, self.volatility, self.time)
        return self

    def with_strikes(self, strikes) -> "MarketInputs":
        return MarketInputs(self.spot, strikes, self.rate, self.volatility, self.time)

    @classmethod
    def reference(cls, n: int = 10_000_000) -> "MarketInputs":
        """Reference request: spot 42, rate 0.5, vol 0.2, 6 months, strikes 40..41."""
        return cls(spot=42.0, strikes=ramp_strikes(n), rate=0.5,
                   volatility=0.2, time=0.5)


@dataclass(frozen=True)
class PricingConfig:
    """How to evaluate a request.

    Parameters
    ----------
    backend : str
        Registered backend name (see ``bsaccel.backends``).
    dtype : str
        ``"float64"`` (default) or ``"float32"``.
    errors : str
        ``"raise"`` (default) validates up front and raises
        :class:`DomainError`; ``"nan"`` returns NaN for every element whose
        inputs are outside the domain.
    chunk_size : int | None
        Stream the vectorised kernel over slices of this many strikes.
    n_workers : int | None
        Partition count for the ``threads`` backend.
    """
    backend: str = "numpy"
    dtype: str = "float64"
    errors: str = "raise"
    chunk_size: Optional[int] = None
    n_workers: Optional[int] = None

    def __post_init__(self):
        resolve_dtype(self.dtype)
        if self.errors not in ERROR_POLICIES:
            raise ValueError(
                f"errors must be one of {ERROR_POLICIES}, got {self.errors!r}"
            )
        if self.chunk_size is not None and self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.n_workers is not None and self.n_workers <= 0:
            raise ValueError(f"n_workers must be positive, got {self.n_workers}")

    def backend_options(self) -> dict:
        opts = {}
        if self.chunk_size is not None:
            opts["chunk_size"] = self.chunk_size
        if self.n_workers is not None:
            opts["n_workers"] = self.n_workers
        return opts
