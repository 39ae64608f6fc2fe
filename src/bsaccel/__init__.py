# bsaccel — batch Black-Scholes put pricing with pluggable compute backends
# Public API

# Data model
from .core import (
    MarketInputs, PricingConfig, DomainError,
    check_domain, domain_mask, ramp_strikes,
)

# Kernels
from .black_scholes import legs, put_price, call_price
from .black_scholes_vec import legs_vec, put_price_vec

# Backends & dispatch
from .backends import (
    Backend, BackendUnavailable, BACKENDS,
    register_backend, get_backend, available_backends,
)
from .pricing import price_options, price_inputs

# Validation & timing
from .validation import cross_validate, partition_check, stress_test
from .bench import BenchResult, time_backend

__all__ = [
    # Data model
    "MarketInputs", "PricingConfig", "DomainError",
    "check_domain", "domain_mask", "ramp_strikes",
    # Kernels
    "legs", "put_price", "call_price", "legs_vec", "put_price_vec",
    # Backends
    "Backend", "BackendUnavailable", "BACKENDS",
    "register_backend", "get_backend", "available_backends",
    "price_options", "price_inputs",
    # Validation & timing
    "cross_validate", "partition_check", "stress_test",
    "BenchResult", "time_backend",
]

__version__ = "0.1.0"
