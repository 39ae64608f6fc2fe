#!/usr/bin/env python3
"""Walkthrough: the same put formula, first as a loop, then on arrays.

    inputs  →  strike ramp  →  scalar loop (subset)  →  NumPy / threads
    →  Numba JIT / CuPy GPU when installed  →  report

Usage
-----
    python scripts/walkthrough.py
    python scripts/walkthrough.py --n 1000000 --loop-n 20000
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Allow running from repo root
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from bsaccel.backends import available_backends
from bsaccel.bench import time_backend
from bsaccel.core import MarketInputs


# ── helpers ────────────────────────────────────────────────────────────────
def _header(title: str) -> None:
    width = 68
    print(f"\n{'─' * width}")
    print(f"  {title}")
    print(f"{'─' * width}")


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--n", type=int, default=10_000_000)
    parser.add_argument("--loop-n", dest="loop_n", type=int, default=100_000,
                        help="strikes priced by the slow scalar loop")
    args = parser.parse_args()

    # ── 1. Inputs ──────────────────────────────────────────────────────────
    _header("Step 1 — Inputs")
    inputs = MarketInputs.reference(args.n)
    print(f"  spot        = {inputs.spot}")
    print(f"  rate        = {inputs.rate}")
    print(f"  volatility  = {inputs.volatility}")
    print(f"  time        = {inputs.time}")
    print(f"  strikes     = {len(inputs):,} from {inputs.strikes[0]:.7f} "
          f"to {inputs.strikes[-1]:.7f}")

    # ── 2. Scalar loop ─────────────────────────────────────────────────────
    _header(f"Step 2 — Scalar loop over the first {args.loop_n:,} strikes")
    subset = inputs.with_strikes(inputs.strikes[:args.loop_n])
    loop = time_backend(subset, "loop")
    print(f"  {loop}")
    per_strike = loop.elapsed / max(loop.n, 1)
    print(f"  projected for {len(inputs):,}: {per_strike * len(inputs):.1f}s")

    # ── 3. Array backends ──────────────────────────────────────────────────
    _header("Step 3 — Array backends over every strike")
    results = []
    for name, ok in available_backends().items():
        if name == "loop":
            continue
        if not ok:
            print(f"  {name:<8s} not installed, skipped")
            continue
        res = time_backend(inputs, name, chunk_size=1_000_000)
        results.append(res)
        print(f"  {res}")

    # ── 4. Report ──────────────────────────────────────────────────────────
    _header("Step 4 — Report")
    for res in results:
        speedup = per_strike * res.n / res.elapsed if res.elapsed > 0 else float("inf")
        print(f"  {res.backend:<8s} sum={res.total:.6e}  ~{speedup:,.0f}x the loop")


if __name__ == "__main__":
    main()
