#!/usr/bin/env python3
"""Production script: batch-price a book of puts.

Usage
-----
    python scripts/price_book.py --input book.csv --output prices.csv
    python scripts/price_book.py --input book.csv --output prices.json --backend threads

Input CSV format
----------------
    id,spot,strike,rate,volatility,time
    1,42,40.0,0.5,0.2,0.5
    2,42,40.5,0.5,0.2,0.5
    3,100,95,0.05,0.25,1.0

Rows sharing (spot, rate, volatility, time) are priced together as one
strike vector.

Output
------
    CSV or JSON with columns: id, price (and error for rows that failed)
"""

from __future__ import annotations
import argparse
import csv
import json
import sys
from collections import defaultdict
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from bsaccel.backends import BACKENDS
from bsaccel.core import DomainError, PricingConfig
from bsaccel.pricing import price_options

_MARKET = ("spot", "rate", "volatility", "time")


def _group_rows(rows: list[dict]) -> dict[tuple, list[dict]]:
    """Group portfolio rows by their shared market scalars."""
    groups: dict[tuple, list[dict]] = defaultdict(list)
    for row in rows:
        key = tuple(float(row[c]) for c in _MARKET)
        groups[key].append(row)
    return groups


def _price_group(key: tuple, rows: list[dict], config: PricingConfig) -> list[dict]:
    spot, rate, volatility, time = key
    strikes = np.array([float(r["strike"]) for r in rows])
    prices = price_options(
        spot, strikes, rate, volatility, time,
        backend=config.backend, dtype=config.dtype, errors=config.errors,
        **config.backend_options(),
    )
    results = []
    for r, px in zip(rows, prices):
        if np.isfinite(px):
            results.append({"id": r.get("id", ""), "price": float(px)})
        else:
            # NaN from the "nan" policy: report as failed, written as null
            results.append({"id": r.get("id", ""), "price": None,
                            "error": "inputs out of domain"})
    return results


def main():
    parser = argparse.ArgumentParser(description="Batch-price a book of puts.")
    parser.add_argument("--input", required=True, help="Path to book CSV")
    parser.add_argument("--output", required=True, help="Output path (.csv or .json)")
    parser.add_argument("--backend", choices=sorted(BACKENDS), default="numpy")
    parser.add_argument("--dtype", choices=["float32", "float64"], default="float64")
    parser.add_argument("--errors", choices=["raise", "nan"], default="raise")
    args = parser.parse_args()

    config = PricingConfig(backend=args.backend, dtype=args.dtype, errors=args.errors)

    with open(args.input, newline="") as f:
        rows = list(csv.DictReader(f))

    groups = _group_rows(rows)
    print(f"Pricing {len(rows)} positions in {len(groups)} market groups...")

    results = []
    for key, group in groups.items():
        try:
            results.extend(_price_group(key, group, config))
        except DomainError as e:
            print(f"  Group {key}: ERROR — {e}")
            results.extend({"id": r.get("id", ""), "price": None, "error": str(e)}
                           for r in group)

    output_path = Path(args.output)
    if output_path.suffix == ".json":
        with open(output_path, "w") as f:
            json.dump(results, f, indent=2, default=str)
    else:
        if not results:
            print("No results to write.")
            return
        fieldnames = ["id", "price"]
        if any("error" in r for r in results):
            fieldnames.append("error")
        with open(output_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
            writer.writeheader()
            writer.writerows(results)

    print(f"Results written to {args.output}")

    priced = [r for r in results if r.get("price") is not None]
    failed = [r for r in results if r.get("price") is None]
    total = sum(r["price"] for r in priced)
    print(f"  Priced: {len(priced)}  |  Failed: {len(failed)}  |  Sum: {total:.6f}")


if __name__ == "__main__":
    main()
