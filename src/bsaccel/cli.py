import argparse
import logging
import sys

from .backends import BACKENDS, BackendUnavailable, available_backends
from .bench import time_backend
from .core import DTYPES, ERROR_POLICIES, DomainError, MarketInputs, PricingConfig
from .pricing import price_inputs


def _positive_int(s: str) -> int:
    try:
        n = int(float(s))
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {s!r}") from None
    if n <= 0:
        raise argparse.ArgumentTypeError("must be positive")
    return n


def add_market(parser: argparse.ArgumentParser, *, strikes: bool = True):
    parser.add_argument("--spot", type=float, default=42.0)
    parser.add_argument("--rate", type=float, default=0.5, help="risk-free rate")
    parser.add_argument("--vol", type=float, default=0.2, help="volatility")
    parser.add_argument("--time", type=float, default=0.5, help="years")
    if strikes:
        parser.add_argument("--strikes", type=float, nargs="+", required=True)


def add_engine(parser: argparse.ArgumentParser):
    parser.add_argument("--dtype", choices=sorted(DTYPES), default="float64")
    parser.add_argument("--chunk-size", dest="chunk_size", type=_positive_int,
                        default=None)
    parser.add_argument("--workers", dest="n_workers", type=_positive_int,
                        default=None, help="partitions for the threads backend")


def cmd_price(args):
    inputs = MarketInputs(args.spot, args.strikes, args.rate, args.vol, args.time)
    config = PricingConfig(backend=args.backend, dtype=args.dtype,
                           errors=args.errors, chunk_size=args.chunk_size,
                           n_workers=args.n_workers)
    for px in price_inputs(inputs, config):
        print(f"{px:.10f}")


def cmd_bench(args):
    base = MarketInputs.reference(args.n)
    inputs = MarketInputs(args.spot, base.strikes, args.rate, args.vol, args.time)
    print(f"spot={inputs.spot} rate={inputs.rate} vol={inputs.volatility} "
          f"time={inputs.time} strikes={len(inputs)} "
          f"[{inputs.strikes[0]:.7f} .. {inputs.strikes[-1]:.7f}]")
    for name in args.backends:
        try:
            res = time_backend(inputs, name, repeat=args.repeat, dtype=args.dtype,
                               chunk_size=args.chunk_size,
                               n_workers=args.n_workers)
        except BackendUnavailable as exc:
            print(f"{name:<8s} unavailable ({exc})")
            continue
        print(res)


def cmd_backends(args):
    for name, ok in available_backends().items():
        extra = BACKENDS[name].extra
        hint = "" if ok or extra is None else f"  (pip install 'bsaccel[{extra}]')"
        print(f"{name:<8s} {'yes' if ok else 'no'}{hint}")


def main(argv=None):
    p = argparse.ArgumentParser(prog="bsaccel",
                                description="Batch Black-Scholes put pricing")
    p.add_argument("-v", "--verbose", action="count", default=0)
    sub = p.add_subparsers(dest="cmd", required=True)

    # Price a handful of strikes
    p_price = sub.add_parser("price", help="put price per strike")
    add_market(p_price)
    add_engine(p_price)
    p_price.add_argument("--backend", choices=sorted(BACKENDS), default="numpy")
    p_price.add_argument("--errors", choices=ERROR_POLICIES, default="raise")
    p_price.set_defaults(func=cmd_price)

    # Time backends on a strike ramp
    p_bench = sub.add_parser("bench", help="sum and wall-clock time per backend")
    add_market(p_bench, strikes=False)
    add_engine(p_bench)
    p_bench.add_argument("--n", type=_positive_int, default=10_000_000,
                         help="number of strikes in the 40..41 ramp")
    p_bench.add_argument("--backend", dest="backends", action="append",
                         choices=sorted(BACKENDS), default=None)
    p_bench.add_argument("--repeat", type=_positive_int, default=1)
    p_bench.set_defaults(func=cmd_bench)

    # Which backends can run here
    p_list = sub.add_parser("backends", help="list backends and availability")
    p_list.set_defaults(func=cmd_backends)

    args = p.parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose > 1 else logging.INFO,
            format="%(asctime)s %(levelname)s:%(message)s",
        )
    if getattr(args, "backends", None) is None and args.cmd == "bench":
        args.backends = ["numpy"]

    try:
        args.func(args)
    except (DomainError, BackendUnavailable) as exc:
        p.error(str(exc))
    return 0


if __name__ == "__main__":
    sys.exit(main())
