"""Command that anneals a travelling thief instance and reports the result."""

from __future__ import annotations

import argparse
import sys
import time
from collections.abc import Sequence

from metaopt.ttp.instance import format_route
from metaopt.ttp.model import MAXIMUM_SA_ITERATIONS, Model

DEFAULT_INSTANCE = "./berlin52/berlin52_n51_uncorr_05.ttp"
SEPARATOR = "==========================="


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Solve a travelling thief instance with simulated annealing."
    )
    parser.add_argument(
        "instance", nargs="?", default=DEFAULT_INSTANCE, help="instance file"
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=MAXIMUM_SA_ITERATIONS,
        help="number of annealing iterations",
    )
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    model = Model(seed=args.seed)
    try:
        model.load_file(args.instance)
    except OSError as error:
        print(f"Error opening file: {error}", file=sys.stderr)
        return 1
    except ValueError as error:
        print(f"Error reading {args.instance}: {error}", file=sys.stderr)
        return 1

    sys.stdout.write(f"\n{SEPARATOR}\n\n{model.describe()}\n")
    try:
        model.create_weight_matrix()
    except ValueError as error:
        print(f"Error reading {args.instance}: {error}", file=sys.stderr)
        return 1

    begin = time.perf_counter()
    best = model.simulated_annealing(args.iterations)
    elapsed = time.perf_counter() - begin

    sys.stdout.write(
        "\n========[ RESULTS ]========\n\n"
        f"|-> Best route: {format_route(best.route)}\n"
        f"|-> Best solution fitness: {best.fitness:g}\n"
        f"|-> Knapsack value: {best.knapsack_value}\n"
        f"|-> Traveling time: {best.knapsack_value - best.fitness:g}\n"
        f"|-> Time elapsed: {elapsed:g}s\n"
        f"\n{SEPARATOR}\n\n"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())