"""Command that loads graph colouring instances and reports their parameters."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from metaopt.gcp.model import Model

DEFAULT_INSTANCES = (
    "queen6_6",
    "queen7_7",
    "queen8_8",
    "myciel5",
    "myciel6",
    "zeroin.i.1",
)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Load graph colouring instances and print their parameters."
    )
    parser.add_argument(
        "instances",
        nargs="*",
        default=list(DEFAULT_INSTANCES),
        help="instance names, read from <directory>/<name>.col",
    )
    parser.add_argument(
        "--directory",
        default="./instances",
        help="directory holding the instance files",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    directory = Path(args.directory)
    for name in args.instances:
        path = directory / f"{name}.col"
        sys.stdout.write(f"\nFILE PATH: {path}")
        model = Model()
        try:
            model.load_file(path)
        except OSError as error:
            print(f"Error opening file: {error}", file=sys.stderr)
            return 1
        except ValueError as error:
            print(f"Error reading {path}: {error}", file=sys.stderr)
            return 1
        sys.stdout.write("\n\n========[ Instance ]========\n\n")
        sys.stdout.write(model.describe())
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())