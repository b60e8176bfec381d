"""Command-line entry point: solve a circuit snapshot file."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

import yaml

from dcsolve.circuits.io import load_snapshot
from dcsolve.config import SolverOptions, load_options
from dcsolve.errors import CircuitValidationError
from dcsolve.evaluators.dc import solve_snapshot
from dcsolve.evaluators.types import summarize_warnings


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SOLVE_ERROR = 1
EXIT_BAD_INPUT = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Solve the DC operating point of a circuit snapshot.")
    parser.add_argument("circuit", help="Circuit snapshot (.json, .yaml or .yml).")
    parser.add_argument(
        "--options",
        dest="options_path",
        default=None,
        help="YAML file with solver options (top-level or under 'solver').",
    )
    parser.add_argument(
        "--output",
        dest="output_path",
        default=None,
        help="Write the result JSON here instead of stdout.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    try:
        options = load_options(Path(args.options_path)) if args.options_path else SolverOptions()
        snapshot = load_snapshot(Path(args.circuit))
    except (OSError, ValueError, yaml.YAMLError) as exc:
        kind = "invalid circuit" if isinstance(exc, CircuitValidationError) else "cannot read input"
        logger.error("%s: %s", kind, exc)
        return EXIT_BAD_INPUT

    result = solve_snapshot(snapshot, options)
    if result.warnings:
        logger.warning("%s", summarize_warnings(result.warnings))
    if not result.ok:
        logger.error("%s", result.error_message)

    text = json.dumps(result.to_json_dict(), indent=2, sort_keys=True)
    if args.output_path:
        output = Path(args.output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text + "\n", encoding="utf-8")
    else:
        print(text)
    return EXIT_OK if result.ok else EXIT_SOLVE_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
