"""Command-line entry point: list engines, run one, or run the fixture harness."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from .api import run_algorithm
from .errors import MalformedInstanceError
from .harness import run_harness
from .registry import list_algorithms
from .snapshot import to_plain

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_MALFORMED = 2


def _load_payload(args: argparse.Namespace) -> dict[str, Any]:
    if args.json is not None:
        text = args.json
    elif args.input is not None:
        with open(args.input) as f:
            text = f.read()
    else:
        text = sys.stdin.read()
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedInstanceError(f"input is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise MalformedInstanceError("input must be a JSON object")
    return payload


def _step_line(step: Any) -> str:
    fields = to_plain(step)
    index = fields.pop("step_index")
    return f"{index:>4}  " + "  ".join(f"{k}={v}" for k, v in fields.items())


def _cmd_list(args: argparse.Namespace) -> int:
    for family, names in list_algorithms().items():
        print(f"{family}: {', '.join(names)}")
    return 0


def _cmd_run(args: argparse.Namespace) -> int:
    try:
        result = run_algorithm(args.family, args.name, _load_payload(args))
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_MALFORMED
    if args.steps:
        for step in result.steps:
            print(_step_line(step) if not isinstance(step, str) else step)
        return 0
    print(json.dumps(result.to_dict(), indent=2, default=str))
    return 0


def _cmd_harness(args: argparse.Namespace) -> int:
    report = run_harness()
    for failure in report.failures:
        print(
            f"FAIL {failure.name}: {failure.field} expected "
            f"{failure.expected!r}, got {failure.actual!r}"
        )
    print(f"{report.passed} passed, {report.failed} failed")
    return 0 if report.ok else EXIT_FAILURE


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="steptrace", description="Step-trace algorithm engine"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="Print the algorithm catalogue").set_defaults(
        handler=_cmd_list
    )

    run = commands.add_parser("run", help="Run one engine on a JSON instance")
    run.add_argument("family", help="Algorithm family, e.g. automata")
    run.add_argument("name", help="Engine name, e.g. dfa")
    source = run.add_mutually_exclusive_group()
    source.add_argument("--input", "-i", help="Read the instance from a JSON file")
    source.add_argument("--json", "-j", help="Instance as an inline JSON string")
    run.add_argument(
        "--steps", action="store_true", help="Print one line per step instead of JSON"
    )
    run.add_argument(
        "--verbose", "-v", action="store_true", help="Enable DEBUG logging"
    )
    run.set_defaults(handler=_cmd_run)

    harness = commands.add_parser("harness", help="Run the literal fixture harness")
    harness.add_argument(
        "--verbose", "-v", action="store_true", help="Enable DEBUG logging"
    )
    harness.set_defaults(handler=_cmd_harness)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
