from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from .checker import check_tree
from .compare import compare_trees
from .config import load_config
from .parser import parse_report
from .query import query_report


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcpat-report",
        description="Parse, sanity-check and compare McPAT text reports.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log debugging info to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p_parse = sub.add_parser("parse", help="Parse a report and print its tree as JSON")
    p_parse.add_argument("report")

    p_check = sub.add_parser("check", help="Parse a report and check that its values add up")
    p_check.add_argument("report")
    p_check.add_argument("--config", default=None, help="Checker config YAML")

    p_compare = sub.add_parser("compare", help="Compare two reports")
    p_compare.add_argument("lhs")
    p_compare.add_argument("rhs")
    p_compare.add_argument("--config", default=None, help="Checker config YAML")

    p_query = sub.add_parser("query", help="Extract values by dotted path (a.b+c.d sums, _SOLVED_)")
    p_query.add_argument("report")
    p_query.add_argument("expressions", nargs="+")
    return parser


def _emit(payload: dict[str, Any]) -> None:
    sys.stdout.write(json.dumps(payload, indent=2) + "\n")


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format="%(name)s: %(message)s")

    try:
        config = load_config(getattr(args, "config", None))
    except (FileNotFoundError, ValueError) as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    if args.command == "parse":
        parsed = parse_report(args.report)
        _emit(parsed.to_payload())
        return 0 if parsed.ok else 1

    if args.command == "check":
        parsed = parse_report(args.report)
        errors = list(parsed.errors)
        warnings = list(parsed.warnings)
        if parsed.tree is not None:
            checked = check_tree(parsed.tree, config)
            errors.extend(checked.errors)
            warnings.extend(checked.warnings)
        _emit({"errors": errors, "warnings": warnings})
        return 0 if parsed.tree is not None and not errors else 1

    if args.command == "compare":
        lhs = parse_report(args.lhs)
        rhs = parse_report(args.rhs)
        errors = [f"LHS: {err}" for err in lhs.errors] + [f"RHS: {err}" for err in rhs.errors]
        result = compare_trees(lhs.tree, rhs.tree, config)
        errors.extend(result.errors)
        _emit({"equal": result.equal, "errors": errors})
        return 0 if result.equal else 1

    queried = query_report(args.report, args.expressions)
    _emit(queried.model_dump(mode="json"))
    return 1 if any(value is None for value in queried.values.values()) else 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
