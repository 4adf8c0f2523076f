from __future__ import annotations

import logging
from pathlib import Path
import re
from typing import Iterable

from .numeric import as_number
from .parser import parse_report
from .report import QueryResult
from .tree import ReportNode, Scalar

logger = logging.getLogger(__name__)

SOLVED_KEY = "_SOLVED_"
CONSTRAINT_RE = re.compile(r"constraint", re.IGNORECASE)


def is_solved(warnings: Iterable[str]) -> bool:
    """True unless McPAT reported a design constraint it could not meet."""
    return not any(CONSTRAINT_RE.search(warning) for warning in warnings)


def resolve_path(tree: ReportNode, path: str) -> float | str | None:
    """Look up ``"Total Cores.Subthreshold Leakage"`` style paths.

    Every segment but the last must name a sub-tree and the last a scalar;
    anything else resolves to ``None``.
    """
    node = tree
    segments = path.split(".")
    for i, segment in enumerate(segments):
        entry = node.get(segment.strip())
        last = i == len(segments) - 1
        if isinstance(entry, ReportNode) and not last:
            node = entry
            continue
        if isinstance(entry, Scalar) and last:
            return entry.value
        logger.debug("path %r stops resolving at %r", path, segment)
        return None
    return None


def evaluate(tree: ReportNode, warnings: Iterable[str], expression: str) -> float | str | bool | None:
    """Evaluate one query expression.

    ``_SOLVED_`` yields a boolean; ``a+b`` sums the numeric values of both
    paths and is ``None`` if any term is missing or not a number.
    """
    expression = expression.strip()
    if expression == SOLVED_KEY:
        return is_solved(warnings)

    terms = expression.split("+")
    if len(terms) == 1:
        return resolve_path(tree, expression)

    total = 0.0
    for term in terms:
        number = as_number(resolve_path(tree, term))
        if number is None:
            return None
        total += number
    return total


def query_tree(
    tree: ReportNode,
    expressions: Iterable[str],
    warnings: Iterable[str] = (),
) -> dict[str, float | str | bool | None]:
    warnings = list(warnings)
    return {expression: evaluate(tree, warnings, expression) for expression in expressions}


def query_report(path: str | Path, expressions: Iterable[str]) -> QueryResult:
    parsed = parse_report(path)
    expressions = list(expressions)
    if parsed.tree is None:
        return QueryResult(
            values={expression: None for expression in expressions},
            errors=parsed.errors,
            warnings=parsed.warnings,
        )
    return QueryResult(
        values=query_tree(parsed.tree, expressions, parsed.warnings),
        errors=parsed.errors,
        warnings=parsed.warnings,
    )
