from __future__ import annotations

import logging

from .config import CheckerConfig
from .numeric import fcmp, looks_like_number
from .report import CompareResult
from .tree import COUNT_KEY, DEPTH_KEY, ReportNode, Scalar

logger = logging.getLogger(__name__)


def _entries(node: ReportNode) -> dict[str, Scalar | ReportNode]:
    # Node metadata takes part in the comparison like any other scalar.
    entries: dict[str, Scalar | ReportNode] = {DEPTH_KEY: Scalar(value=node.depth)}
    if node.count is not None:
        entries[COUNT_KEY] = Scalar(value=node.count)
    entries.update(node.entries)
    return entries


def _compare_scalars(key: str, lhs: Scalar, rhs: Scalar, tol: float) -> str | None:
    lhs_numeric = looks_like_number(lhs.value)
    rhs_numeric = looks_like_number(rhs.value)
    if lhs_numeric != rhs_numeric:
        return f"[{key}] has both a string and a numeric value"
    if lhs_numeric:
        if not fcmp(float(lhs.value), float(rhs.value), tol):
            logger.debug("numeric mismatch at %s: %r vs %r", key, lhs.value, rhs.value)
            return f"[{key}] mismatch"
        return None
    if lhs.value != rhs.value:
        logger.debug("string mismatch at %s: %r vs %r", key, lhs.value, rhs.value)
        return f"[{key}] mismatch"
    return None


def _compare_nodes(lhs: ReportNode, rhs: ReportNode, tol: float) -> list[str]:
    errors: list[str] = []
    lhs_entries = _entries(lhs)
    rhs_entries = _entries(rhs)

    for key in rhs_entries:
        if key not in lhs_entries:
            errors.append(f"[{key}] is missing on LHS")

    for key, left in lhs_entries.items():
        if key not in rhs_entries:
            errors.append(f"[{key}] is missing on RHS")
            continue
        right = rhs_entries[key]

        if isinstance(left, ReportNode):
            if isinstance(right, ReportNode):
                errors.extend(f"[{key}]>{err}" for err in _compare_nodes(left, right, tol))
            else:
                errors.append(f"[{key}] has child on LHS but not RHS")
            continue
        if isinstance(right, ReportNode):
            errors.append(f"[{key}] has child on RHS but not LHS")
            continue

        error = _compare_scalars(key, left, right, tol)
        if error is not None:
            errors.append(error)
    return errors


def compare_trees(
    lhs: ReportNode | None,
    rhs: ReportNode | None,
    config: CheckerConfig | None = None,
) -> CompareResult:
    """Compare two parsed reports key by key.

    Every discrepancy is collected, tagged with its full key path
    (``[Core]>[Instruction Fetch Unit]>[Area] mismatch``); numbers are
    compared with the configured relative tolerance.
    """
    config = config or CheckerConfig()
    if lhs is None or rhs is None:
        errors = []
        if lhs is None:
            errors.append("LHS tree is undefined")
        if rhs is None:
            errors.append("RHS tree is undefined")
        return CompareResult(equal=False, errors=errors)

    errors = _compare_nodes(lhs, rhs, config.tolerance)
    return CompareResult(equal=not errors, errors=errors)
