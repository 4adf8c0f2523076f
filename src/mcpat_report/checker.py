from __future__ import annotations

import logging

from .config import CheckerConfig, TopLevelPair
from .numeric import fcmp
from .report import CheckResult
from .tree import ReportNode, Scalar

logger = logging.getLogger(__name__)

AREA = "Area"
PEAK_POWER = "Peak Power"
TOTAL_LEAKAGE = "Total Leakage"
PEAK_DYNAMIC = "Peak Dynamic"
SUBTHRESHOLD_LEAKAGE = "Subthreshold Leakage"
GATE_LEAKAGE = "Gate Leakage"
RUNTIME_DYNAMIC = "Runtime Dynamic"

PROCESSOR_TOTALS = (
    AREA,
    PEAK_POWER,
    TOTAL_LEAKAGE,
    PEAK_DYNAMIC,
    SUBTHRESHOLD_LEAKAGE,
    GATE_LEAKAGE,
    RUNTIME_DYNAMIC,
)


def _fmt(value: float) -> str:
    return f"{value:g}"


def _scalar_number(node: ReportNode, name: str, errors: list[str], label: str) -> float | None:
    """Numeric value of ``node[name]``; records an error when it is not numeric."""
    entry = node.get(name)
    if not isinstance(entry, Scalar):
        return None
    number = entry.number
    if number is None:
        errors.append(f"{label}>[{name}] is not numeric: '{entry.value}'")
    return number


def check_top_level_pair(tree: ReportNode, pair: TopLevelPair, config: CheckerConfig) -> list[str]:
    """Compare an aggregate (``Total Cores``) against its instance (``Core``)."""
    errors: list[str] = []
    a_name, b_name = pair.aggregate, pair.instance
    a = tree.node(a_name)
    b = tree.node(b_name)
    if a is None:
        errors.append(f"Could not find data for [{a_name}]")
    if b is None:
        errors.append(f"Could not find data for [{b_name}]")
    if a is None or b is None:
        return errors

    for metric in config.metrics:
        missing = False
        for name, node in ((a_name, a), (b_name, b)):
            if not isinstance(node.get(metric), Scalar):
                errors.append(f"Could not find [{name}]>[{metric}]")
                missing = True
        if missing:
            continue
        a_val = _scalar_number(a, metric, errors, f"[{a_name}]")
        b_val = _scalar_number(b, metric, errors, f"[{b_name}]")
        if a_val is None or b_val is None:
            continue
        # Counts are crossed: "Total Cores: 4 cores" covers four "Core" instances.
        if not fcmp(a_val * b.multiplier, b_val * a.multiplier, config.tolerance):
            errors.append(
                f"[{a_name}]>[{metric}] and [{b_name}]>[{metric}] do not match: "
                f"{b.multiplier}x {_fmt(a_val)} vs. {a.multiplier}x {_fmt(b_val)}"
            )
    return errors


def check_top_level(tree: ReportNode, config: CheckerConfig) -> list[str]:
    errors: list[str] = []
    for pair in config.top_level_pairs:
        errors.extend(check_top_level_pair(tree, pair, config))
    return errors


def check_processor_totals(tree: ReportNode, config: CheckerConfig) -> list[str]:
    """Check the processor-wide totals against the sum of the top-level aggregates.

    Absent aggregates or metrics count as zero here; their absence is
    reported by the top-level pass.
    """
    errors: list[str] = []
    sums = {metric: 0.0 for metric in config.metrics}
    for name in config.processor_aggregates:
        aggregate = tree.node(name)
        if aggregate is None:
            continue
        for metric in config.metrics:
            value = aggregate.metric(metric)
            if value is not None:
                sums[metric] += value

    expected = dict(sums)
    if SUBTHRESHOLD_LEAKAGE in sums and GATE_LEAKAGE in sums:
        expected[TOTAL_LEAKAGE] = sums[SUBTHRESHOLD_LEAKAGE] + sums[GATE_LEAKAGE]
        if PEAK_DYNAMIC in sums:
            expected[PEAK_POWER] = sums[PEAK_DYNAMIC] + expected[TOTAL_LEAKAGE]

    for item in PROCESSOR_TOTALS:
        if item not in expected:
            continue
        if item not in tree or isinstance(tree[item], ReportNode):
            errors.append(f"Could not find top-level [{item}]")
            continue
        actual = tree.metric(item)
        if actual is None:
            errors.append(f"Top-level [{item}] is not numeric: '{tree[item].value}'")
            continue
        if not fcmp(actual, expected[item], config.tolerance):
            errors.append(
                f"Top-level [{item}] does not add up to its components: "
                f"is {_fmt(actual)} but expected {_fmt(expected[item])}"
            )
    return errors


def _check_component(node: ReportNode, config: CheckerConfig) -> tuple[list[str], dict[str, float]]:
    """Recursively check that a component's sub-components add up.

    Returns the errors found below ``node`` (paths relative to it) and the
    node's own metrics multiplied by its count, missing metrics as 0.
    """
    errors: list[str] = []
    local: dict[str, float] = {}
    for metric in config.metrics:
        value = _scalar_number(node, metric, errors, "")
        if value is not None:
            local[metric] = value * node.multiplier

    summed = {metric: 0.0 for metric in config.metrics}
    children = 0
    for name, child in node.children():
        if name in config.irregular_keys:
            continue
        children += 1
        child_errors, child_totals = _check_component(child, config)
        errors.extend(f">[{name}]{err}" for err in child_errors)
        for metric, value in child_totals.items():
            summed[metric] += value

    if children:
        for metric in config.metrics:
            if metric not in local:
                # non-numeric values were already reported above
                if not isinstance(node.get(metric), Scalar):
                    errors.append(f">[{metric}] does not exist")
                continue
            if not fcmp(local[metric], summed[metric], config.tolerance):
                errors.append(
                    f">[{metric}] does not add up: expected {_fmt(local[metric])}, "
                    f"but calculated {_fmt(summed[metric])}"
                )

    return errors, {metric: local.get(metric, 0.0) for metric in config.metrics}


def check_component(tree: ReportNode, name: str, config: CheckerConfig) -> CheckResult:
    component = tree.node(name)
    if component is None:
        return CheckResult(warnings=[f"Skipping structural check of [{name}]: not present in report"])
    errors, _totals = _check_component(component, config)
    return CheckResult(errors=[f"[{name}]{err}" for err in errors])


def check_tree(tree: ReportNode | None, config: CheckerConfig | None = None) -> CheckResult:
    """Run every consistency check over a parsed report.

    The three passes are independent: top-level aggregate/instance
    agreement, processor totals, and per-component child sums. An empty
    ``errors`` list means the report is consistent.
    """
    config = config or CheckerConfig()
    if tree is None:
        return CheckResult(errors=["No report tree to check"])

    result = CheckResult(errors=check_top_level(tree, config))
    result = result.plus(CheckResult(errors=check_processor_totals(tree, config)))
    for name in config.base_components:
        result = result.plus(check_component(tree, name, config))
    logger.debug("consistency check: %d errors, %d warnings", len(result.errors), len(result.warnings))
    return result
