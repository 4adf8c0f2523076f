from pathlib import Path

from mcpat_report.checker import (
    check_component,
    check_processor_totals,
    check_top_level,
    check_tree,
)
from mcpat_report.config import CheckerConfig
from mcpat_report.parser import parse_report, parse_text
from mcpat_report.tree import ReportNode


REPO_ROOT = Path(__file__).resolve().parents[1]
SAMPLE = REPO_ROOT / "examples" / "mcpat_report.txt"

AREA_ONLY = CheckerConfig.model_validate(
    {
        "metrics": ["Area"],
        "top_level_pairs": [{"aggregate": "Total Cores", "instance": "Core"}],
        "base_components": ["Core"],
    }
)


def _sample_with(old: str, new: str) -> ReportNode:
    text = SAMPLE.read_text(encoding="utf-8")
    assert old in text
    parsed = parse_text(text.replace(old, new, 1))
    assert parsed.tree is not None
    return parsed.tree


def test_sample_report_is_consistent() -> None:
    parsed = parse_report(SAMPLE)
    result = check_tree(parsed.tree)
    assert result.errors == []
    assert result.warnings == []
    assert result.ok


def test_missing_tree_is_an_error() -> None:
    result = check_tree(None)
    assert len(result.errors) == 1


def test_duplication_check_cross_applies_counts() -> None:
    tree = ReportNode.from_mapping(
        {
            "_DEPTH_": 0,
            "Total Cores": {"_DEPTH_": 1, "_COUNT_": 2, "Area": 4.0},
            "Core": {"_DEPTH_": 1, "_COUNT_": 1, "Area": 2.0},
        }
    )
    assert check_top_level(tree, AREA_ONLY) == []


def test_duplication_check_reports_single_mismatch() -> None:
    tree = ReportNode.from_mapping(
        {
            "_DEPTH_": 0,
            "Total Cores": {"_DEPTH_": 1, "_COUNT_": 2, "Area": 5.0},
            "Core": {"_DEPTH_": 1, "_COUNT_": 1, "Area": 2.0},
        }
    )
    errors = check_top_level(tree, AREA_ONLY)
    assert len(errors) == 1
    assert "[Area]" in errors[0]
    assert "5" in errors[0] and "2" in errors[0]


def test_duplication_check_missing_node_and_metric() -> None:
    tree = ReportNode.from_mapping(
        {
            "_DEPTH_": 0,
            "Total Cores": {"_DEPTH_": 1, "_COUNT_": 1, "Area": 2.0},
            "Core": {"_DEPTH_": 1, "_COUNT_": 1, "Area": 2.0, "Peak Dynamic": 1.0},
        }
    )
    errors = check_top_level(tree, CheckerConfig())
    assert "Could not find data for [Total L2s]" in errors
    assert "Could not find data for [L2]" in errors
    assert "Could not find [Total Cores]>[Peak Dynamic]" in errors
    # Area still compared and matching, so nothing about it
    assert not any("[Area]" in err for err in errors)


def test_sample_mismatch_between_total_and_instance() -> None:
    tree = _sample_with("    Runtime Dynamic = 6 W", "    Runtime Dynamic = 7 W")
    errors = check_top_level(tree, CheckerConfig())
    assert errors == ["[Total Cores]>[Runtime Dynamic] and [Core]>[Runtime Dynamic] do not match: 1x 7 vs. 2x 3"]


def test_processor_totals_derive_leakage_and_peak_power() -> None:
    tree = parse_report(SAMPLE).tree
    assert check_processor_totals(tree, CheckerConfig()) == []

    tree = _sample_with("  Peak Power = 26 W", "  Peak Power = 25 W")
    errors = check_processor_totals(tree, CheckerConfig())
    assert errors == ["Top-level [Peak Power] does not add up to its components: is 25 but expected 26"]


def test_processor_totals_treat_absent_metrics_as_zero() -> None:
    tree = ReportNode.from_mapping(
        {
            "_DEPTH_": 0,
            "Area": 3.0,
            "Peak Power": 0.0,
            "Total Leakage": 0.0,
            "Peak Dynamic": 0.0,
            "Subthreshold Leakage": 0.0,
            "Gate Leakage": 0.0,
            "Runtime Dynamic": 0.0,
            "Total Cores": {"_DEPTH_": 1, "_COUNT_": 1, "Area": 3.0},
        }
    )
    assert check_processor_totals(tree, CheckerConfig()) == []


def test_processor_totals_missing_root_metric() -> None:
    tree = ReportNode.from_mapping({"_DEPTH_": 0, "Total Cores": {"_DEPTH_": 1, "Area": 3.0}})
    errors = check_processor_totals(tree, AREA_ONLY)
    assert errors == ["Could not find top-level [Area]"]


def test_recursive_check_children_add_up() -> None:
    tree = ReportNode.from_mapping(
        {
            "_DEPTH_": 0,
            "Core": {
                "_DEPTH_": 1,
                "_COUNT_": 1,
                "Area": 10.0,
                "A": {"_DEPTH_": 2, "_COUNT_": 1, "Area": 5.0},
                "B": {"_DEPTH_": 2, "_COUNT_": 1, "Area": 5.0},
            },
        }
    )
    assert check_component(tree, "Core", AREA_ONLY).errors == []


def test_recursive_check_reports_path_of_mismatch() -> None:
    tree = ReportNode.from_mapping(
        {
            "_DEPTH_": 0,
            "Core": {
                "_DEPTH_": 1,
                "_COUNT_": 1,
                "Area": 10.0,
                "A": {"_DEPTH_": 2, "_COUNT_": 1, "Area": 5.0},
                "B": {"_DEPTH_": 2, "_COUNT_": 1, "Area": 4.0},
            },
        }
    )
    errors = check_component(tree, "Core", AREA_ONLY).errors
    assert errors == ["[Core]>[Area] does not add up: expected 10, but calculated 9"]


def test_recursive_check_applies_counts_and_skips_local_predictor() -> None:
    tree = ReportNode.from_mapping(
        {
            "_DEPTH_": 0,
            "Core": {
                "_DEPTH_": 1,
                "_COUNT_": 1,
                "Area": 10.0,
                "ALUs": {"_DEPTH_": 2, "_COUNT_": 4, "Area": 2.0},
                "Regs": {
                    "_DEPTH_": 2,
                    "_COUNT_": 1,
                    "Area": 2.0,
                    "Bank": {"_DEPTH_": 3, "_COUNT_": 2, "Area": 1.0},
                    "Local Predictor": {"_DEPTH_": 3, "_COUNT_": 1, "Area": 99.0},
                },
            },
        }
    )
    assert check_component(tree, "Core", AREA_ONLY).errors == []


def test_recursive_check_nested_path_and_missing_metric() -> None:
    tree = _sample_with("            Area = 1 mm^2\n", "            Area = 1.5 mm^2\n")
    result = check_component(tree, "Core", CheckerConfig())
    assert result.errors == [
        "[Core]>[Execution Unit]>[Area] does not add up: expected 6, but calculated 6.5",
    ]

    tree = _sample_with("      Gate Leakage = 0.3 W\n", "")
    result = check_component(tree, "Core", CheckerConfig())
    assert result.errors == ["[Core]>[Gate Leakage] does not exist"]


def test_childless_component_without_metrics_is_fine() -> None:
    tree = ReportNode.from_mapping(
        {
            "_DEPTH_": 0,
            "Core": {
                "_DEPTH_": 1,
                "_COUNT_": 1,
                "Area": 1.0,
                "Empty": {"_DEPTH_": 2, "_COUNT_": 1},
                "Full": {"_DEPTH_": 2, "_COUNT_": 1, "Area": 1.0},
            },
        }
    )
    assert check_component(tree, "Core", AREA_ONLY).errors == []


def test_absent_base_component_is_a_warning() -> None:
    tree = ReportNode.from_mapping({"_DEPTH_": 0})
    result = check_component(tree, "NOC", CheckerConfig())
    assert result.errors == []
    assert len(result.warnings) == 1


def test_tolerance_absorbs_rounding_drift() -> None:
    tree = ReportNode.from_mapping(
        {
            "_DEPTH_": 0,
            "Core": {
                "_DEPTH_": 1,
                "_COUNT_": 1,
                "Area": 1.000004,
                "A": {"_DEPTH_": 2, "_COUNT_": 1, "Area": 1.0},
            },
        }
    )
    assert check_component(tree, "Core", AREA_ONLY).errors == []

    strict = AREA_ONLY.model_copy(update={"tolerance": 1e-7})
    assert len(check_component(tree, "Core", strict).errors) == 1
