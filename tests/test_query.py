from pathlib import Path

import pytest

from mcpat_report.parser import parse_report
from mcpat_report.query import evaluate, is_solved, query_report, query_tree, resolve_path


REPO_ROOT = Path(__file__).resolve().parents[1]
SAMPLE = REPO_ROOT / "examples" / "mcpat_report.txt"


def test_resolve_dotted_paths() -> None:
    tree = parse_report(SAMPLE).tree
    assert resolve_path(tree, "Total Cores.Subthreshold Leakage") == pytest.approx(3.0)
    assert resolve_path(tree, "Core.Instruction Fetch Unit.Area") == pytest.approx(2.0)
    assert resolve_path(tree, "Peak Power") == pytest.approx(26.0)
    assert resolve_path(tree, "Total L2s.Device Type") == "ITRS high performance device type"


def test_unresolvable_paths_are_none() -> None:
    tree = parse_report(SAMPLE).tree
    assert resolve_path(tree, "Core.Area.Bogus") is None
    assert resolve_path(tree, "Core") is None
    assert resolve_path(tree, "Total GPUs.Area") is None


def test_plus_sums_numeric_terms() -> None:
    tree = parse_report(SAMPLE).tree
    assert evaluate(tree, [], "Total Cores.Area+Total L2s.Area") == pytest.approx(24.0)
    assert evaluate(tree, [], "Total Cores.Area + Total L2s.Device Type") is None
    assert evaluate(tree, [], "Total Cores.Area+Total GPUs.Area") is None


def test_solved_pseudo_path() -> None:
    assert is_solved([])
    assert is_solved(["Found an 'Area Overhead' key"])
    assert not is_solved(["Core Instruction Cache does not meet the timing Constraint"])

    tree = parse_report(SAMPLE).tree
    values = query_tree(tree, ["_SOLVED_"], warnings=["timing constraint not met"])
    assert values == {"_SOLVED_": False}


def test_query_report_on_sample() -> None:
    result = query_report(SAMPLE, ["_SOLVED_", "Core.Runtime Dynamic"])
    assert result.errors == []
    assert result.values["_SOLVED_"] is True
    assert result.values["Core.Runtime Dynamic"] == pytest.approx(3.0)


def test_query_report_on_missing_file(tmp_path: Path) -> None:
    result = query_report(tmp_path / "missing.txt", ["Core.Area", "_SOLVED_"])
    assert result.values == {"Core.Area": None, "_SOLVED_": None}
    assert len(result.errors) == 1
