from .checker import check_tree
from .compare import compare_trees
from .config import CheckerConfig
from .numeric import fcmp
from .parser import parse_lines, parse_report, parse_text
from .query import is_solved, resolve_path
from .tree import ReportNode, Scalar

__all__ = [
    "CheckerConfig",
    "ReportNode",
    "Scalar",
    "check_tree",
    "compare_trees",
    "fcmp",
    "is_solved",
    "parse_lines",
    "parse_report",
    "parse_text",
    "resolve_path",
]
