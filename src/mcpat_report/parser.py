from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from pathlib import Path
import re
from typing import Iterable

from .report import ParseResult
from .tree import ReportNode, Scalar

logger = logging.getLogger(__name__)


class Section(str, Enum):
    processor = "Processor"
    core = "Core"
    l2 = "L2"
    memory_controller = "Memory Controller"
    noc = "NOC"
    l3 = "L3"
    first_level_directory = "First Level Directory"
    niu = "NIU"
    pcie = "PCIe"
    buses = "BUSES"


SECTION_PATTERNS: tuple[tuple[Section, re.Pattern[str]], ...] = (
    (Section.processor, re.compile(r"^Processor:")),
    (Section.core, re.compile(r"^Core")),
    (Section.l2, re.compile(r"^L2")),
    (Section.memory_controller, re.compile(r"^Memory Controller")),
    (Section.noc, re.compile(r"^NOC")),
    # L3's header is sometimes printed with six leading spaces.
    (Section.l3, re.compile(r"^(?: {6}|)L3")),
    (Section.first_level_directory, re.compile(r"^First Level Directory")),
    (Section.niu, re.compile(r"^NIU")),
    (Section.pcie, re.compile(r"^PCIe")),
    (Section.buses, re.compile(r"^BUSES")),
)

SEPARATOR_RE = re.compile(r"^\*+$")
LEADING_WS_RE = re.compile(r"^(\s*)")
# "Total Cores: 4 cores" -- the processor summary prints the instance count after the colon.
PROCESSOR_HEADING_RE = re.compile(r"\s*([\w ()/]+)\s*:\s*(\d+)?")
HEADING_RE = re.compile(r"^\s*([\w ()/]+)(?:\s+\(Count: (\d+)\s*\))?:\s*$")
KEY_VALUE_RE = re.compile(r"\s*([\w ]+?)\s*=\s*(?:([a-zA-Z ]+)|(?:([-0-9.e]+)\s*(W|mm\^2)))$")
DEVICE_TYPE_RE = re.compile(r"^\s*Device Type")
CONSTRAINT_PREFIX_RE = re.compile(r"Warning:\s+")

AREA_OVERHEAD_KEY = "Area Overhead"


class LineKind(str, Enum):
    section = "section"
    heading = "heading"
    key_value = "key_value"
    text = "text"


@dataclass(frozen=True)
class Line:
    kind: LineKind
    text: str
    depth: int = 0
    name: str | None = None
    count: int | None = None
    value: float | str | None = None
    unit: str | None = None
    section: Section | None = None


def line_depth(line: str) -> int:
    """Nesting level of a report line: leading whitespace / 2.

    McPAT prints ``Device Type`` one level too shallow, so those lines are
    pushed one level down to land under the heading they describe.
    """
    depth = len(LEADING_WS_RE.match(line).group(1)) // 2
    if DEVICE_TYPE_RE.match(line):
        depth += 1
    return depth


def match_section(line: str, current: Section | None) -> Section | None:
    for section, pattern in SECTION_PATTERNS:
        if section is not current and pattern.match(line):
            return section
    return None


def _parse_value(raw: str) -> float | str:
    try:
        return float(raw)
    except ValueError:
        return raw


def classify_line(line: str, *, current: Section | None = None) -> Line:
    """Classify one non-blank, non-separator report line."""
    section = match_section(line, current)
    if section is not None:
        return Line(kind=LineKind.section, text=line, section=section)

    depth = line_depth(line)
    if current is Section.processor:
        m = PROCESSOR_HEADING_RE.search(line)
    else:
        m = HEADING_RE.match(line)
    if m:
        count = None if m.group(2) is None else int(m.group(2))
        return Line(kind=LineKind.heading, text=line, depth=depth, name=m.group(1).strip(), count=count)

    m = KEY_VALUE_RE.search(line)
    if m:
        if m.group(2) is not None:
            value: float | str = m.group(2)
            unit = None
        else:
            value = _parse_value(m.group(3))
            unit = m.group(4)
        return Line(kind=LineKind.key_value, text=line, depth=depth, name=m.group(1), value=value, unit=unit)

    return Line(kind=LineKind.text, text=line, depth=depth)


class _DraftNode:
    def __init__(self, depth: int, count: int | None) -> None:
        self.depth = depth
        self.count = count
        # values are Scalars or arena indices of child nodes
        self.entries: dict[str, Scalar | int] = {}


class ReportBuilder:
    """Single forward pass over a McPAT report, one line at a time."""

    def __init__(self) -> None:
        self._arena: list[_DraftNode] = [_DraftNode(depth=0, count=None)]
        self._stack: list[int] = [0]
        self._section: Section | None = None
        self._level = 0
        self.errors: list[str] = []
        self.warnings: list[str] = []

    @property
    def section(self) -> Section | None:
        return self._section

    def feed(self, raw: str) -> None:
        line = raw.rstrip()
        if not line or SEPARATOR_RE.match(line):
            return

        classified = classify_line(line, current=self._section)
        if classified.kind == LineKind.section:
            assert classified.section is not None
            self._enter_section(classified.section)
            return

        if self._section is None:
            self._scan_outside_section(line)
            return

        if classified.kind == LineKind.heading:
            self._level = self._push_heading(classified)
        elif classified.kind == LineKind.key_value:
            self._assign(classified)
            self._level = classified.depth
        else:
            # Unmatched lines leave the nesting level alone.
            self.warnings.append(f"Unmatched line: '{line}'")
            logger.debug("unmatched line in %s: %r", self._section.value, line)

    def _enter_section(self, section: Section) -> None:
        logger.debug("entering section %s", section.value)
        self._section = section
        if section is Section.processor:
            self._level = 0
            self._stack = [0]
            return
        # Printed at column 0, but logically nested under the processor.
        self._level = 1
        index = self._new_node(depth=1, count=1)
        self._arena[0].entries[section.value] = index
        self._stack = [0, index]

    def _scan_outside_section(self, line: str) -> None:
        lowered = line.lower()
        if "error" in lowered:
            self.errors.append(line)
        if "constraint" in lowered:
            self.warnings.append(CONSTRAINT_PREFIX_RE.sub("", line, count=1))

    def _push_heading(self, line: Line) -> int:
        """Attach a heading node under the right parent; returns its depth."""
        assert line.name is not None
        if line.depth <= self._level:
            while len(self._stack) > 1 and self._arena[self._stack[-1]].depth >= line.depth:
                self._stack.pop()
        parent = self._arena[self._stack[-1]]
        depth = line.depth
        if depth <= parent.depth:
            # Children always sit strictly below their parent.
            depth = parent.depth + 1
            self.warnings.append(f"Heading '{line.text}' is not nested below its parent; placed at depth {depth}")
        if line.name in parent.entries:
            logger.debug("heading %r replaces an existing entry", line.name)
        index = self._new_node(depth=depth, count=1 if line.count is None else line.count)
        parent.entries[line.name] = index
        self._stack.append(index)
        return depth

    def _assign(self, line: Line) -> None:
        assert line.name is not None and line.value is not None
        key = line.name
        if key == AREA_OVERHEAD_KEY:
            self.warnings.append("Found an 'Area Overhead' key")
            key = "Area"
        if line.depth < self._level:
            self.errors.append(f"Key-value pair '{line.text}' under no heading")
            return
        self._arena[self._stack[-1]].entries[key] = Scalar(value=line.value, unit=line.unit)

    def _new_node(self, *, depth: int, count: int | None) -> int:
        self._arena.append(_DraftNode(depth=depth, count=count))
        return len(self._arena) - 1

    def _materialize(self, index: int) -> ReportNode:
        draft = self._arena[index]
        entries: dict[str, Scalar | ReportNode] = {}
        for name, entry in draft.entries.items():
            entries[name] = self._materialize(entry) if isinstance(entry, int) else entry
        return ReportNode(depth=draft.depth, count=draft.count, entries=entries)

    def finish(self) -> ParseResult:
        return ParseResult(tree=self._materialize(0), errors=list(self.errors), warnings=list(self.warnings))


def parse_lines(lines: Iterable[str]) -> ParseResult:
    builder = ReportBuilder()
    for line in lines:
        builder.feed(line)
    return builder.finish()


def parse_text(text: str) -> ParseResult:
    return parse_lines(text.splitlines())


def parse_report(path: str | Path) -> ParseResult:
    """Parse a McPAT report file.

    A missing or unreadable file is the only fatal case: the result then has
    no tree and a single error. Everything else is recorded and parsing
    carries on, so callers must inspect ``errors`` and ``warnings``.
    """
    p = Path(path)
    if not p.exists():
        return ParseResult(errors=[f"Input file '{p}' doesn't exist"])
    try:
        with p.open("r", encoding="utf-8", errors="replace") as handle:
            return parse_lines(handle)
    except OSError as exc:
        logger.debug("could not read %s", p, exc_info=True)
        return ParseResult(errors=[f"Could not open {p}: {exc.strerror or exc}"])
