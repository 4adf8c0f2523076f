from __future__ import annotations

from typing import Annotated, Any, Iterator, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field

from .numeric import as_number

DEPTH_KEY = "_DEPTH_"
COUNT_KEY = "_COUNT_"
RESERVED_KEYS = (DEPTH_KEY, COUNT_KEY)


class Scalar(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["scalar"] = "scalar"
    value: float | str
    unit: str | None = None

    @property
    def number(self) -> float | None:
        return as_number(self.value)


class ReportNode(BaseModel):
    """One component of a McPAT report, or the whole report at the root.

    ``depth`` is the nesting level the component's heading was found at and
    ``count`` the instance multiplier printed with it. The root has depth 0
    and no count.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["node"] = "node"
    depth: int = Field(0, ge=0)
    count: int | None = Field(default=None, ge=1)
    entries: dict[str, Annotated[Union[Scalar, ReportNode], Field(discriminator="kind")]] = Field(
        default_factory=dict
    )

    @property
    def multiplier(self) -> int:
        return 1 if self.count is None else self.count

    def __contains__(self, name: object) -> bool:
        return name in self.entries

    def __getitem__(self, name: str) -> Scalar | ReportNode:
        return self.entries[name]

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, name: str) -> Scalar | ReportNode | None:
        return self.entries.get(name)

    def node(self, name: str) -> ReportNode | None:
        entry = self.entries.get(name)
        return entry if isinstance(entry, ReportNode) else None

    def children(self) -> Iterator[tuple[str, ReportNode]]:
        for name, entry in self.entries.items():
            if isinstance(entry, ReportNode):
                yield name, entry

    def scalars(self) -> Iterator[tuple[str, Scalar]]:
        for name, entry in self.entries.items():
            if isinstance(entry, Scalar):
                yield name, entry

    def metric(self, name: str) -> float | None:
        entry = self.entries.get(name)
        if isinstance(entry, Scalar):
            return entry.number
        return None

    def to_mapping(self) -> dict[str, Any]:
        data: dict[str, Any] = {DEPTH_KEY: self.depth}
        if self.count is not None:
            data[COUNT_KEY] = self.count
        for name, entry in self.entries.items():
            data[name] = entry.to_mapping() if isinstance(entry, ReportNode) else entry.value
        return data

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, depth: int = 0) -> "ReportNode":
        """Build a tree from the plain ``_DEPTH_``/``_COUNT_`` mapping form.

        Sub-mappings missing ``_DEPTH_`` are placed one level below their
        parent; missing ``_COUNT_`` defaults to 1 everywhere but the root.
        """
        node_depth = int(data.get(DEPTH_KEY, depth))
        raw_count = data.get(COUNT_KEY)
        if raw_count is None and node_depth > 0:
            raw_count = 1
        entries: dict[str, Scalar | ReportNode] = {}
        for name, value in data.items():
            if name in RESERVED_KEYS:
                continue
            if isinstance(value, Mapping):
                entries[name] = cls.from_mapping(value, depth=node_depth + 1)
            else:
                entries[name] = Scalar(value=value)
        return cls(
            depth=node_depth,
            count=None if raw_count is None else int(raw_count),
            entries=entries,
        )
