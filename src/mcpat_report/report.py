from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from .tree import ReportNode


class ParseResult(BaseModel):
    tree: ReportNode | None = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.tree is not None and not self.errors

    def to_payload(self) -> dict[str, Any]:
        return {
            "tree": None if self.tree is None else self.tree.to_mapping(),
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


class CheckResult(BaseModel):
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def plus(self, other: "CheckResult") -> "CheckResult":
        return CheckResult(errors=self.errors + other.errors, warnings=self.warnings + other.warnings)


class CompareResult(BaseModel):
    equal: bool
    errors: list[str] = Field(default_factory=list)


class QueryResult(BaseModel):
    values: dict[str, float | bool | str | None] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
