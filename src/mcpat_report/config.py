from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .numeric import DEFAULT_TOLERANCE


class TopLevelPair(BaseModel):
    aggregate: str
    instance: str


class CheckerConfig(BaseModel):
    """Names and tolerance used when checking or comparing report trees."""

    DEFAULT_METRICS: ClassVar[tuple[str, ...]] = (
        "Area",
        "Peak Dynamic",
        "Subthreshold Leakage",
        "Gate Leakage",
        "Runtime Dynamic",
    )
    DEFAULT_PAIRS: ClassVar[tuple[tuple[str, str], ...]] = (
        ("Total Cores", "Core"),
        ("Total L2s", "L2"),
        ("Total NoCs (Network/Bus)", "NOC"),
        ("Total MCs", "Memory Controller"),
    )

    tolerance: float = Field(DEFAULT_TOLERANCE, gt=0.0, lt=1.0)
    metrics: list[str] = Field(default_factory=lambda: list(CheckerConfig.DEFAULT_METRICS))
    top_level_pairs: list[TopLevelPair] = Field(
        default_factory=lambda: [
            TopLevelPair(aggregate=a, instance=i) for a, i in CheckerConfig.DEFAULT_PAIRS
        ]
    )
    base_components: list[str] = Field(
        default_factory=lambda: ["Core", "L2", "Memory Controller", "NOC"]
    )
    # Not to be confused with 'L1_Local Predictor' / 'L2_Local Predictor'.
    irregular_keys: list[str] = Field(default_factory=lambda: ["Local Predictor"])

    @field_validator("metrics")
    @classmethod
    def _validate_metrics(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("metrics must name at least one metric")
        if len(set(v)) != len(v):
            raise ValueError(f"metrics contains duplicates: {v}")
        return v

    @property
    def processor_aggregates(self) -> list[str]:
        return [pair.aggregate for pair in self.top_level_pairs]

    @classmethod
    def from_yaml(cls, path: str | Path) -> "CheckerConfig":
        data = _load_yaml(path)
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid checker config: {path}\n{exc}") from exc


def _load_yaml(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(str(path))
    try:
        return yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:  # pragma: no cover
        raise ValueError(f"Failed to parse YAML: {p}") from exc


def load_config(path: str | Path | None) -> CheckerConfig:
    if path is None:
        return CheckerConfig()
    return CheckerConfig.from_yaml(path)
