"""Outcome of optimisation runs and their TOML results file."""

from __future__ import annotations

import tomllib
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Self

import tomli_w

from .config import SingleConfig


@dataclass
class SingleResult:
    original_depth: int
    optimized_depth: int
    original_gates: int
    optimized_gates: int
    n_rounds: int
    time: float
    oracle_time: float
    n_seams_total: int


@dataclass
class ConfigResult:
    config: SingleConfig
    result: SingleResult


_FLOAT_FIELDS = frozenset({"time", "oracle_time"})


def _single_result_from_dict(data: Any) -> SingleResult:
    if not isinstance(data, dict):
        raise ValueError("result must be a table")
    values: dict[str, Any] = {}
    for f in fields(SingleResult):
        if f.name not in data:
            raise ValueError(f"missing field {f.name!r} in result")
        value = data[f.name]
        values[f.name] = float(value) if f.name in _FLOAT_FIELDS else value
    return SingleResult(**values)


@dataclass
class MultipleResults:
    results: list[ConfigResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "results": [
                {"config": entry.config.to_dict(), "result": asdict(entry.result)}
                for entry in self.results
            ]
        }

    @classmethod
    def from_dict(cls, data: Any) -> Self:
        if not isinstance(data, dict) or "results" not in data:
            raise ValueError("missing field 'results'")
        entries = data["results"]
        if not isinstance(entries, list):
            raise ValueError("field 'results' must be an array")
        results = []
        for entry in entries:
            if not isinstance(entry, dict) or "config" not in entry or "result" not in entry:
                raise ValueError("each result needs 'config' and 'result'")
            results.append(
                ConfigResult(
                    config=SingleConfig.from_dict(entry["config"]),
                    result=_single_result_from_dict(entry["result"]),
                )
            )
        return cls(results)


def result_path_for(config_path: str | Path) -> str:
    """Where the results of a configuration file go."""
    return str(config_path).replace("configs", "results")


def write_results(config_path: str | Path, results: MultipleResults) -> Path:
    """Write results next to the configuration, under 'results' instead of 'configs'."""
    path = Path(result_path_for(config_path))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(tomli_w.dumps(results.to_dict()), encoding="utf-8")
    return path


def read_results(path: str | Path) -> MultipleResults:
    with open(Path(path), "rb") as handle:
        return MultipleResults.from_dict(tomllib.load(handle))