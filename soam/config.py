"""Optimisation settings and their TOML form."""

from __future__ import annotations

import itertools
import json
import tomllib
from dataclasses import dataclass, fields
from enum import Enum, StrEnum
from pathlib import Path
from typing import Any, Callable, Self

from .gate import _format_real


class Cost(StrEnum):
    DEPTH = "Depth"
    GATE = "Gate"
    MIXED = "Mixed"


class TimeOutKind(StrEnum):
    PER_GATE = "PerGate"
    PER_SEGMENT = "PerSegment"


@dataclass(frozen=True)
class TimeOut:
    """An optimiser time budget in seconds, per gate or per segment."""

    kind: TimeOutKind
    seconds: float

    def __str__(self) -> str:
        return _format_real(self.seconds)


class Gateset(StrEnum):
    NAM = "Nam"
    CLIFFORD_T = "CliffordT"


class Layout(StrEnum):
    DENSE = "Dense"
    ONE = "One"


@dataclass(frozen=True)
class QuartzConfig:
    cost: Cost
    timeout: TimeOut
    ecc_path: str
    gateset: Gateset
    n_threads: int

    def __str__(self) -> str:
        return f"QuartzConfig(cost={self.cost}, timeout={self.timeout})"


class OracleKind(StrEnum):
    QUARTZ = "Quartz"
    VOQC = "Voqc"
    ROQC = "Roqc"
    TKET = "Tket"
    QISKIT = "Qiskit"


@dataclass(frozen=True)
class OracleName:
    """Which optimiser to call; only Quartz carries settings."""

    kind: OracleKind
    quartz: QuartzConfig | None = None

    def __post_init__(self) -> None:
        if self.kind is OracleKind.QUARTZ and self.quartz is None:
            raise ValueError("the Quartz oracle needs a QuartzConfig")
        if self.kind is not OracleKind.QUARTZ and self.quartz is not None:
            raise ValueError(f"the {self.kind} oracle takes no QuartzConfig")

    def __str__(self) -> str:
        if self.quartz is not None:
            return str(self.quartz)
        return f"{self.kind.value}Config"


class PreprocessConfig(StrEnum):
    NONE = "None"


# --- value codecs -----------------------------------------------------------


def _require(data: Any, key: str, what: str) -> Any:
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be a table")
    if key not in data:
        raise ValueError(f"missing field {key!r} in {what}")
    return data[key]


def _single_entry(data: Any, what: str) -> tuple[str, Any]:
    if not isinstance(data, dict) or len(data) != 1:
        raise ValueError(f"{what} must be a table with exactly one entry")
    return next(iter(data.items()))


def _decode_enum(enum_cls: type[StrEnum], value: Any) -> Any:
    if not isinstance(value, str):
        raise ValueError(f"{enum_cls.__name__} must be a string, got {value!r}")
    try:
        return enum_cls(value)
    except ValueError:
        raise ValueError(f"unknown {enum_cls.__name__} variant {value!r}") from None


def _decode_str(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"expected a string, got {value!r}")
    return value


def _decode_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"expected a boolean, got {value!r}")
    return value


def _decode_usize(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"expected a non-negative integer, got {value!r}")
    return value


def _decode_real(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"expected a number, got {value!r}")
    return float(value)


def _decode_timeout(data: Any) -> TimeOut:
    key, value = _single_entry(data, "timeout")
    return TimeOut(_decode_enum(TimeOutKind, key), _decode_real(value))


def _encode_timeout(timeout: TimeOut) -> dict[str, float]:
    return {timeout.kind.value: timeout.seconds}


def _decode_quartz(data: Any) -> QuartzConfig:
    what = "QuartzConfig"
    return QuartzConfig(
        cost=_decode_enum(Cost, _require(data, "cost", what)),
        timeout=_decode_timeout(_require(data, "timeout", what)),
        ecc_path=_decode_str(_require(data, "ecc_path", what)),
        gateset=_decode_enum(Gateset, _require(data, "gateset", what)),
        n_threads=_decode_usize(_require(data, "n_threads", what)),
    )


def _encode_quartz(config: QuartzConfig) -> dict[str, Any]:
    return {
        "cost": config.cost.value,
        "timeout": _encode_timeout(config.timeout),
        "ecc_path": config.ecc_path,
        "gateset": config.gateset.value,
        "n_threads": config.n_threads,
    }


def _decode_oracle(data: Any) -> OracleName:
    key, body = _single_entry(data, "oracle_name")
    kind = _decode_enum(OracleKind, key)
    if not isinstance(body, dict):
        raise ValueError(f"settings of oracle {key!r} must be a table")
    if kind is OracleKind.QUARTZ:
        return OracleName(kind, _decode_quartz(body))
    return OracleName(kind)


def _encode_oracle(oracle: OracleName) -> dict[str, Any]:
    body = _encode_quartz(oracle.quartz) if oracle.quartz is not None else {}
    return {oracle.kind.value: body}


def _encode_enum(value: StrEnum) -> str:
    return value.value


_CODECS: dict[str, tuple[Callable[[Any], Any], Callable[[Any], Any]]] = {
    "circuit_path": (_decode_str, str),
    "use_soam": (_decode_bool, bool),
    "omega": (_decode_usize, int),
    "oracle_name": (_decode_oracle, _encode_oracle),
    "preprocess_config": (lambda v: _decode_enum(PreprocessConfig, v), _encode_enum),
    "cost": (lambda v: _decode_enum(Cost, v), _encode_enum),
    "gateset": (lambda v: _decode_enum(Gateset, v), _encode_enum),
    "n_threads": (_decode_usize, int),
    "layout": (lambda v: _decode_enum(Layout, v), _encode_enum),
}


def _debug_real(value: float) -> str:
    if value != value:
        return "NaN"
    if value in (float("inf"), float("-inf")):
        return "inf" if value > 0 else "-inf"
    text = repr(float(value))
    if "e" in text:
        mantissa, exponent = text.split("e")
        text = f"{mantissa}e{int(exponent)}"
    return text


def _debug(value: Any) -> str:
    """Diagnostic text of a setting value, as printed in reports."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _debug_real(value)
    if isinstance(value, TimeOut):
        return f"{value.kind.value}({_debug(value.seconds)})"
    if isinstance(value, QuartzConfig):
        inner = ", ".join(f"{f.name}: {_debug(getattr(value, f.name))}" for f in fields(value))
        return f"QuartzConfig {{ {inner} }}"
    if isinstance(value, OracleName):
        payload = _debug(value.quartz) if value.quartz is not None else f"{value.kind.value}Config"
        return f"{value.kind.value}({payload})"
    raise TypeError(f"no diagnostic form for {type(value).__name__}")


# --- configurations ---------------------------------------------------------


@dataclass(frozen=True)
class SingleConfig:
    """One concrete optimisation run."""

    circuit_path: str
    use_soam: bool
    omega: int
    oracle_name: OracleName
    preprocess_config: PreprocessConfig
    cost: Cost
    gateset: Gateset
    n_threads: int
    layout: Layout

    def to_dict(self) -> dict[str, Any]:
        return {name: _CODECS[name][1](getattr(self, name)) for name in _FIELDS}

    @classmethod
    def from_dict(cls, data: Any) -> Self:
        return cls(
            **{
                name: _CODECS[name][0](_require(data, name, "configuration"))
                for name in _FIELDS
            }
        )

    def print_non_unique_elements(self, unique_elements: dict[str, bool]) -> None:
        for name in _FIELDS:
            if not unique_elements.get(name, True):
                print(f"{name}: {_debug(getattr(self, name))}")

    def non_unique_elements(self, unique_elements: dict[str, bool]) -> str:
        return "".join(
            f"{name}: {_debug(getattr(self, name))}, "
            for name in _FIELDS
            if not unique_elements.get(name, True)
        )


_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(SingleConfig))


@dataclass
class MultipleConfigs:
    """A grid of settings: every combination is one run."""

    circuit_path: list[str]
    use_soam: list[bool]
    omega: list[int]
    oracle_name: list[OracleName]
    preprocess_config: list[PreprocessConfig]
    cost: list[Cost]
    gateset: list[Gateset]
    n_threads: list[int]
    layout: list[Layout]

    def to_dict(self) -> dict[str, list[Any]]:
        return {
            name: [_CODECS[name][1](value) for value in getattr(self, name)]
            for name in _FIELDS
        }

    @classmethod
    def from_dict(cls, data: Any) -> Self:
        columns: dict[str, list[Any]] = {}
        for name in _FIELDS:
            values = _require(data, name, "configuration")
            if not isinstance(values, list):
                raise ValueError(f"field {name!r} must be an array")
            decode = _CODECS[name][0]
            columns[name] = [decode(value) for value in values]
        return cls(**columns)

    @classmethod
    def read_config(cls, config_path: str | Path) -> Self:
        with open(Path(config_path), "rb") as handle:
            data = tomllib.load(handle)
        return cls.from_dict(data)

    def unique_config_elements(self) -> dict[str, bool]:
        return {name: len(getattr(self, name)) == 1 for name in _FIELDS}

    def to_single_configs(self) -> list[SingleConfig]:
        columns = (getattr(self, name) for name in _FIELDS)
        return [SingleConfig(*combination) for combination in itertools.product(*columns)]

    def print_unique_elements(self) -> None:
        unique = self.unique_config_elements()
        for name in _FIELDS:
            if unique.get(name, False):
                print(f"{name}: {_debug(getattr(self, name)[0])}")