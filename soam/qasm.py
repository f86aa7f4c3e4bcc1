"""Gate sequences and their OpenQASM 2.0 text."""

from __future__ import annotations

import math
import os
import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Self, Sequence

from .config import Cost
from .gate import Gate, GateKind, QubitIndex, _format_real

_TAU = 2.0 * math.pi
_PI_TEXT = repr(math.pi)


# --- parameter expressions --------------------------------------------------

_LEXEME_PATTERN = re.compile(
    r"\s*(?:(?P<num>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<name>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<op>[-+*/%^(),]))"
)


def _safe(fn: Callable[..., float]) -> Callable[..., float]:
    def call(*args: float) -> float:
        try:
            return float(fn(*args))
        except OverflowError:
            return math.inf
        except (ValueError, ZeroDivisionError):
            return math.nan

    return call


def _divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _modulo(a: float, b: float) -> float:
    if b == 0:
        return math.nan
    return math.fmod(a, b)


def _round_half_away(x: float) -> float:
    if math.isnan(x) or math.isinf(x):
        return x
    return math.copysign(math.floor(abs(x) + 0.5), x)


def _signum(x: float) -> float:
    return x if math.isnan(x) else math.copysign(1.0, x)


_power = _safe(math.pow)

_BINARY: dict[str, Callable[[float, float], float]] = {
    "*": lambda a, b: a * b,
    "/": _divide,
    "%": _modulo,
}

_CONSTANTS: dict[str, float] = {"pi": math.pi, "e": math.e}

# name -> (minimum arguments, maximum arguments or None, function)
_FUNCTIONS: dict[str, tuple[int, int | None, Callable[..., float]]] = {
    "sqrt": (1, 1, _safe(math.sqrt)),
    "exp": (1, 1, _safe(math.exp)),
    "ln": (1, 1, _safe(math.log)),
    "abs": (1, 1, _safe(abs)),
    "sin": (1, 1, _safe(math.sin)),
    "cos": (1, 1, _safe(math.cos)),
    "tan": (1, 1, _safe(math.tan)),
    "asin": (1, 1, _safe(math.asin)),
    "acos": (1, 1, _safe(math.acos)),
    "atan": (1, 1, _safe(math.atan)),
    "sinh": (1, 1, _safe(math.sinh)),
    "cosh": (1, 1, _safe(math.cosh)),
    "tanh": (1, 1, _safe(math.tanh)),
    "asinh": (1, 1, _safe(math.asinh)),
    "acosh": (1, 1, _safe(math.acosh)),
    "atanh": (1, 1, _safe(math.atanh)),
    "floor": (1, 1, _safe(math.floor)),
    "ceil": (1, 1, _safe(math.ceil)),
    "round": (1, 1, _round_half_away),
    "signum": (1, 1, _signum),
    "atan2": (2, 2, _safe(math.atan2)),
    "max": (1, None, _safe(max)),
    "min": (1, None, _safe(min)),
}


class _ExpressionParser:
    """Recursive-descent evaluator for arithmetic gate parameters."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._parts = self._split(text)
        self._pos = 0

    def _fail(self) -> None:
        raise ValueError(f"Failed to evaluate parameter expression {self._text!r}")

    def _split(self, text: str) -> list[tuple[str, str]]:
        stripped = text.rstrip()
        parts: list[tuple[str, str]] = []
        pos = 0
        while pos < len(stripped):
            match = _LEXEME_PATTERN.match(stripped, pos)
            if match is None or match.lastgroup is None:
                self._fail()
            pos = match.end()
            parts.append((match.lastgroup, match.group(match.lastgroup)))
        return parts

    def parse(self) -> float:
        value = self._sum()
        if self._pos != len(self._parts):
            self._fail()
        return value

    def _peek(self) -> tuple[str | None, str | None]:
        if self._pos < len(self._parts):
            return self._parts[self._pos]
        return None, None

    def _take_op(self, *ops: str) -> str | None:
        kind, text = self._peek()
        if kind == "op" and text in ops:
            self._pos += 1
            return text
        return None

    def _expect(self, op: str) -> None:
        if self._take_op(op) is None:
            self._fail()

    def _sum(self) -> float:
        value = self._product()
        while (op := self._take_op("+", "-")) is not None:
            rhs = self._product()
            value = value + rhs if op == "+" else value - rhs
        return value

    def _product(self) -> float:
        value = self._unary()
        while (op := self._take_op("*", "/", "%")) is not None:
            value = _BINARY[op](value, self._unary())
        return value

    def _unary(self) -> float:
        op = self._take_op("+", "-")
        if op is not None:
            value = self._unary()
            return -value if op == "-" else value
        return self._power()

    def _power(self) -> float:
        base = self._atom()
        if self._take_op("^") is not None:
            return _power(base, self._unary())
        return base

    def _atom(self) -> float:
        kind, text = self._peek()
        if kind == "num" and text is not None:
            self._pos += 1
            return float(text)
        if kind == "name" and text is not None:
            self._pos += 1
            if self._take_op("(") is not None:
                args = [self._sum()]
                while self._take_op(",") is not None:
                    args.append(self._sum())
                self._expect(")")
                return self._call(text, args)
            if text in _CONSTANTS:
                return _CONSTANTS[text]
            raise ValueError(f"unknown variable {text!r} in {self._text!r}")
        if self._take_op("(") is not None:
            value = self._sum()
            self._expect(")")
            return value
        self._fail()
        return math.nan  # unreachable

    def _call(self, name: str, args: list[float]) -> float:
        if name not in _FUNCTIONS:
            raise ValueError(f"unknown function {name!r} in {self._text!r}")
        low, high, fn = _FUNCTIONS[name]
        if len(args) < low or (high is not None and len(args) > high):
            raise ValueError(f"wrong number of arguments to {name!r} in {self._text!r}")
        return fn(*args)


def _extract_and_parse_parameter(text: str) -> float:
    start = text.find("(")
    if start < 0:
        raise ValueError(f"Failed to find opening parenthesis in {text!r}")
    end = text.rfind(")")
    if end < 0:
        raise ValueError(f"Failed to find closing parenthesis in {text!r}")
    expression = text[start + 1 : end].replace("PI", _PI_TEXT).replace("π", _PI_TEXT)
    value = _ExpressionParser(expression).parse()
    if value < 0.0:
        value = _TAU + value
    return value


# --- operands ---------------------------------------------------------------


def _extract_register_name(text: str) -> str:
    end = text.find("[")
    if end < 0:
        raise ValueError(f"Failed to find opening bracket in {text!r}")
    return text[:end]


def _extract_qubit_index(text: str) -> int:
    start = text.find("[")
    if start < 0:
        raise ValueError(f"Failed to find opening bracket in {text!r}")
    end = text.find("]")
    if end < 0:
        raise ValueError(f"Failed to find closing bracket in {text!r}")
    digits = text[start + 1 : end]
    if not (digits.isascii() and digits.isdigit()):
        raise ValueError(f"Failed to parse qubit index in {text!r}")
    return int(digits)


def _calculate_qubit_index(text: str, registers: Sequence[tuple[str, int]]) -> QubitIndex:
    name = _extract_register_name(text)
    index = _extract_qubit_index(text)
    for register, offset in registers:
        if register == name:
            return index + offset
    return 0


def _operand(words: Sequence[str], position: int) -> str:
    if position >= len(words):
        raise ValueError(f"missing operand in {' '.join(words)!r}")
    return words[position]


_PLAIN_GATES: dict[str, GateKind] = {
    "CCX": GateKind.CCX,
    "CCZ": GateKind.CCZ,
    "CX": GateKind.CX,
    "CZ": GateKind.CZ,
    "H": GateKind.H,
    "X": GateKind.X,
    "Y": GateKind.Y,
    "Z": GateKind.Z,
    "S": GateKind.S,
    "SDG": GateKind.SDG,
    "SQRTX": GateKind.SQRT_X,
    "SQRTXDG": GateKind.SQRT_XDG,
    "SWAP": GateKind.SWAP,
    "T": GateKind.T,
    "TDG": GateKind.TDG,
}

_ROTATIONS: dict[str, GateKind] = {"RX": GateKind.RX, "RY": GateKind.RY, "RZ": GateKind.RZ}

_IGNORED = frozenset({"OPENQASM", "INCLUDE", "CREG", "ID", "MEASURE", "//"})


def parse_program(program: str) -> CircuitSeq:
    """Parse OpenQASM 2.0 text into a gate sequence."""
    gates: list[Gate] = []
    n_qubits = 0
    registers: list[tuple[str, int]] = []

    for line in program.splitlines():
        words = [word for word in re.split(r"[\s,]+", line) if word]
        if not words:
            continue
        op = words[0].split("(")[0].upper()
        if op in _IGNORED:
            continue
        if op == "QREG":
            declaration = _operand(words, 1)
            registers.append((_extract_register_name(declaration), n_qubits))
            n_qubits += _extract_qubit_index(declaration)
        elif op in _PLAIN_GATES:
            kind = _PLAIN_GATES[op]
            qubits = tuple(
                _calculate_qubit_index(_operand(words, i), registers)
                for i in range(1, kind.num_qubits + 1)
            )
            gates.append(Gate(kind, qubits))
        elif op in _ROTATIONS:
            qubit = _calculate_qubit_index(_operand(words, 1), registers)
            param = _extract_and_parse_parameter(words[0])
            gates.append(Gate(_ROTATIONS[op], (qubit,), (param,)))
        elif op == "U":
            qubit = _calculate_qubit_index(_operand(words, 1), registers)
            params = tuple(_extract_and_parse_parameter(_operand(words, i)) for i in (2, 3, 4))
            gates.append(Gate(GateKind.U, (qubit,), params))
        else:
            raise ValueError(f"Unknown gate: {words[0]}")

    return CircuitSeq(gates, n_qubits)


def write_program(gates: Iterable[Gate], num_qubits: int, filename: str | Path) -> None:
    """Write the X, H, Z, RZ and CX gates of a sequence as an OpenQASM file."""
    lines = ["OPENQASM 2.0;", 'include "qelib1.inc";', f"qreg q[{num_qubits}];"]
    for gate in gates:
        match gate.kind:
            case GateKind.X | GateKind.H | GateKind.Z:
                lines.append(f"{gate.kind.value} q[{gate.qubits[0]}];")
            case GateKind.RZ:
                lines.append(f"rz({_format_real(gate.params[0])}) q[{gate.qubits[0]}];")
            case GateKind.CX:
                control, target = gate.qubits
                lines.append(f"cx q[{control}], q[{target}];")
            case _:
                pass
    Path(filename).write_text("\n".join(lines) + "\n", encoding="utf-8")


# --- paths ------------------------------------------------------------------

_ENV_VAR = re.compile(r"\$(?:\{(?P<braced>[^}]*)\}|(?P<plain>[A-Za-z0-9_]+))")


def _expand_env(text: str) -> str:
    def replace(match: re.Match[str]) -> str:
        name = match.group("braced")
        if name is None:
            name = match.group("plain")
        try:
            return os.environ[name]
        except KeyError:
            raise ValueError(
                f"failed to expand path: environment variable {name!r} is not set"
            ) from None

    return _ENV_VAR.sub(replace, text)


# --- sequences --------------------------------------------------------------


@dataclass
class CircuitSeq:
    """A circuit as a flat list of gates over a number of qubits."""

    gates: list[Gate] = field(default_factory=list)
    num_qubits: int = 0

    def __post_init__(self) -> None:
        self.gates = list(self.gates)

    def __len__(self) -> int:
        return len(self.gates)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.gates):
            raise IndexError(f"gate index {index} out of range for {len(self.gates)} gates")

    def get(self, start: int, end: int) -> CircuitSeq:
        """Gates in [start, end), without boundary markers."""
        if not 0 <= start <= end <= len(self.gates):
            raise IndexError(f"range {start}..{end} out of bounds for {len(self.gates)} gates")
        gates = [gate for gate in self.gates[start:end] if not gate.is_boundary()]
        return CircuitSeq(gates, self.num_qubits)

    def to_seq(self) -> CircuitSeq:
        """A copy without boundary markers."""
        return CircuitSeq([g for g in self.gates if not g.is_boundary()], self.num_qubits)

    def cost(self, cost: Cost) -> int:
        if cost is Cost.GATE:
            return sum(1 for gate in self.gates if not gate.is_boundary())
        raise ValueError(f"{cost} cost is not supported for circuit seq")

    def is_empty(self, index: int) -> bool:
        self._check_index(index)
        return self.gates[index].is_boundary()

    def get_one(self, index: int) -> list[Gate]:
        self._check_index(index)
        return [self.gates[index]]

    def set_many(self, updates: Iterable[tuple[int, Sequence[Gate]]]) -> None:
        """Put the first gate of each update at its index."""
        for index, gates in updates:
            self._check_index(index)
            if not gates:
                raise ValueError(f"no gate given for index {index}")
            self.gates[index] = gates[0]

    def remove_identities(self) -> None:
        """Drop boundary markers and RZ rotations by a multiple of 2π."""
        self.gates = [
            gate
            for gate in self.gates
            if not gate.is_boundary()
            and not (gate.kind is GateKind.RZ and math.fmod(gate.params[0], _TAU) == 0.0)
        ]

    def reduce_angles(self) -> None:
        print("reducing angles")
        self.gates = [
            Gate(GateKind.RZ, gate.qubits, (math.fmod(gate.params[0], _TAU),))
            if gate.kind is GateKind.RZ
            else gate
            for gate in self.gates
        ]

    def replace_z_gates(self) -> None:
        """Rewrite every Z as an RZ by π."""
        self.gates = [
            Gate(GateKind.RZ, gate.qubits, (math.pi,)) if gate.kind is GateKind.Z else gate
            for gate in self.gates
        ]

    def print_gate_counts(self) -> None:
        counts = Counter(gate.kind for gate in self.gates)
        if counts[GateKind.Z]:
            raise ValueError("Z gate found in final result")
        print(f"X gates: {counts[GateKind.X]}")
        print(f"H gates: {counts[GateKind.H]}")
        print(f"RZ gates: {counts[GateKind.RZ]}")
        print(f"CX gates: {counts[GateKind.CX]}")

    def shift_right(self, source: int, dest: int) -> None:
        """Move the gate at `source` forward to `dest`."""
        if dest <= source:
            return
        self._check_index(source)
        self._check_index(dest)
        self.gates.insert(dest, self.gates.pop(source))

    def shift_left(self, source: int, dest: int) -> None:
        """Move the gate at `dest` back to `source`."""
        if dest < source:
            raise ValueError(f"destination {dest} lies before source {source}")
        if dest == source:
            return
        self._check_index(source)
        self._check_index(dest)
        self.gates.insert(source, self.gates.pop(dest))

    @classmethod
    def from_source(cls, source: str) -> Self:
        parsed = parse_program(source)
        return cls(parsed.gates, parsed.num_qubits)

    @classmethod
    def from_file(cls, path: str | Path) -> Self:
        """Read a QASM file; environment variables in the path are expanded."""
        expanded = Path(_expand_env(str(path)))
        return cls.from_source(expanded.read_text(encoding="utf-8"))

    def dump(self) -> str:
        lines = ["OPENQASM 2.0;", 'include "qelib1.inc";', f"qreg q[{self.num_qubits}];"]
        lines.extend(f"{gate};" for gate in self.gates)
        return "\n".join(lines) + "\n"