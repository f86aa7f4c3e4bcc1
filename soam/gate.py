"""Quantum gates and their OpenQASM 2.0 text form."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

QubitIndex = int
Real = float
GateIndex = int


class GateKind(Enum):
    """Every gate the circuits know, valued by its OpenQASM mnemonic."""

    CCX = "ccx"
    CCZ = "ccz"
    CX = "cx"
    CZ = "cz"
    H = "h"
    X = "x"
    Y = "y"
    Z = "z"
    RX = "rx"
    RY = "ry"
    RZ = "rz"
    S = "s"
    SDG = "sdg"
    SQRT_X = "sx"
    SQRT_XDG = "sxdg"
    SWAP = "swap"
    T = "t"
    TDG = "tdg"
    U = "u"
    B = "b"

    @property
    def num_qubits(self) -> int:
        """Number of qubits a gate of this kind acts on."""
        return _ARITY[self][0]

    @property
    def num_params(self) -> int:
        """Number of real parameters a gate of this kind carries."""
        return _ARITY[self][1]


_ARITY: dict[GateKind, tuple[int, int]] = {
    GateKind.CCX: (3, 0),
    GateKind.CCZ: (3, 0),
    GateKind.CX: (2, 0),
    GateKind.CZ: (2, 0),
    GateKind.H: (1, 0),
    GateKind.X: (1, 0),
    GateKind.Y: (1, 0),
    GateKind.Z: (1, 0),
    GateKind.RX: (1, 1),
    GateKind.RY: (1, 1),
    GateKind.RZ: (1, 1),
    GateKind.S: (1, 0),
    GateKind.SDG: (1, 0),
    GateKind.SQRT_X: (1, 0),
    GateKind.SQRT_XDG: (1, 0),
    GateKind.SWAP: (2, 0),
    GateKind.T: (1, 0),
    GateKind.TDG: (1, 0),
    GateKind.U: (1, 3),
    GateKind.B: (0, 0),
}


def _format_real(value: float) -> str:
    """Shortest decimal text of a float, without exponent or a trailing '.0'."""
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    text = format(Decimal(repr(value)), "f")
    if text.endswith(".0"):
        text = text[:-2]
    return text


@dataclass(frozen=True)
class Gate:
    """A gate: its kind, the qubits it acts on and its real parameters.

    For U the parameters are (theta, phi, lambda). The B kind marks a
    boundary node and acts on no qubits.
    """

    kind: GateKind
    qubits: tuple[QubitIndex, ...] = ()
    params: tuple[Real, ...] = ()

    def __post_init__(self) -> None:
        qubits = tuple(self.qubits)
        params = tuple(float(p) for p in self.params)
        if len(qubits) != self.kind.num_qubits:
            raise ValueError(
                f"{self.kind.name} acts on {self.kind.num_qubits} qubits, got {len(qubits)}"
            )
        if len(params) != self.kind.num_params:
            raise ValueError(
                f"{self.kind.name} takes {self.kind.num_params} parameters, got {len(params)}"
            )
        for qubit in qubits:
            if isinstance(qubit, bool) or not isinstance(qubit, int) or qubit < 0:
                raise ValueError(f"invalid qubit index {qubit!r}")
        object.__setattr__(self, "qubits", qubits)
        object.__setattr__(self, "params", params)

    def is_boundary(self) -> bool:
        """True for the B marker gate."""
        return self.kind is GateKind.B

    def __str__(self) -> str:
        if self.is_boundary():
            raise ValueError("B gate has no text form")
        operands = ", ".join(f"q[{q}]" for q in self.qubits)
        if self.params:
            args = ", ".join(_format_real(p) for p in self.params)
            return f"{self.kind.value}({args}) {operands}"
        return f"{self.kind.value} {operands}"