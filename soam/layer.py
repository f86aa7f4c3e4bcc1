"""Circuits stored as a sequence of layers of gates."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Self, Sequence

from .config import Cost, Gateset, Layout
from .gate import Gate, GateKind
from .qasm import CircuitSeq

_TOFFOLI_KINDS = frozenset({GateKind.CCZ, GateKind.CCX})
_CCZ_RZ_GATES = 13


@dataclass
class Layer:
    """Gates that are applied at the same step."""

    gates: list[Gate] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.gates = list(self.gates)

    def is_empty(self) -> bool:
        return not self.gates


def _pack(gates: Iterable[Gate], num_qubits: int) -> list[Layer]:
    """Put each gate in the earliest layer after every gate it shares a qubit with."""
    frontier = [0] * num_qubits
    layers: list[Layer] = []
    for gate in gates:
        if not gate.qubits:
            raise ValueError(f"{gate.kind.name} gate acts on no qubits and cannot be layered")
        for qubit in gate.qubits:
            if qubit >= num_qubits:
                raise ValueError(f"qubit {qubit} out of range for {num_qubits} qubits")
        level = max(frontier[qubit] for qubit in gate.qubits)
        if level >= len(layers):
            layers.append(Layer())
        for qubit in gate.qubits:
            frontier[qubit] = level + 1
        layers[level].gates.append(gate)
    return layers


@dataclass
class CircuitLayer:
    """A circuit as a list of layers; empty layers are kept in place."""

    num_qubits: int
    layers: list[Layer] = field(default_factory=list)
    layout: Layout = Layout.DENSE

    def __post_init__(self) -> None:
        self.layers = list(self.layers)

    @classmethod
    def build(cls, gates: Iterable[Gate], num_qubits: int, layout: Layout) -> Self:
        """Layer a gate sequence: densely packed, or one gate per layer."""
        if layout is Layout.DENSE:
            return cls(num_qubits, _pack(gates, num_qubits), Layout.DENSE)
        return cls(num_qubits, [Layer([gate]) for gate in gates], Layout.ONE)

    @classmethod
    def from_seq(cls, seq: CircuitSeq, layout: Layout) -> Self:
        return cls.build(seq.gates, seq.num_qubits, layout)

    def __len__(self) -> int:
        """Number of layers, empty ones included."""
        return len(self.layers)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.layers):
            raise IndexError(f"layer index {index} out of range for {len(self.layers)} layers")

    def get(self, start: int, end: int) -> CircuitLayer:
        """A copy of the layers in [start, end)."""
        if not 0 <= start <= end <= len(self.layers):
            raise IndexError(f"range {start}..{end} out of bounds for {len(self.layers)} layers")
        layers = [Layer(list(layer.gates)) for layer in self.layers[start:end]]
        return CircuitLayer(self.num_qubits, layers, self.layout)

    def set_many(self, updates: Iterable[tuple[int, Sequence[Gate]]]) -> None:
        """Replace the layer at each index with the given gates."""
        for index, gates in updates:
            self._check_index(index)
            self.layers[index] = Layer(list(gates))

    def cost(self, cost: Cost) -> int:
        if self.layout is Layout.DENSE:
            match cost:
                case Cost.DEPTH:
                    return self.depth()
                case Cost.GATE:
                    return self.gate_count()
                case Cost.MIXED:
                    return 10 * self.depth() + self.gate_count()
        match cost:
            case Cost.GATE:
                return self.gate_count()
            case _:
                return 0

    def to_seq(self) -> CircuitSeq:
        gates = [gate for layer in self.layers for gate in layer.gates]
        return CircuitSeq(gates, self.num_qubits)

    def is_empty(self, index: int) -> bool:
        self._check_index(index)
        return self.layers[index].is_empty()

    def get_one(self, index: int) -> list[Gate]:
        self._check_index(index)
        return list(self.layers[index].gates)

    def gate_count(self) -> int:
        return sum(len(layer.gates) for layer in self.layers)

    def depth(self) -> int:
        """Number of non-empty layers."""
        return sum(1 for layer in self.layers if not layer.is_empty())

    def gate_count_rz(self) -> int:
        """Gate count with each CCZ counted as its 13-gate decomposition."""
        return sum(
            _CCZ_RZ_GATES if gate.kind is GateKind.CCZ else 1
            for layer in self.layers
            for gate in layer.gates
        )

    def left_layout(self) -> CircuitLayer:
        """Repack with every gate moved as early as possible."""
        gates = (gate for layer in self.layers for gate in layer.gates)
        return CircuitLayer(self.num_qubits, _pack(gates, self.num_qubits), self.layout)

    def right_layout(self) -> CircuitLayer:
        """Repack with every gate moved as late as possible."""
        gates = (gate for layer in reversed(self.layers) for gate in layer.gates)
        layers = _pack(gates, self.num_qubits)
        layers.reverse()
        return CircuitLayer(self.num_qubits, layers, self.layout)

    def get_gateset(self) -> Gateset:
        if any(gate.kind in _TOFFOLI_KINDS for layer in self.layers for gate in layer.gates):
            return Gateset.CLIFFORD_T
        return Gateset.NAM